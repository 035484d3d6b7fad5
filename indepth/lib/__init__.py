"""Shared plumbing: configuration, logging, retry helpers."""
