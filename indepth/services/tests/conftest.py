"""Shared pytest fixtures for services tests."""

import pytest

from indepth.services.analysis.models import Achievement
from indepth.services.taxonomy.models import CategoryNode
from indepth.services.tests.fakes import InMemoryTaxonomyRepository


@pytest.fixture
def base_tree():
    """Small taxonomy tree used as v1.0."""
    return {
        "healing": {
            "chronic_pain": CategoryNode(subcategories=["back_pain"]),
        },
    }


@pytest.fixture
def taxonomy_repo(base_tree):
    """InMemoryTaxonomyRepository seeded with base_tree at v1.0."""
    return InMemoryTaxonomyRepository.seeded(base_tree)


@pytest.fixture
def healing_achievement():
    return Achievement(type="healing", tags=["chronic_pain"], details="Back pain gone")
