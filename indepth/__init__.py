"""indepth: transcript analysis pipeline with a versioned achievement taxonomy."""

__version__ = "0.1.0"
