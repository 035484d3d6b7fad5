"""Versioned achievement taxonomy: models, storage and proposal merging."""

from .models import (
    AchievementTypeGroup,
    CategoryNode,
    TaxonomyDocument,
    TaxonomyProposal,
    TaxonomyTree,
    merge_proposals,
)
from .repository import (
    SurrealTaxonomyRepository,
    TaxonomyRepository,
    TaxonomyVersionConflict,
    load_seed_document,
)
from .update_service import TaxonomyUpdateService
from .version import INITIAL_VERSION, InvalidTaxonomyVersion, TaxonomyVersion

__all__ = [
    "AchievementTypeGroup",
    "CategoryNode",
    "INITIAL_VERSION",
    "InvalidTaxonomyVersion",
    "SurrealTaxonomyRepository",
    "TaxonomyDocument",
    "TaxonomyProposal",
    "TaxonomyRepository",
    "TaxonomyTree",
    "TaxonomyUpdateService",
    "TaxonomyVersion",
    "TaxonomyVersionConflict",
    "load_seed_document",
    "merge_proposals",
]
