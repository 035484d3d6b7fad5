"""Pydantic models for the achievement taxonomy.

Models for:
- CategoryNode: one category with its subcategories and attributes
- AchievementTypeGroup: category name -> CategoryNode, one domain's slice of the tree
- TaxonomyProposal: an LLM-suggested addition to one domain
- TaxonomyDocument: a persisted, versioned taxonomy tree

Proposals use a dynamic-key wire format so the LLM can emit the domain as
a JSON key without a fixed schema:

    {"healing": {"chronic_pain": {"subcategories": ["back_pain"]}},
     "justification": "Several testimonials mention back pain"}
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, TypeAdapter

from .version import INITIAL_VERSION, TaxonomyVersion

UNSPECIFIED_CATEGORY = "unspecified"
JUSTIFICATION_KEY = "justification"


class CategoryNode(BaseModel):
    """A concrete category with optional subcategories and attributes."""

    subcategories: list[str] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)


# One domain's slice of the taxonomy tree: category name -> node
AchievementTypeGroup = dict[str, CategoryNode]

# Domain key -> group. The full taxonomy tree.
TaxonomyTree = dict[str, AchievementTypeGroup]

_group_adapter = TypeAdapter(AchievementTypeGroup)
_tree_adapter = TypeAdapter(TaxonomyTree)


def parse_group(value: Any) -> AchievementTypeGroup:
    """Validate a plain mapping into an AchievementTypeGroup."""
    return _group_adapter.validate_python(value or {})


def parse_tree(value: Any) -> TaxonomyTree:
    """Validate a plain mapping into a TaxonomyTree."""
    return _tree_adapter.validate_python(value or {})


def dump_tree(tree: TaxonomyTree) -> dict[str, Any]:
    """Serialize a TaxonomyTree to plain JSON-compatible data."""
    return _tree_adapter.dump_python(tree, mode="json")


class TaxonomyProposal(BaseModel):
    """A taxonomy addition proposed by the LLM for a single domain.

    Attributes:
        achievement_category: Domain key the group belongs under (e.g. "healing")
        group: Proposed categories and their children
        justification: Why the addition is needed
    """

    achievement_category: str
    group: AchievementTypeGroup = Field(default_factory=dict)
    justification: str = ""

    def to_wire(self) -> dict[str, Any]:
        """Encode as ``{<category>: <group>, "justification": <text>}``."""
        return {
            self.achievement_category: _group_adapter.dump_python(self.group, mode="json"),
            JUSTIFICATION_KEY: self.justification,
        }

    @classmethod
    def from_wire(cls, data: Any) -> "TaxonomyProposal":
        """Decode the dynamic-key format.

        ``justification`` is matched case-insensitively. The first other
        member supplies the category key and its group. Without such a
        member the proposal falls back to the "unspecified" category with an
        empty group.

        Raises:
            ValueError: If data is not a mapping
        """
        if isinstance(data, TaxonomyProposal):
            return data
        if not isinstance(data, dict):
            raise ValueError(
                f"Expected object for TaxonomyProposal, got {type(data).__name__}"
            )

        justification: Optional[str] = None
        category: Optional[str] = None
        group: AchievementTypeGroup = {}

        for key, value in data.items():
            if key.lower() == JUSTIFICATION_KEY:
                justification = "" if value is None else str(value)
            elif category is None:
                category = key
                group = parse_group(value)

        if category is None:
            return cls(
                achievement_category=UNSPECIFIED_CATEGORY,
                group={},
                justification=justification or "",
            )
        return cls(
            achievement_category=category,
            group=group,
            justification=justification or "",
        )


class TaxonomyDocument(BaseModel):
    """One persisted version of the taxonomy.

    Exactly one document is "latest" (the highest version); older versions
    are kept as immutable history.
    """

    version: TaxonomyVersion = INITIAL_VERSION
    tree: TaxonomyTree = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    changes: list[str] = Field(default_factory=list)
    proposed_from_video_id: Optional[str] = None


def _union(existing: list[str], additions: list[str]) -> tuple[list[str], bool]:
    """Existing entries first, then unseen non-blank additions (exact match)."""
    merged = list(existing)
    seen = set(existing)
    changed = False
    for item in additions:
        if not item or not item.strip() or item in seen:
            continue
        merged.append(item)
        seen.add(item)
        changed = True
    return merged, changed


def merge_proposals(
    tree: TaxonomyTree, proposals: list[TaxonomyProposal]
) -> tuple[TaxonomyTree, list[str]]:
    """Fold proposals into a copy of the taxonomy tree.

    For each proposal, every category in its group is unioned into the
    same category under ``achievement_category``: existing subcategories
    and attributes keep their order, new ones are appended, duplicates are
    dropped by case-sensitive exact match. Missing domains and categories
    are created.

    Args:
        tree: Current taxonomy tree (not modified)
        proposals: Proposals to apply in order

    Returns:
        Tuple of (merged tree, change notes). No notes means nothing changed.
    """
    merged: TaxonomyTree = {
        domain: {name: node.model_copy(deep=True) for name, node in group.items()}
        for domain, group in tree.items()
    }
    changes: list[str] = []

    for proposal in proposals:
        domain = proposal.achievement_category
        if not domain or not domain.strip():
            continue

        domain_group = merged.get(domain)
        if domain_group is None:
            domain_group = {}
            merged[domain] = domain_group
            changes.append(f"Add domain '{domain}'")

        for category_name, proposed in proposal.group.items():
            if not category_name or not category_name.strip():
                continue

            current = domain_group.get(category_name)
            if current is None:
                subcategories, _ = _union([], proposed.subcategories)
                attributes, _ = _union([], proposed.attributes)
                domain_group[category_name] = CategoryNode(
                    subcategories=subcategories, attributes=attributes
                )
                changes.append(f"Add category '{domain}.{category_name}'")
                continue

            subcategories, sub_changed = _union(current.subcategories, proposed.subcategories)
            attributes, attr_changed = _union(current.attributes, proposed.attributes)
            if sub_changed or attr_changed:
                domain_group[category_name] = CategoryNode(
                    subcategories=subcategories, attributes=attributes
                )
                changes.append(f"Merge category '{domain}.{category_name}'")

    return merged, changes
