"""Taxonomy version value type.

A version is a ``(major, minor)`` pair written as ``"v{major}.{minor}"``.
Parsing accepts an optional leading ``v``/``V``. Comparison is numeric, so
``v1.10 > v1.9``. Minor increments never carry into major.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic_core import core_schema


class InvalidTaxonomyVersion(ValueError):
    """Raised when text is not a valid ``major.minor`` version."""


def _parse_component(text: str) -> Optional[int]:
    # isdecimal() rejects signs, whitespace and non-ASCII digit forms like '²'
    if not text or not text.isascii() or not text.isdecimal():
        return None
    return int(text)


@dataclass(frozen=True, order=True)
class TaxonomyVersion:
    """Immutable, ordered taxonomy version identifier."""

    major: int
    minor: int

    def __post_init__(self) -> None:
        if self.major < 0:
            raise ValueError(f"major must be non-negative, got {self.major}")
        if self.minor < 0:
            raise ValueError(f"minor must be non-negative, got {self.minor}")

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional["TaxonomyVersion"]:
        """Parse ``major.minor`` or ``vmajor.minor``; return None when invalid."""
        if text is None:
            return None
        body = text.strip()
        if body[:1] in ("v", "V"):
            body = body[1:]

        parts = body.split(".")
        if len(parts) != 2:
            return None

        major = _parse_component(parts[0])
        minor = _parse_component(parts[1])
        if major is None or minor is None:
            return None
        return cls(major, minor)

    @classmethod
    def parse(cls, text: Optional[str]) -> "TaxonomyVersion":
        """Parse a version string.

        Raises:
            InvalidTaxonomyVersion: If the text is not a valid version
        """
        version = cls.try_parse(text)
        if version is None:
            raise InvalidTaxonomyVersion(
                f"Invalid taxonomy version {text!r}. "
                "Expected 'major.minor' optionally prefixed with 'v'."
            )
        return version

    def format(self) -> str:
        return f"v{self.major}.{self.minor}"

    def increment_minor(self) -> "TaxonomyVersion":
        """Return a new version with minor + 1; self is unchanged."""
        return TaxonomyVersion(self.major, self.minor + 1)

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def _validate(cls, value: Any) -> "TaxonomyVersion":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        raise InvalidTaxonomyVersion(
            f"Expected taxonomy version string, got {type(value).__name__}"
        )

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        # Validates from the text form, always serializes back to "vX.Y"
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: v.format(), return_schema=core_schema.str_schema()
            ),
        )


INITIAL_VERSION = TaxonomyVersion(1, 0)
