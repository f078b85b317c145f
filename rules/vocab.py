"""Fixed facet vocabularies for rules and suggestions."""
from __future__ import annotations

from typing import Iterable, Optional

AREAS = ("People", "Self", "Business")
DISCIPLINES = ("Perception", "Will", "Action")
SKILLS = (
    "Communication",
    "Teamwork",
    "Analytical skills",
    "Empathy",
    "Work ethic",
    "Leadership",
    "Self-management",
)


def canonical(value: str, vocabulary: Iterable[str]) -> Optional[str]:
    """Return the vocabulary spelling of value (case-insensitive), or None."""
    v = (value or "").strip().lower()
    if not v:
        return None
    for item in vocabulary:
        if item.lower() == v:
            return item
    return None


def split_tags(value: str) -> list[str]:
    if not value:
        return []
    parts = value.replace(",", ";").split(";")
    return [p.strip() for p in parts if p.strip()]
