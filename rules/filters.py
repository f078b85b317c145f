"""In-memory browse filtering of rule rows (free text plus area/discipline/skill facets)."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from rules.vocab import split_tags


def _selected(value: str) -> str:
    v = (value or "").strip().lower()
    # The browse page sends "All Areas" / "All Disciplines" / "All Skills".
    if not v or v.startswith("all "):
        return ""
    return v


def _tags(area: Any) -> List[str]:
    if isinstance(area, (list, tuple)):
        return [str(a).strip().lower() for a in area if str(a).strip()]
    return [a.lower() for a in split_tags(str(area or ""))]


def rule_matches(rule: Mapping[str, Any], *, q: str = "", area: str = "", discipline: str = "", skill: str = "") -> bool:
    q = (q or "").strip().lower()
    if q:
        title = str(rule.get("title") or "").lower()
        description = str(rule.get("description") or "").lower()
        if q not in title and q not in description:
            return False

    sel_area = _selected(area)
    if sel_area and sel_area not in _tags(rule.get("area")):
        return False

    sel_discipline = _selected(discipline)
    if sel_discipline and str(rule.get("discipline") or "").strip().lower() != sel_discipline:
        return False

    sel_skill = _selected(skill)
    if sel_skill and str(rule.get("skill") or "").strip().lower() != sel_skill:
        return False
    return True


def filter_rules(rules: Iterable[Mapping[str, Any]], **criteria: str) -> List[Dict[str, Any]]:
    """Free-text plus facet filtering over already loaded rule rows."""
    return [dict(r) for r in rules if rule_matches(r, **criteria)]
