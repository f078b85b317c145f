"""Map parsed CSV rows (or loose JSON objects) onto rule records."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .vocab import AREAS, DISCIPLINES, SKILLS, canonical, split_tags

logger = logging.getLogger(__name__)


class RuleColumn(str, enum.Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    AREA = "area"
    DISCIPLINE = "discipline"
    SKILL = "skill"

    @classmethod
    def from_header(cls, header: str) -> Optional["RuleColumn"]:
        name = (header or "").strip().lower()
        for col in cls:
            if col.value == name:
                return col
        return None


# Alternate spellings accepted from spreadsheet JSON payloads. Keys are
# compared after lower-casing and folding spaces/hyphens to underscores.
JSON_ALIASES: Dict[RuleColumn, tuple] = {
    RuleColumn.TITLE: ("title", "rule", "rule_title", "name"),
    RuleColumn.DESCRIPTION: ("description", "desc", "details", "rule_description"),
    RuleColumn.AREA: ("area", "areas"),
    RuleColumn.DISCIPLINE: ("discipline", "disciplines"),
    RuleColumn.SKILL: ("skill", "skills"),
}


@dataclass(frozen=True)
class RuleRecord:
    """A validated rule ready to be written to the ``rules`` table."""
    title: str
    description: str
    area: str = ""
    discipline: str = ""
    skill: str = ""

    def area_tags(self) -> List[str]:
        tags = []
        for tag in split_tags(self.area):
            tags.append(canonical(tag, AREAS) or tag)
        return tags

    def to_row(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "area": self.area_tags(),
            "discipline": canonical(self.discipline, DISCIPLINES) or self.discipline,
            "skill": canonical(self.skill, SKILLS) or self.skill,
        }


@dataclass(frozen=True)
class DiscardedRow:
    row_number: int
    reason: str


@dataclass
class MappingResult:
    records: List[RuleRecord] = field(default_factory=list)
    discarded: List[DiscardedRow] = field(default_factory=list)

    @property
    def discarded_count(self) -> int:
        return len(self.discarded)


def _column_index(header: Sequence[str]) -> Dict[RuleColumn, int]:
    index: Dict[RuleColumn, int] = {}
    for i, name in enumerate(header):
        col = RuleColumn.from_header(name)
        if col is not None:
            # Last occurrence wins for duplicated headers.
            index[col] = i
    return index


def _build(values: Mapping[RuleColumn, str], row_number: int, result: MappingResult) -> None:
    title = (values.get(RuleColumn.TITLE) or "").strip()
    description = (values.get(RuleColumn.DESCRIPTION) or "").strip()
    if not title or not description:
        missing = "title" if not title else "description"
        result.discarded.append(DiscardedRow(row_number=row_number, reason=f"missing {missing}"))
        return
    result.records.append(
        RuleRecord(
            title=title,
            description=description,
            area=(values.get(RuleColumn.AREA) or "").strip(),
            discipline=(values.get(RuleColumn.DISCIPLINE) or "").strip(),
            skill=(values.get(RuleColumn.SKILL) or "").strip(),
        )
    )


def map_rows(header: Sequence[str], rows: Iterable[Sequence[str]]) -> MappingResult:
    """Positional mapping of data rows against a header row.

    Rows without both a title and a description are discarded and recorded in
    ``MappingResult.discarded``; they are never raised as errors.
    """
    index = _column_index(header)
    result = MappingResult()
    # Data rows are numbered from 2: row 1 is the header.
    for row_number, row in enumerate(rows, start=2):
        values = {col: (row[i] if i < len(row) else "") for col, i in index.items()}
        _build(values, row_number, result)
    if result.discarded:
        logger.debug("rule mapping discarded %d rows: %s", result.discarded_count, result.discarded[:10])
    return result


def map_table(table: Sequence[Sequence[str]]) -> MappingResult:
    """Map a parsed table whose first row is the header."""
    if not table:
        return MappingResult()
    header = [h.strip().lower() for h in table[0]]
    return map_rows(header, table[1:])


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower().replace(" ", "_").replace("-", "_")


def _coerce(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ";".join(_coerce(v) for v in value if _coerce(v))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def map_json_objects(objects: Iterable[Any]) -> MappingResult:
    """Map loosely typed JSON objects (one per rule) onto rule records."""
    lookup: Dict[str, RuleColumn] = {}
    for col, aliases in JSON_ALIASES.items():
        for alias in aliases:
            lookup[alias] = col

    result = MappingResult()
    for row_number, obj in enumerate(objects, start=1):
        if not isinstance(obj, dict):
            result.discarded.append(DiscardedRow(row_number=row_number, reason="not an object"))
            continue
        values: Dict[RuleColumn, str] = {}
        for key, raw in obj.items():
            col = lookup.get(_normalize_key(key))
            if col is None or values.get(col):
                continue
            values[col] = _coerce(raw)
        _build(values, row_number, result)
    if result.discarded:
        logger.debug("json mapping discarded %d objects", result.discarded_count)
    return result
