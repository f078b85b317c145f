"""Per-rule statistics from impression events and review responses.

Both collections are loaded up front; aggregation is a pure in-memory pass
over each. Rows that predate stable rule ids are keyed by their normalized
title, so two different rules that share a title are merged. That is a known
limitation of the legacy data and is kept as is.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

VIEWED = "viewed"
SKIPPED = "skipped"
REVIEWED = "reviewed"


def _pick(row: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in row and row[name] is not None:
            return row[name]
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


@dataclass(frozen=True)
class ImpressionEvent:
    rule_id: Optional[Any]
    rule_title: str
    action: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ImpressionEvent":
        return cls(
            rule_id=_pick(row, "rule_id", "ruleId"),
            rule_title=str(_pick(row, "rule_title", "ruleTitle") or ""),
            action=str(row.get("action") or "").strip().lower(),
            created_at=_pick(row, "created_at", "createdAt"),
        )


@dataclass(frozen=True)
class ResponseRecord:
    rule_id: Optional[Any]
    rule_title: str
    resonates: bool
    applicable: bool
    learned_new: bool
    thoughts: str = ""
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ResponseRecord":
        return cls(
            rule_id=_pick(row, "rule_id", "ruleId"),
            rule_title=str(_pick(row, "rule_title", "ruleTitle") or ""),
            resonates=_as_bool(row.get("resonates")),
            applicable=_as_bool(row.get("applicable")),
            learned_new=_as_bool(_pick(row, "learned_new", "learnedNew")),
            thoughts=str(row.get("thoughts") or ""),
            created_at=_pick(row, "created_at", "createdAt"),
        )


@dataclass(frozen=True)
class RuleComment:
    text: str
    created_at: Optional[str] = None


@dataclass
class RuleStatistics:
    key: str
    rule_id: Optional[Any]
    rule_title: str
    total_views: int = 0
    total_skips: int = 0
    total_reviews: int = 0
    resonates_yes: int = 0
    resonates_no: int = 0
    applicable_yes: int = 0
    applicable_no: int = 0
    learned_new_yes: int = 0
    learned_new_no: int = 0
    comments: List[RuleComment] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        reviews = self.total_reviews
        return {
            "key": self.key,
            "rule_id": self.rule_id,
            "rule_title": self.rule_title,
            "total_views": self.total_views,
            "total_skips": self.total_skips,
            "total_reviews": reviews,
            "resonates_yes": self.resonates_yes,
            "resonates_no": self.resonates_no,
            "applicable_yes": self.applicable_yes,
            "applicable_no": self.applicable_no,
            "learned_new_yes": self.learned_new_yes,
            "learned_new_no": self.learned_new_no,
            "skip_rate": percentage(self.total_skips, self.total_views),
            "resonates_pct": percentage(self.resonates_yes, reviews),
            "applicable_pct": percentage(self.applicable_yes, reviews),
            "learned_new_pct": percentage(self.learned_new_yes, reviews),
            "comments": [{"text": c.text, "created_at": c.created_at} for c in self.comments],
        }


def percentage(value: Union[int, float], total: Union[int, float]) -> int:
    """Rounded percentage; 0 when total is 0."""
    if not total:
        return 0
    # .5 rounds up.
    return int((100.0 * value / total) + 0.5)


def normalize_title(title: Optional[str]) -> str:
    return (title or "").strip().lower()


def statistics_key(rule_id: Optional[Any], rule_title: Optional[str]) -> str:
    if rule_id is not None and str(rule_id) != "":
        return str(rule_id)
    return "title:" + normalize_title(rule_title)


def _coerce_all(items: Iterable[Any], kind) -> List[Any]:
    out = []
    for item in items or []:
        out.append(item if isinstance(item, kind) else kind.from_row(item))
    return out


def aggregate_rule_statistics(
    impressions: Iterable[Union[ImpressionEvent, Mapping[str, Any]]],
    responses: Iterable[Union[ResponseRecord, Mapping[str, Any]]],
) -> List[RuleStatistics]:
    """Merge impressions and responses into per-rule statistics.

    ``reviewed`` impressions are not counted: reviews come from the responses
    alone. Output is sorted by total views, most viewed first; ties keep the
    order in which the rule was first seen.
    """
    buckets: Dict[str, RuleStatistics] = {}

    def bucket(rule_id, rule_title) -> RuleStatistics:
        key = statistics_key(rule_id, rule_title)
        stats = buckets.get(key)
        if stats is None:
            stats = RuleStatistics(key=key, rule_id=rule_id, rule_title=(rule_title or "").strip())
            buckets[key] = stats
        elif not stats.rule_title and rule_title:
            stats.rule_title = rule_title.strip()
        return stats

    for ev in _coerce_all(impressions, ImpressionEvent):
        stats = bucket(ev.rule_id, ev.rule_title)
        if ev.action == VIEWED:
            stats.total_views += 1
        elif ev.action == SKIPPED:
            stats.total_skips += 1

    for resp in _coerce_all(responses, ResponseRecord):
        stats = bucket(resp.rule_id, resp.rule_title)
        stats.total_reviews += 1
        if resp.resonates:
            stats.resonates_yes += 1
        else:
            stats.resonates_no += 1
        if resp.applicable:
            stats.applicable_yes += 1
        else:
            stats.applicable_no += 1
        if resp.learned_new:
            stats.learned_new_yes += 1
        else:
            stats.learned_new_no += 1
        text = (resp.thoughts or "").strip()
        if text:
            stats.comments.append(RuleComment(text=text, created_at=resp.created_at))

    return sorted(buckets.values(), key=lambda s: s.total_views, reverse=True)
