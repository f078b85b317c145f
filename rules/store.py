"""Table-name keyed record store over the Django ORM.

Import and analytics code talks to persistence only through this interface.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from django.apps import apps
from django.db import DatabaseError, transaction

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """A store-level failure; the message is the backend's own, verbatim."""


class RecordStore(Protocol):
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Union[str, Sequence[str], None] = None,
    ) -> List[Dict[str, Any]]: ...

    def insert_batch(self, table: str, records: Sequence[Mapping[str, Any]]) -> int: ...

    def update(self, table: str, id: Any, fields: Mapping[str, Any]) -> int: ...

    def delete(
        self,
        table: str,
        id: Any = None,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        all_rows: bool = False,
    ) -> int: ...


TABLES: Dict[str, str] = {
    "rules": "rules.Rule",
    "rule_impressions": "rules.RuleImpression",
    "rule_responses": "rules.RuleResponse",
    "suggestions": "rules.Suggestion",
    "contact_submissions": "feedback.ContactSubmission",
    "guidance_records": "feedback.GuidanceRecord",
    "pages_content": "pages.PageContent",
}


class DjangoRecordStore:
    """RecordStore backed by the project's models."""

    def __init__(self, tables: Optional[Mapping[str, str]] = None):
        self.tables = dict(tables or TABLES)

    def _model(self, table: str):
        label = self.tables.get(table)
        if not label:
            raise RecordStoreError(f"Unknown table: {table}")
        return apps.get_model(label)

    def select(self, table, filters=None, order_by=None):
        model = self._model(table)
        try:
            qs = model.objects.all()
            if filters:
                qs = qs.filter(**dict(filters))
            if order_by:
                qs = qs.order_by(*([order_by] if isinstance(order_by, str) else list(order_by)))
            return [obj.to_row() for obj in qs]
        except (DatabaseError, TypeError, ValueError) as e:
            raise RecordStoreError(str(e)) from e

    def insert_batch(self, table, records):
        model = self._model(table)
        rows = list(records)
        if not rows:
            return 0
        try:
            objs = [model(**dict(r)) for r in rows]
            with transaction.atomic():
                created = model.objects.bulk_create(objs)
        except (DatabaseError, TypeError, ValueError) as e:
            logger.warning("insert_batch into %s failed: %s", table, e)
            raise RecordStoreError(str(e)) from e
        logger.info("insert_batch: %d rows into %s", len(created), table)
        return len(created)

    def update(self, table, id, fields):
        model = self._model(table)
        try:
            obj = model.objects.filter(pk=id).first()
            if obj is None:
                return 0
            for key, value in dict(fields).items():
                setattr(obj, key, value)
            obj.save()
            return 1
        except (DatabaseError, TypeError, ValueError) as e:
            raise RecordStoreError(str(e)) from e

    def delete(self, table, id=None, *, filters=None, all_rows=False):
        model = self._model(table)
        if id is None and not filters and not all_rows:
            raise RecordStoreError("delete requires an id, a filter or all_rows=True")
        try:
            qs = model.objects.all()
            if id is not None:
                qs = qs.filter(pk=id)
            if filters:
                qs = qs.filter(**dict(filters))
            deleted, per_model = qs.delete()
        except (DatabaseError, TypeError, ValueError) as e:
            raise RecordStoreError(str(e)) from e
        # Count only rows of this table, not cascaded/nullified relations.
        return int(per_model.get(model._meta.label, 0)) if deleted else 0

