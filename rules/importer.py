"""Bulk rule import: file or sheet source -> validated records -> one batch insert."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from .csv_parser import detect_delimiter, parse_csv
from .mapping import MappingResult, RuleRecord, map_json_objects, map_table
from .remote import RemoteFetchError, fetch_json_rows
from .store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

NO_VALID_ROWS = "No valid rules found in CSV file"
NO_VALID_SHEET_ROWS = "No valid rules found in sheet data"


class RuleImportError(Exception):
    def __init__(self, message: str, *, code: str = "import_failed"):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class ImportOutcome:
    success: bool
    imported: int = 0
    discarded: int = 0
    message: str = ""
    code: str = ""

    def as_dict(self) -> dict:
        out = {"success": self.success, "imported": self.imported, "discarded": self.discarded, "detail": self.message}
        if self.code:
            out["code"] = self.code
        return out


def decode_upload(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise RuleImportError(NO_VALID_ROWS, code="no_valid_rows") from e


def parse_rule_csv(text: str) -> MappingResult:
    """Delimiter detection, tokenizing and mapping, without touching the store."""
    delimiter = detect_delimiter(text)
    table = parse_csv(text, delimiter)
    return map_table(table)


class RuleImporter:
    """Drives an import and converts every failure into an ImportOutcome."""

    def __init__(
        self,
        store: RecordStore,
        *,
        fetcher: Optional[Callable[[str], List[Any]]] = None,
        table: str = "rules",
    ):
        self.store = store
        self.fetcher = fetcher or fetch_json_rows
        self.table = table

    def import_csv(self, content: Union[bytes, str], *, dry_run: bool = False) -> ImportOutcome:
        try:
            text = decode_upload(content)
            result = parse_rule_csv(text)
            if not result.records:
                raise RuleImportError(NO_VALID_ROWS, code="no_valid_rows")
            return self._finish(result, dry_run=dry_run)
        except RuleImportError as e:
            return self._failed(str(e), e.code)
        except RecordStoreError as e:
            return self._failed(str(e), "store_error")

    def import_remote_json(self, url: str, *, dry_run: bool = False) -> ImportOutcome:
        try:
            objects = self.fetcher(url)
            result = map_json_objects(objects)
            if not result.records:
                raise RuleImportError(NO_VALID_SHEET_ROWS, code="no_valid_rows")
            return self._finish(result, dry_run=dry_run)
        except RemoteFetchError as e:
            return self._failed(str(e), "remote_fetch_failed")
        except RuleImportError as e:
            return self._failed(str(e), e.code)
        except RecordStoreError as e:
            return self._failed(str(e), "store_error")

    def import_records(self, records: Sequence[RuleRecord]) -> int:
        """Write all records with a single batch insert; raises RecordStoreError."""
        return self.store.insert_batch(self.table, [r.to_row() for r in records])

    def _finish(self, result: MappingResult, *, dry_run: bool) -> ImportOutcome:
        if dry_run:
            count = len(result.records)
            return ImportOutcome(
                success=True,
                imported=0,
                discarded=result.discarded_count,
                message=f"Dry run: {count} rules would be imported",
            )
        count = self.import_records(result.records)
        logger.info("rule import: %d imported, %d discarded", count, result.discarded_count)
        return ImportOutcome(
            success=True,
            imported=count,
            discarded=result.discarded_count,
            message=f"Imported {count} rules successfully",
        )

    def _failed(self, message: str, code: str) -> ImportOutcome:
        logger.warning("rule import failed (%s): %s", code, message)
        return ImportOutcome(success=False, message=message, code=code)
