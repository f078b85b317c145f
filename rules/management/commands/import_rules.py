from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from rules.importer import RuleImporter
from rules.remote import fetch_json_rows
from rules.store import DjangoRecordStore


@dataclass
class ImportConfig:
    """Sources for a scripted import, usually loaded from YAML."""
    csv_files: List[Path] = field(default_factory=list)
    sheet_urls: List[str] = field(default_factory=list)
    timeout: Optional[float] = None

    @staticmethod
    def from_yaml(path: Path) -> "ImportConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        base = path.resolve().parent
        files = []
        for item in data.get("csv_files") or []:
            p = Path(str(item))
            files.append(p if p.is_absolute() else (base / p).resolve())
        urls = [str(u).strip() for u in (data.get("sheet_urls") or []) if str(u).strip()]
        timeout = data.get("timeout")
        return ImportConfig(csv_files=files, sheet_urls=urls, timeout=float(timeout) if timeout else None)


class Command(BaseCommand):
    help = "Import rules from CSV files and/or spreadsheet JSON endpoints"

    def add_arguments(self, parser):
        parser.add_argument("--file", action="append", default=[])
        parser.add_argument("--sheet-url", action="append", default=[])
        parser.add_argument("--config", default="")
        parser.add_argument("--dry-run", action="store_true")

    def handle(self, *args, **options):
        config_path = (options.get("config") or "").strip()
        dry_run = bool(options.get("dry_run"))

        if config_path:
            p = Path(config_path)
            if not p.is_absolute():
                p = (Path(getattr(settings, "BASE_DIR", ".")) / p).resolve()
            try:
                cfg = ImportConfig.from_yaml(p)
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise CommandError(f"Invalid config: {e}")
        else:
            cfg = ImportConfig()
        cfg.csv_files.extend(Path(f).resolve() for f in options.get("file") or [])
        cfg.sheet_urls.extend(u.strip() for u in options.get("sheet_url") or [] if u.strip())

        if not cfg.csv_files and not cfg.sheet_urls:
            raise CommandError("Nothing to import: pass --file, --sheet-url or --config")

        importer = RuleImporter(
            DjangoRecordStore(),
            fetcher=lambda url: fetch_json_rows(url, timeout=cfg.timeout),
        )
        failures = 0
        for fp in cfg.csv_files:
            try:
                content = fp.read_bytes()
            except OSError as e:
                self.stderr.write(f"{fp}: {e}")
                failures += 1
                continue
            outcome = importer.import_csv(content, dry_run=dry_run)
            failures += self._report(str(fp), outcome)
        for url in cfg.sheet_urls:
            outcome = importer.import_remote_json(url, dry_run=dry_run)
            failures += self._report(url, outcome)

        if failures:
            raise CommandError(f"{failures} source(s) failed to import")

    def _report(self, source, outcome) -> int:
        line = f"{source}: {outcome.message}"
        if outcome.discarded:
            line += f" ({outcome.discarded} rows skipped)"
        if outcome.success:
            self.stdout.write(self.style.SUCCESS(line))
            return 0
        self.stderr.write(line)
        return 1
