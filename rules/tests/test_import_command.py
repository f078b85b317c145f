import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from rules.management.commands.import_rules import ImportConfig
from rules.models import Rule


class ImportRulesCommandTests(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = Path(self.tmp.name)

    def _write(self, name, text):
        p = self.dir / name
        p.write_text(text, encoding="utf-8")
        return p

    def test_imports_csv_file(self):
        p = self._write("rules.csv", "title;description;skill\nBe kind;Kindness matters;empathy\n")
        out = StringIO()
        call_command("import_rules", "--file", str(p), stdout=out)
        self.assertIn("Imported 1 rules successfully", out.getvalue())
        self.assertEqual(Rule.objects.get().skill, "Empathy")

    def test_dry_run_writes_nothing(self):
        p = self._write("rules.csv", "title,description\nA,a\nB,b\n")
        out = StringIO()
        call_command("import_rules", "--file", str(p), "--dry-run", stdout=out)
        self.assertIn("Dry run: 2 rules would be imported", out.getvalue())
        self.assertEqual(Rule.objects.count(), 0)

    def test_yaml_config_resolves_relative_paths(self):
        self._write("rules.csv", "title,description\nA,a\n")
        cfg_path = self._write("sources.yaml", "csv_files:\n  - rules.csv\nsheet_urls:\n  - https://example.com/exec\ntimeout: 5\n")
        cfg = ImportConfig.from_yaml(cfg_path)
        self.assertEqual(cfg.csv_files, [(self.dir / "rules.csv").resolve()])
        self.assertEqual(cfg.sheet_urls, ["https://example.com/exec"])
        self.assertEqual(cfg.timeout, 5.0)

    def test_config_runs_all_sources(self):
        self._write("rules.csv", "title,description\nA,a\n")
        cfg_path = self._write("sources.yaml", "csv_files:\n  - rules.csv\nsheet_urls:\n  - \"https://example.com/exec\"\ntimeout: 5\n")
        with patch("rules.management.commands.import_rules.fetch_json_rows") as mock_fetch:
            mock_fetch.return_value = [{"title": "B", "description": "b"}]
            call_command("import_rules", "--config", str(cfg_path), stdout=StringIO())
        mock_fetch.assert_called_once_with("https://example.com/exec", timeout=5.0)
        self.assertEqual(sorted(Rule.objects.values_list("title", flat=True)), ["A", "B"])

    def test_failed_source_raises(self):
        p = self._write("empty.csv", "title,description\n")
        err = StringIO()
        with self.assertRaises(CommandError):
            call_command("import_rules", "--file", str(p), stdout=StringIO(), stderr=err)
        self.assertIn("No valid rules found in CSV file", err.getvalue())

    def test_nothing_to_import(self):
        with self.assertRaises(CommandError):
            call_command("import_rules")
