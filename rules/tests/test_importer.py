from django.test import TestCase

from rules.importer import NO_VALID_ROWS, NO_VALID_SHEET_ROWS, RuleImporter, parse_rule_csv
from rules.remote import RemoteFetchError
from rules.store import RecordStoreError


class FakeStore:
    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def insert_batch(self, table, records):
        self.calls.append((table, list(records)))
        if self.fail_with:
            raise RecordStoreError(self.fail_with)
        return len(records)


class RuleImporterCsvTests(TestCase):
    def test_header_only_is_rejected_without_store_calls(self):
        store = FakeStore()
        outcome = RuleImporter(store).import_csv(b"title,description,area\n")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.message, NO_VALID_ROWS)
        self.assertEqual(outcome.code, "no_valid_rows")
        self.assertEqual(store.calls, [])

    def test_all_rows_invalid_is_rejected_without_store_calls(self):
        store = FakeStore()
        outcome = RuleImporter(store).import_csv("title,description\n,only text\nno description,\n")
        self.assertFalse(outcome.success)
        self.assertEqual(store.calls, [])

    def test_valid_rows_are_written_in_one_batch(self):
        store = FakeStore()
        csv_text = (
            "title;description;area;discipline;skill\n"
            "Be kind;Kindness matters;People;Will;Empathy\n"
            ";missing title;;;\n"
            "\"Listen; first\";\"Then \"\"speak\"\"\";People,Self;;\n"
        )
        outcome = RuleImporter(store).import_csv(csv_text.encode("utf-8"))
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.imported, 2)
        self.assertEqual(outcome.discarded, 1)
        self.assertEqual(outcome.message, "Imported 2 rules successfully")
        self.assertEqual(len(store.calls), 1)
        table, rows = store.calls[0]
        self.assertEqual(table, "rules")
        self.assertEqual(rows[0]["title"], "Be kind")
        self.assertEqual(rows[0]["area"], ["People"])
        self.assertEqual(rows[1]["title"], "Listen; first")
        self.assertEqual(rows[1]["description"], 'Then "speak"')
        self.assertEqual(rows[1]["area"], ["People", "Self"])

    def test_utf8_bom_is_ignored(self):
        store = FakeStore()
        outcome = RuleImporter(store).import_csv("\ufefftitle,description\nT,D\n".encode("utf-8"))
        self.assertTrue(outcome.success)
        self.assertEqual(store.calls[0][1][0]["title"], "T")

    def test_undecodable_bytes_report_no_valid_rows(self):
        store = FakeStore()
        outcome = RuleImporter(store).import_csv(b"title,description\n\xff\xfe,\x80\n")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.code, "no_valid_rows")
        self.assertEqual(store.calls, [])

    def test_store_error_message_is_surfaced_verbatim(self):
        store = FakeStore(fail_with="duplicate key value violates unique constraint")
        outcome = RuleImporter(store).import_csv("title,description\nT,D\n")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.code, "store_error")
        self.assertEqual(outcome.message, "duplicate key value violates unique constraint")
        self.assertEqual(len(store.calls), 1)

    def test_dry_run_does_not_touch_store(self):
        store = FakeStore()
        outcome = RuleImporter(store).import_csv("title,description\nT,D\nU,E\n", dry_run=True)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.imported, 0)
        self.assertEqual(outcome.message, "Dry run: 2 rules would be imported")
        self.assertEqual(store.calls, [])

    def test_as_dict_envelope(self):
        outcome = RuleImporter(FakeStore()).import_csv("title,description\n")
        self.assertEqual(outcome.as_dict(), {
            "success": False,
            "imported": 0,
            "discarded": 0,
            "detail": NO_VALID_ROWS,
            "code": "no_valid_rows",
        })

    def test_parse_rule_csv_reports_discards(self):
        result = parse_rule_csv("title,description\nT,D\n,x\n")
        self.assertEqual(len(result.records), 1)
        self.assertEqual(result.discarded_count, 1)


class RuleImporterRemoteTests(TestCase):
    def test_remote_rows_are_written_in_one_batch(self):
        store = FakeStore()
        fetched = []

        def fetcher(url):
            fetched.append(url)
            return [{"Title": "A", "Description": "a"}, {"title": "", "description": "x"}, {"TITLE": "B", "desc": "b"}]

        outcome = RuleImporter(store, fetcher=fetcher).import_remote_json("https://example.com/exec")
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.imported, 2)
        self.assertEqual(outcome.discarded, 1)
        self.assertEqual(fetched, ["https://example.com/exec"])
        self.assertEqual(len(store.calls), 1)

    def test_empty_remote_payload_is_rejected(self):
        store = FakeStore()
        outcome = RuleImporter(store, fetcher=lambda url: []).import_remote_json("https://example.com/exec")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.message, NO_VALID_SHEET_ROWS)
        self.assertEqual(store.calls, [])

    def test_fetch_failure_is_reported(self):
        def fetcher(url):
            raise RemoteFetchError("Request timed out after 15 seconds")

        store = FakeStore()
        outcome = RuleImporter(store, fetcher=fetcher).import_remote_json("https://example.com/exec")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.code, "remote_fetch_failed")
        self.assertEqual(outcome.message, "Request timed out after 15 seconds")
        self.assertEqual(store.calls, [])
