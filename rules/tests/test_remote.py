import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import requests
from django.test import TestCase, override_settings

from rules.remote import JsonpRequest, RemoteFetchError, fetch_json_rows, parse_payload, pending_callbacks


def _response(text, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.encoding = "utf-8"
    resp.iter_content.return_value = [text.encode("utf-8")]
    return resp


class _DripHandler(BaseHTTPRequestHandler):
    """Sends a short JSON body one byte every half second."""

    body = b"[1, 2 ]"
    interval = 0.5

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        try:
            for i in range(len(self.body)):
                self.wfile.write(self.body[i:i + 1])
                self.wfile.flush()
                time.sleep(self.interval)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        return


class ParsePayloadTests(TestCase):
    def test_bare_json_array(self):
        self.assertEqual(parse_payload('[{"title": "A"}]'), [{"title": "A"}])

    def test_callback_wrapped_array(self):
        body = 'rules_import_abc([{"title": "A"}, {"title": "B"}]);'
        self.assertEqual(len(parse_payload(body, "rules_import_abc")), 2)

    def test_other_callback_name_is_unwrapped(self):
        body = '/**/ cb_123([{"title": "A"}])'
        self.assertEqual(parse_payload(body, "rules_import_abc"), [{"title": "A"}])

    def test_wrapped_object_with_data_key(self):
        self.assertEqual(parse_payload('{"data": [{"title": "A"}]}'), [{"title": "A"}])

    def test_non_array_is_rejected(self):
        with self.assertRaises(RemoteFetchError):
            parse_payload('{"title": "A"}')

    def test_garbage_is_rejected(self):
        with self.assertRaises(RemoteFetchError):
            parse_payload("<html>error</html>")
        with self.assertRaises(RemoteFetchError):
            parse_payload("")


class JsonpRequestTests(TestCase):
    def test_callback_is_unique_and_scoped(self):
        with JsonpRequest("https://example.com/a") as first, JsonpRequest("https://example.com/b") as second:
            self.assertNotEqual(first.callback, second.callback)
            pending = pending_callbacks()
            self.assertIn(first.callback, pending)
            self.assertIn(second.callback, pending)
        pending = pending_callbacks()
        self.assertNotIn(first.callback, pending)
        self.assertNotIn(second.callback, pending)

    def test_callback_is_released_on_error(self):
        req = JsonpRequest("https://example.com/a")
        with self.assertRaises(ValueError):
            with req:
                self.assertIn(req.callback, pending_callbacks())
                raise ValueError("boom")
        self.assertNotIn(req.callback, pending_callbacks())

    @patch("rules.remote.requests.get")
    def test_fetch_sends_callback_and_timeout(self, mock_get):
        mock_get.return_value = _response('[{"title": "A", "description": "a"}]')
        with JsonpRequest("https://example.com/exec", timeout=3) as req:
            rows = req.fetch()
        self.assertEqual(rows, [{"title": "A", "description": "a"}])
        _args, kwargs = mock_get.call_args
        self.assertEqual(kwargs["params"], {"callback": req.callback})
        self.assertEqual(kwargs["timeout"], 3)

    @patch("rules.remote.requests.get")
    def test_timeout_is_reported_and_callback_released(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        before = set(pending_callbacks())
        with self.assertRaises(RemoteFetchError) as ctx:
            fetch_json_rows("https://example.com/exec", timeout=15)
        self.assertEqual(str(ctx.exception), "Request timed out after 15 seconds")
        self.assertEqual(set(pending_callbacks()), before)

    @patch("rules.remote.requests.get")
    def test_http_error_status(self, mock_get):
        mock_get.return_value = _response("oops", status_code=500)
        with self.assertRaises(RemoteFetchError) as ctx:
            fetch_json_rows("https://example.com/exec")
        self.assertIn("HTTP 500", str(ctx.exception))

    @patch("rules.remote.requests.get")
    def test_non_http_url_is_rejected_without_request(self, mock_get):
        with self.assertRaises(RemoteFetchError):
            fetch_json_rows("file:///etc/passwd")
        mock_get.assert_not_called()

    @override_settings(RULES_REMOTE_IMPORT_TIMEOUT=7)
    def test_default_timeout_comes_from_settings(self):
        self.assertEqual(JsonpRequest("https://example.com/exec").timeout, 7.0)

    @patch("rules.remote.requests.get")
    def test_fetch_streams_and_closes_response(self, mock_get):
        resp = _response('[{"title": "A"}]')
        mock_get.return_value = resp
        fetch_json_rows("https://example.com/exec", timeout=3)
        _args, kwargs = mock_get.call_args
        self.assertTrue(kwargs["stream"])
        resp.close.assert_called_once()


class SlowEndpointTests(TestCase):
    def setUp(self):
        self.server = ThreadingHTTPServer(("127.0.0.1", 0), _DripHandler)
        self.server.daemon_threads = True
        thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        thread.start()
        self.addCleanup(self.server.server_close)
        self.addCleanup(self.server.shutdown)
        self.url = f"http://127.0.0.1:{self.server.server_address[1]}/exec"

    def test_slow_body_is_cut_off_at_total_timeout(self):
        before = set(pending_callbacks())
        started = time.monotonic()
        with self.assertRaises(RemoteFetchError) as ctx:
            fetch_json_rows(self.url, timeout=1)
        elapsed = time.monotonic() - started
        self.assertEqual(str(ctx.exception), "Request timed out after 1 seconds")
        self.assertLess(elapsed, 1.5)
        self.assertEqual(set(pending_callbacks()), before)

    def test_fast_enough_body_is_returned(self):
        with patch.object(_DripHandler, "interval", 0.01):
            self.assertEqual(fetch_json_rows(self.url, timeout=5), [1, 2])
