from unittest.mock import patch

from django.test import RequestFactory, TestCase, override_settings
from rest_framework.response import Response

from accounts.auth import get_bearer_token, is_admin_claims, require_admin_uid


def _drf_response(data, status):
    return Response(data, status=status)


class RequireAdminUidTests(TestCase):
    def setUp(self):
        self.rf = RequestFactory()

    def test_missing_bearer_token_returns_401(self):
        req = self.rf.get("/api/admin/messages")
        uid, resp = require_admin_uid(req, response_factory=_drf_response)
        self.assertIsNone(uid)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data.get("code"), "missing_token")

    def test_invalid_token_returns_401(self):
        req = self.rf.get("/api/admin/messages", HTTP_AUTHORIZATION="Bearer bad")
        with patch("accounts.auth.verify_firebase_id_token") as mock_verify:
            mock_verify.return_value = (None, "Invalid token", 401)
            uid, resp = require_admin_uid(req, response_factory=_drf_response)
        self.assertIsNone(uid)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data.get("detail"), "Invalid token")

    @override_settings(RULES_ADMIN_UIDS=[])
    def test_non_admin_returns_403(self):
        req = self.rf.get("/api/admin/messages", HTTP_AUTHORIZATION="Bearer testtoken")
        uid, resp = require_admin_uid(req, response_factory=_drf_response)
        self.assertIsNone(uid)
        self.assertEqual(resp.status_code, 403)

    @override_settings(RULES_ADMIN_UIDS=["u123"])
    def test_allow_listed_uid_passes(self):
        req = self.rf.get("/api/admin/messages", HTTP_AUTHORIZATION="Bearer testtoken")
        with patch("accounts.auth.verify_firebase_id_token") as mock_verify:
            mock_verify.return_value = ({"uid": "u123"}, None, None)
            uid, resp = require_admin_uid(req, response_factory=_drf_response)
        self.assertEqual(uid, "u123")
        self.assertIsNone(resp)

    def test_firebase_unavailable_returns_503(self):
        req = self.rf.get("/api/admin/messages", HTTP_AUTHORIZATION="Bearer testtoken")
        with patch("accounts.auth.verify_firebase_id_token") as mock_verify:
            mock_verify.return_value = (None, "Firebase admin not initialized", 503)
            uid, resp = require_admin_uid(req, response_factory=_drf_response)
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.data.get("code"), "firebase_unavailable")


class AuthHelperTests(TestCase):
    def setUp(self):
        self.rf = RequestFactory()

    def test_admin_claim(self):
        self.assertTrue(is_admin_claims({"uid": "x", "admin": True}))
        self.assertFalse(is_admin_claims({"uid": "x", "admin": "true"}))
        self.assertFalse(is_admin_claims(None))

    @override_settings(DEBUG=False)
    def test_query_token_ignored_outside_debug(self):
        req = self.rf.get("/api/admin/rules", {"token": "abc"})
        self.assertEqual(get_bearer_token(req), "")

    @override_settings(DEBUG=True)
    def test_query_token_accepted_in_debug(self):
        req = self.rf.get("/api/admin/rules", {"token": "abc"})
        self.assertEqual(get_bearer_token(req), "abc")

    def test_bearer_header(self):
        req = self.rf.get("/api/admin/rules", HTTP_AUTHORIZATION="Bearer  tok ")
        self.assertEqual(get_bearer_token(req), "tok")
