import unittest
from unittest.mock import MagicMock, patch

import requests
from fastapi import FastAPI
from fastapi.testclient import TestClient

from numgate.gate import (
    RemoteSessionValidator,
    SessionGateMiddleware,
    evaluate_request,
    is_excluded_path,
    is_protected_path,
    login_redirect_url,
)


class StaticValidator:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error
        self.calls = []

    def fetch_user(self, cookie_header):
        self.calls.append(cookie_header)
        if self.error:
            raise self.error
        return self.user


class PathMatchingTests(unittest.TestCase):
    def test_excluded_paths(self):
        for path in (
            "/api/auth/get-session",
            "/_next/static/chunk.js",
            "/_next/image?url=x",
            "/favicon.ico",
            "/static/app.css",
        ):
            self.assertTrue(is_excluded_path(path), path)

    def test_regular_paths_not_excluded(self):
        for path in ("/", "/dashboard", "/login"):
            self.assertFalse(is_excluded_path(path), path)

    def test_protected_prefix(self):
        self.assertTrue(is_protected_path("/dashboard"))
        self.assertTrue(is_protected_path("/dashboard/settings"))
        self.assertFalse(is_protected_path("/"))
        self.assertFalse(is_protected_path("/login"))
        self.assertTrue(is_protected_path("/admin", protected_prefix="/admin"))

    def test_login_redirect_url_encodes_path(self):
        self.assertEqual(login_redirect_url("/dashboard"), "/login?redirect=%2Fdashboard")
        self.assertEqual(
            login_redirect_url("/dashboard/a b", login_path="/signin"),
            "/signin?redirect=%2Fdashboard%2Fa+b",
        )


class EvaluateRequestTests(unittest.TestCase):
    def test_unprotected_path_skips_validation(self):
        validator = StaticValidator(error=RuntimeError("should not be called"))
        decision = evaluate_request("/", None, validator)
        self.assertTrue(decision.allowed)
        self.assertEqual(validator.calls, [])

    def test_api_path_always_allowed(self):
        validator = StaticValidator()
        self.assertTrue(evaluate_request("/api/listNumbers", None, validator).allowed)
        self.assertEqual(validator.calls, [])

    def test_missing_session_redirects(self):
        decision = evaluate_request("/dashboard", None, StaticValidator(user=None))
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.redirect_url, "/login?redirect=%2Fdashboard")

    def test_valid_session_allowed(self):
        validator = StaticValidator(user={"id": "u1"})
        decision = evaluate_request("/dashboard", "a=b", validator)
        self.assertTrue(decision.allowed)
        self.assertEqual(validator.calls, ["a=b"])

    def test_validator_error_fails_closed(self):
        validator = StaticValidator(error=requests.ConnectionError("down"))
        with self.assertLogs("numgate.gate", level="ERROR"):
            decision = evaluate_request("/dashboard", "a=b", validator)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.redirect_url, "/login?redirect=%2Fdashboard")


class RemoteSessionValidatorTests(unittest.TestCase):
    def _response(self, ok=True, status_code=200, body=None, json_error=None):
        response = MagicMock()
        response.ok = ok
        response.status_code = status_code
        if json_error:
            response.json.side_effect = json_error
        else:
            response.json.return_value = body
        return response

    @patch("numgate.gate.requests.get")
    def test_forwards_cookie_header(self, mock_get):
        mock_get.return_value = self._response(body={"user": {"id": "u1"}})
        validator = RemoteSessionValidator(base_url="http://testserver/", timeout=2.0)

        user = validator.fetch_user("better-auth.session_token=abc")

        self.assertEqual(user, {"id": "u1"})
        mock_get.assert_called_once_with(
            "http://testserver/api/auth/get-session",
            headers={"cookie": "better-auth.session_token=abc"},
            timeout=2.0,
        )

    @patch("numgate.gate.requests.get")
    def test_non_success_is_unauthenticated(self, mock_get):
        mock_get.return_value = self._response(ok=False, status_code=401)
        self.assertIsNone(RemoteSessionValidator("http://x").fetch_user(""))

    @patch("numgate.gate.requests.get")
    def test_null_body_is_unauthenticated(self, mock_get):
        mock_get.return_value = self._response(body=None)
        self.assertIsNone(RemoteSessionValidator("http://x").fetch_user(""))

    @patch("numgate.gate.requests.get")
    def test_body_without_user_is_unauthenticated(self, mock_get):
        mock_get.return_value = self._response(body={"session": {"token": "t"}})
        self.assertIsNone(RemoteSessionValidator("http://x").fetch_user(""))

    @patch("numgate.gate.requests.get")
    def test_unparseable_body_raises(self, mock_get):
        mock_get.return_value = self._response(json_error=ValueError("not json"))
        with self.assertRaises(ValueError):
            RemoteSessionValidator("http://x").fetch_user("")


class SessionGateMiddlewareTests(unittest.TestCase):
    def _client(self, validator=None) -> TestClient:
        app = FastAPI()

        @app.get("/dashboard")
        def dashboard():
            return {"page": "dashboard"}

        @app.get("/")
        def home():
            return {"page": "home"}

        @app.get("/api/ping")
        def ping():
            return {"pong": True}

        app.add_middleware(SessionGateMiddleware, validator=validator)
        return TestClient(app)

    def test_protected_without_session_redirects(self):
        client = self._client(StaticValidator(user=None))
        response = client.get("/dashboard", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        self.assertEqual(response.headers["location"], "/login?redirect=%2Fdashboard")

    def test_protected_with_session_forwarded(self):
        validator = StaticValidator(user={"id": "u1"})
        client = self._client(validator)
        response = client.get(
            "/dashboard", headers={"cookie": "better-auth.session_token=abc"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"page": "dashboard"})
        self.assertEqual(validator.calls, ["better-auth.session_token=abc"])

    def test_unprotected_paths_forwarded(self):
        validator = StaticValidator(error=RuntimeError("not called"))
        client = self._client(validator)
        self.assertEqual(client.get("/").json(), {"page": "home"})
        self.assertEqual(client.get("/api/ping").json(), {"pong": True})
        self.assertEqual(validator.calls, [])

    @patch("numgate.gate.requests.get")
    def test_default_validator_calls_request_origin(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        client = self._client()
        response = client.get("/dashboard", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        called_url = mock_get.call_args[0][0]
        self.assertEqual(called_url, "http://testserver/api/auth/get-session")


if __name__ == "__main__":
    unittest.main()
