import os
import unittest
from datetime import timedelta
from http.cookies import SimpleCookie
from unittest import mock

import jwt
from flask import Flask, make_response

from pantry_backend.services.auth_tokens import (
    AuthSettings,
    clear_session_cookies,
    decode_token,
    issue_session_tokens,
    set_session_cookies,
)


def _cookies_from(response) -> SimpleCookie:
    cookies = SimpleCookie()
    for header in response.headers.getlist("Set-Cookie"):
        cookies.load(header)
    return cookies


class SessionTokenTests(unittest.TestCase):
    def setUp(self):
        self.settings = AuthSettings(
            secret="test-secret",
            access_token_ttl=timedelta(minutes=5),
            refresh_token_ttl=timedelta(days=7),
        )

    def test_tokens_share_session_id(self):
        tokens = issue_session_tokens("user-123", settings=self.settings)

        access = decode_token(
            tokens.access_token, self.settings, expected_type="access"
        )
        refresh = decode_token(
            tokens.refresh_token, self.settings, expected_type="refresh"
        )

        self.assertEqual(access["sub"], "user-123")
        self.assertEqual(refresh["sub"], "user-123")
        self.assertEqual(access["sid"], tokens.session_id)
        self.assertEqual(refresh["sid"], tokens.session_id)
        self.assertAlmostEqual(
            access["exp"] - access["iat"],
            self.settings.access_token_ttl.total_seconds(),
            delta=2,
        )
        self.assertLess(tokens.access_expires_at, tokens.refresh_expires_at)

    def test_wrong_token_type_is_rejected(self):
        tokens = issue_session_tokens("user-123", settings=self.settings)

        with self.assertRaises(ValueError):
            decode_token(
                tokens.refresh_token, self.settings, expected_type="access"
            )

    def test_foreign_signature_is_rejected(self):
        tokens = issue_session_tokens("user-123", settings=self.settings)
        other = AuthSettings(secret="another-secret")

        with self.assertRaises(jwt.InvalidSignatureError):
            decode_token(tokens.access_token, other)

    def test_set_and_clear_cookies(self):
        tokens = issue_session_tokens("user-123", settings=self.settings)

        app = Flask(__name__)
        with app.test_request_context():
            response = make_response("ok")
            set_session_cookies(response, tokens, settings=self.settings)
            cookies = _cookies_from(response)

            access_cookie = cookies["pantry_access"]
            refresh_cookie = cookies["pantry_refresh"]
            self.assertEqual(access_cookie.value, tokens.access_token)
            self.assertEqual(refresh_cookie.value, tokens.refresh_token)
            self.assertEqual(access_cookie["max-age"], "300")
            self.assertEqual(
                refresh_cookie["max-age"], str(7 * 24 * 60 * 60)
            )
            for cookie in (access_cookie, refresh_cookie):
                self.assertEqual(cookie["path"], "/")
                self.assertEqual(cookie["samesite"].lower(), "lax")
                self.assertTrue(cookie["httponly"])
                self.assertTrue(cookie["secure"])

            cleared_response = make_response("bye")
            clear_session_cookies(cleared_response, settings=self.settings)
            cleared = _cookies_from(cleared_response)
            self.assertEqual(cleared["pantry_access"]["max-age"], "0")
            self.assertEqual(cleared["pantry_refresh"]["max-age"], "0")


class AuthSettingsLoadTests(unittest.TestCase):
    def test_reads_secret_and_cookie_flag_from_app_config(self):
        app = Flask(__name__)
        app.config.update(AUTH_SECRET="from-config", AUTH_COOKIE_SECURE=False)

        settings = AuthSettings.load(app)

        self.assertEqual(settings.secret, "from-config")
        self.assertFalse(settings.cookie_secure)

    def test_falls_back_to_environment(self):
        env = {
            "PANTRY_AUTH_SECRET": "from-env",
            "PANTRY_AUTH_COOKIE_SECURE": "false",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = AuthSettings.load(Flask(__name__))

        self.assertEqual(settings.secret, "from-env")
        self.assertFalse(settings.cookie_secure)

    def test_missing_secret_raises(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(RuntimeError):
                AuthSettings.load(Flask(__name__))


if __name__ == "__main__":
    unittest.main()
