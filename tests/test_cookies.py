"""Unit tests for auth/cookies.py -- session cookie wire format.

Covers:
- serialize_cookie() emits the value URL-encoded with every required attribute
- clear_cookie() empties the value and expires it immediately
- parse_cookie() URL-decodes values and tolerates absent/empty headers
- session_token() returns "" when the session cookie is missing
"""

from __future__ import annotations

import pytest

from auth.cookies import SESSION_COOKIE_NAME, clear_cookie, parse_cookie, serialize_cookie, session_token


class TestSerialize:
    def test_full_attribute_set(self) -> None:
        header = serialize_cookie("__session", "abc123", max_age=300)
        assert header == "__session=abc123; Max-Age=300; Path=/; HttpOnly; Secure; SameSite=Lax"

    def test_value_is_url_encoded(self) -> None:
        header = serialize_cookie("__session", "a b;c=d/é")
        assert header.startswith("__session=a%20b%3Bc%3Dd%2F%C3%A9;")

    def test_secure_can_be_dropped_for_plain_http(self) -> None:
        header = serialize_cookie("__session", "abc", secure=False)
        assert "Secure" not in header
        assert "HttpOnly" in header

    def test_clear_cookie_expires_immediately(self) -> None:
        header = clear_cookie("__session")
        assert header.startswith("__session=;")
        assert "Max-Age=0" in header
        assert "Path=/" in header


class TestParse:
    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_absent_or_empty_header(self, header) -> None:
        assert parse_cookie(header) == {}
        assert session_token(header) == ""

    def test_values_are_url_decoded(self) -> None:
        cookies = parse_cookie("__session=a%20b%3Bc%3Dd; theme=dark")
        assert cookies["__session"] == "a b;c=d"
        assert cookies["theme"] == "dark"

    def test_session_token_ignores_other_cookies(self) -> None:
        assert session_token("theme=dark; lang=en") == ""

    def test_session_token_with_custom_name(self) -> None:
        assert session_token("sid=xyz; __session=abc", name="sid") == "xyz"

    def test_serialized_value_reads_back(self) -> None:
        """The name=value pair of a Set-Cookie header is a valid Cookie header."""
        token = "Zx-_9+/=="
        pair = serialize_cookie(SESSION_COOKIE_NAME, token).split(";", 1)[0]
        assert session_token(pair) == token
