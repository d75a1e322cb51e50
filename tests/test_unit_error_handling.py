"""
Tests for error handling and sanitization.

Tests cover:
- Error sanitization in production vs development
- SQL query and file path redaction
- Domain exception construction and HTTP status mapping
- Exception handler response bodies
"""

from unittest.mock import patch

import pytest

from app.core.errors import (
    ConflictError,
    InvalidArgumentError,
    MemberSearchError,
    NotFoundError,
    get_status_code,
)
from app.main import _sanitize_error_details


class TestSanitizeErrorDetails:
    """Tests for the _sanitize_error_details function."""

    def test_returns_all_details_in_non_production(self):
        """All details are returned outside production."""
        details = {
            "message": "Something went wrong",
            "file_path": "/app/app/main.py",
            "sql_query": "SELECT * FROM members WHERE member_id = 1",
        }

        with patch("app.main.settings") as mock_settings:
            mock_settings.app_env = "local"

            result = _sanitize_error_details(details)

            assert result == details

    @pytest.mark.parametrize(
        "value",
        [
            "/app/app/repos/member_repo.py",
            "C:\\app\\repos\\member_repo.py",
            "SELECT members.member_id FROM members",
            "select count(*) from members",
            "INSERT INTO teams (name) VALUES ('teamA')",
            "UPDATE members SET age = 1",
            "DELETE FROM members",
        ],
    )
    def test_redacts_sensitive_strings_in_production(self, value):
        with patch("app.main.settings") as mock_settings:
            mock_settings.app_env = "prod"

            result = _sanitize_error_details({"info": value})

            assert result["info"] == "[REDACTED]"

    def test_sanitizes_nested_dictionaries_and_lists(self):
        details = {
            "outer": {"inner": {"file": "/app/main.py", "safe": "keep this"}},
            "errors": [{"file": "/app/a.py", "message": "Error 1"}, "plain"],
        }

        with patch("app.main.settings") as mock_settings:
            mock_settings.app_env = "prod"

            result = _sanitize_error_details(details)

            assert result["outer"]["inner"] == {"file": "[REDACTED]", "safe": "keep this"}
            assert result["errors"][0] == {"file": "[REDACTED]", "message": "Error 1"}
            assert result["errors"][1] == "plain"

    def test_preserves_safe_and_non_string_values(self):
        details = {"field": "password", "allowed": ["age", "username"], "limit": 0, "x": None}

        with patch("app.main.settings") as mock_settings:
            mock_settings.app_env = "prod"

            assert _sanitize_error_details(details) == details


class TestMemberSearchError:
    """Tests for the domain exception hierarchy."""

    def test_error_creation(self):
        error = MemberSearchError("Test error", details={"key": "value"})
        assert error.message == "Test error"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error"

    def test_error_with_no_details(self):
        assert MemberSearchError("Simple error").details == {}

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (InvalidArgumentError("bad"), 400),
            (NotFoundError("missing"), 404),
            (ConflictError("dup"), 409),
            (MemberSearchError("base"), 500),
            (RuntimeError("other"), 500),
        ],
    )
    def test_status_code_mapping(self, error, status_code):
        assert get_status_code(error) == status_code

    def test_subclasses_share_base(self):
        for cls in (InvalidArgumentError, NotFoundError, ConflictError):
            assert issubclass(cls, MemberSearchError)


class TestExceptionHandlers:
    """Tests for the registered exception handlers."""

    @pytest.mark.anyio
    async def test_domain_error_body_shape(self, client):
        resp = await client.get("/api/v1/members", params={"sort": "secret,asc"})

        assert resp.status_code == 400
        assert set(resp.json()) == {"error", "message", "details"}

    @pytest.mark.anyio
    async def test_http_exception_body_shape(self, client):
        with patch("app.api.routes.test_utils.settings") as mock_settings:
            from app.core.config import AppEnvironment

            mock_settings.app_env = AppEnvironment.PROD
            resp = await client.post("/api/test-utils/seed")

        assert resp.status_code == 403
        body = resp.json()
        assert body["error"] == "HTTPException"
        assert body["details"] == {}
