"""
Tests for exception classes and their HTTP mapping.
"""

import json

import pytest

from postengine.api.errors import error_response, error_status
from postengine.config import ConfigurationError
from postengine.exceptions import (
    CreditsExhaustedError,
    InvalidInputError,
    MediaTooLargeError,
    MissingIdentityError,
    PostEngineError,
    StoreUnavailableError,
    UpstreamError,
    UpstreamTimeoutError,
)


class TestExceptionAttributes:
    """Typed attributes and messages."""

    def test_credits_exhausted(self) -> None:
        exc = CreditsExhaustedError(balance=0, required=1)
        assert exc.balance == 0
        assert exc.required == 1
        assert "Balance: 0" in str(exc)

    def test_media_too_large_is_invalid_input(self) -> None:
        exc = MediaTooLargeError(size=6_000_000, limit=5_000_000)
        assert isinstance(exc, InvalidInputError)
        assert exc.size == 6_000_000
        assert "5000000" in exc.message

    def test_upstream_errors(self) -> None:
        timeout = UpstreamTimeoutError("captions", 30.0)
        failure = UpstreamError("hashtags", "bad gateway", status_code=502)

        assert timeout.call == "captions"
        assert "30.0s" in str(timeout)
        assert failure.status_code == 502
        assert not isinstance(timeout, UpstreamError)

    def test_store_unavailable(self) -> None:
        exc = StoreUnavailableError("debit", "timed out after 10.0s")
        assert exc.operation == "debit"
        assert "debit" in str(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            InvalidInputError("x"),
            MissingIdentityError("pe_anon"),
            CreditsExhaustedError(0, 1),
            StoreUnavailableError("op", "x"),
            UpstreamTimeoutError("captions", 1.0),
            UpstreamError("captions", "x"),
        ],
    )
    def test_all_derive_from_base(self, exc: Exception) -> None:
        assert isinstance(exc, PostEngineError)


class TestErrorMapping:
    """Exception to status/code mapping."""

    @pytest.mark.parametrize(
        ("exc", "status_code", "code"),
        [
            (InvalidInputError("bad"), 400, "invalid_input"),
            (MediaTooLargeError(10, 5), 413, "media_too_large"),
            (MissingIdentityError("pe_anon"), 400, "missing_identity"),
            (CreditsExhaustedError(0, 1), 402, "credits_exhausted"),
            (ConfigurationError("no key"), 500, "server_misconfigured"),
            (UpstreamTimeoutError("captions", 30.0), 504, "upstream_timeout"),
            (UpstreamError("captions", "boom", 500), 502, "upstream_error"),
            (StoreUnavailableError("read_balance", "down"), 503, "store_unavailable"),
        ],
    )
    def test_error_status(self, exc: Exception, status_code: int, code: str) -> None:
        assert error_status(exc) == (status_code, code)

    def test_invalid_input_message_passed_through(self) -> None:
        response = error_response(InvalidInputError("prompt exceeds 400 characters (401)"))
        assert json.loads(response.body) == {
            "error": "invalid_input",
            "message": "prompt exceeds 400 characters (401)",
        }

    def test_server_errors_hide_detail(self) -> None:
        response = error_response(UpstreamError("captions", "secret internals"))
        assert "secret" not in response.body.decode()

    def test_paywall_carries_balance(self) -> None:
        response = error_response(CreditsExhaustedError(balance=0, required=1))
        assert response.status_code == 402
        assert json.loads(response.body)["remaining"] == 0
