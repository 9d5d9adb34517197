"""Tests for criticality-tagged external calls."""

import asyncio
from unittest.mock import patch

import httpx
import pytest

from core.enums import Criticality
from core.errors import SessionNotFoundError
from core.external import guarded_call, is_rate_limit_error, log_external_error


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://graph.example.com/events")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestIsRateLimitError:
    def test_429_is_rate_limit(self):
        assert is_rate_limit_error(_status_error(429))

    def test_other_errors_are_not(self):
        assert not is_rate_limit_error(_status_error(500))
        assert not is_rate_limit_error(RuntimeError("boom"))


class TestLogExternalError:
    def test_rate_limit_sends_sentry_message(self):
        with patch("core.external.sentry_sdk") as mock_sentry:
            log_external_error(_status_error(429), "send_whatsapp")

        mock_sentry.capture_message.assert_called_once()
        mock_sentry.capture_exception.assert_not_called()

    def test_timeout_is_only_logged(self):
        with patch("core.external.sentry_sdk") as mock_sentry:
            log_external_error(asyncio.TimeoutError(), "create_meeting")

        mock_sentry.capture_message.assert_not_called()
        mock_sentry.capture_exception.assert_not_called()

    def test_other_errors_captured(self):
        error = RuntimeError("boom")
        with patch("core.external.sentry_sdk") as mock_sentry:
            log_external_error(error, "send_email")

        mock_sentry.capture_exception.assert_called_once_with(error)


class TestGuardedCall:
    @pytest.mark.asyncio
    async def test_returns_call_result(self):
        async def call():
            return "ok"

        result = await guarded_call("op", call, criticality=Criticality.mandatory)
        assert result == "ok"

    @pytest.mark.asyncio
    async def test_best_effort_failure_returns_fallback(self):
        async def call():
            raise RuntimeError("down")

        with patch("core.external.sentry_sdk"):
            result = await guarded_call(
                "op", call, criticality=Criticality.best_effort, fallback=[]
            )

        assert result == []

    @pytest.mark.asyncio
    async def test_mandatory_failure_propagates(self):
        async def call():
            raise ConnectionError("db down")

        with pytest.raises(ConnectionError):
            await guarded_call("op", call, criticality=Criticality.mandatory)

    @pytest.mark.asyncio
    async def test_mandatory_rejection_propagates_unchanged(self):
        async def call():
            raise SessionNotFoundError("nope")

        with pytest.raises(SessionNotFoundError):
            await guarded_call("op", call, criticality=Criticality.mandatory)

    @pytest.mark.asyncio
    async def test_timeout_applies_to_best_effort(self):
        async def slow():
            await asyncio.sleep(1)
            return True

        result = await guarded_call(
            "op", slow, criticality=Criticality.best_effort, timeout=0.01, fallback=False
        )
        assert result is False

    @pytest.mark.asyncio
    async def test_timeout_applies_to_mandatory(self):
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(asyncio.TimeoutError):
            await guarded_call("op", slow, criticality=Criticality.mandatory, timeout=0.01)
