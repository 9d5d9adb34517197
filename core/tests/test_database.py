"""Tests for database URL handling."""

import os
from unittest.mock import patch

import pytest

from core.database import get_engine, is_configured, to_async_url


@pytest.mark.parametrize(
    "url",
    ["postgresql://u:p@db:5432/schedules", "postgres://u:p@db:5432/schedules"],
)
def test_plain_urls_use_asyncpg(url):
    assert to_async_url(url) == "postgresql+asyncpg://u:p@db:5432/schedules"


def test_async_url_passes_through():
    url = "postgresql+asyncpg://u:p@db/schedules"
    assert to_async_url(url) == url


def test_engine_requires_database_url():
    with patch.dict(os.environ, {}, clear=True), patch("core.database._engine", None):
        assert is_configured() is False
        with pytest.raises(ValueError, match="DATABASE_URL"):
            get_engine()
