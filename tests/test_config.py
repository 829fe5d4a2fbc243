"""
Tests for environment-driven settings.
"""

import pytest

from src.common.config import Settings


@pytest.mark.parametrize("raw,expected", [
    ("http://a.example,http://b.example", ["http://a.example", "http://b.example"]),
    (" http://a.example , ", ["http://a.example"]),
    ('["http://a.example", "http://b.example"]', ["http://a.example", "http://b.example"]),
])
def test_allowed_origins_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("ALLOWED_ORIGINS", raw)
    assert Settings().ALLOWED_ORIGINS == expected


def test_allowed_origins_default(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    assert Settings().ALLOWED_ORIGINS == ["*"]
