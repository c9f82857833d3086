"""Tests for the decoy-field check."""

import logging

import pytest

from app.services.spam_guard import is_decoy_filled


@pytest.mark.parametrize("value", [None, "", "   ", "\n\t"])
def test_empty_decoy_passes(value):
    assert is_decoy_filled(value) is False


@pytest.mark.parametrize("value", ["x", "http://spam.example", "  filled  "])
def test_filled_decoy_detected(value):
    assert is_decoy_filled(value) is True


def test_detection_logged_without_value(caplog):
    with caplog.at_level(logging.INFO, logger="app.services.spam_guard"):
        assert is_decoy_filled("buy-cheap-widgets", source="comments")

    assert any("Decoy field tripped" in r.getMessage() for r in caplog.records)
    assert "buy-cheap-widgets" not in caplog.text
