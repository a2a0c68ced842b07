"""Tests for log level resolution."""

import logging

from bank_ledger.lib.logging_setup import resolve_level


def test_explicit_level_wins(monkeypatch):
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "ERROR")
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING


def test_env_level_used_when_missing_or_unknown(monkeypatch):
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "warning")
    assert resolve_level(None) == logging.WARNING
    assert resolve_level("chatty") == logging.WARNING


def test_defaults_to_info(monkeypatch):
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "nonsense")
    assert resolve_level(None) == logging.INFO
