"""Tests for configuration loading and threshold resolution."""

import math

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from socket_scanner.core.config import (
    Config,
    MissingCredentialPolicy,
    Thresholds,
    load_config,
    resolve_thresholds,
)


def test_defaults():
    thresholds = resolve_thresholds()
    assert thresholds.fatal == 0.3
    assert thresholds.warn == 0.5


def test_valid_overrides_from_strings():
    thresholds = resolve_thresholds("0.2", "0.6")
    assert thresholds == Thresholds(fatal=0.2, warn=0.6)


def test_empty_string_override_uses_default_silently():
    with capture_logs() as logs:
        thresholds = resolve_thresholds("", "  ")

    assert thresholds == Thresholds()
    assert logs == []


@pytest.mark.parametrize("raw", ["abc", "1.5", "-0.1", "nan", True, [0.2]])
def test_invalid_fatal_override_falls_back_with_warning(raw):
    with capture_logs() as logs:
        thresholds = resolve_thresholds(raw, None)

    assert thresholds.fatal == 0.3
    assert thresholds.warn == 0.5
    assert len(logs) == 1
    assert logs[0]["log_level"] == "warning"
    assert logs[0]["threshold"] == "fatal"


def test_invalid_warn_override_keeps_valid_fatal():
    with capture_logs() as logs:
        thresholds = resolve_thresholds("0.1", "2")

    assert thresholds == Thresholds(fatal=0.1, warn=0.5)
    assert logs[0]["event"] == "threshold_out_of_range"
    assert logs[0]["threshold"] == "warn"


def test_inverted_overrides_revert_to_defaults():
    """fatal >= warn breaks the ordering, so both defaults are used."""
    with capture_logs() as logs:
        thresholds = resolve_thresholds("0.6", "0.4")

    assert thresholds == Thresholds()
    assert logs[-1]["event"] == "threshold_order_invalid"


def test_thresholds_model_rejects_bad_order():
    with pytest.raises(ValidationError):
        Thresholds(fatal=0.5, warn=0.5)


def test_boundary_values_accepted():
    thresholds = resolve_thresholds(0, 1)
    assert thresholds.fatal == 0.0
    assert thresholds.warn == 1.0
    assert not math.isnan(thresholds.fatal)


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("SOCKET_SCANNER_TOKEN", "env-key")
    monkeypatch.setenv("SOCKET_SCANNER_FATAL_THRESHOLD", "0.25")
    monkeypatch.setenv("SOCKET_SCANNER_WARN_THRESHOLD", "0.55")
    monkeypatch.setenv("SOCKET_SCANNER_MISSING_TOKEN_POLICY", "skip")

    config = load_config()

    assert config.api_token == "env-key"
    assert config.thresholds() == Thresholds(fatal=0.25, warn=0.55)
    assert config.missing_credential_policy == MissingCredentialPolicy.SKIP


def test_legacy_token_variable(monkeypatch):
    monkeypatch.delenv("SOCKET_SCANNER_TOKEN", raising=False)
    monkeypatch.setenv("NI_SOCKETDEV_TOKEN", "legacy-key")

    assert load_config().api_token == "legacy-key"


def test_primary_token_variable_wins(monkeypatch):
    monkeypatch.setenv("SOCKET_SCANNER_TOKEN", "primary")
    monkeypatch.setenv("NI_SOCKETDEV_TOKEN", "legacy")

    assert load_config().api_token == "primary"


def test_unknown_policy_defaults_to_error():
    with capture_logs() as logs:
        config = Config(api_token="", missing_credential_policy="sometimes")

    assert config.missing_credential_policy == MissingCredentialPolicy.ERROR
    assert logs[0]["event"] == "invalid_missing_credential_policy"


def test_numeric_threshold_overrides_are_accepted():
    config = Config(api_token="", fatal_threshold=0.1, warn_threshold=0.2)
    assert config.thresholds() == Thresholds(fatal=0.1, warn=0.2)
