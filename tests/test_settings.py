"""Tests for Settings loading and validation."""

import pytest
from pydantic import ValidationError

from cloudsec_compliance.settings import Settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.metric_namespace == "CloudSecDemo"
    assert settings.alert_thresholds == {"CRITICAL": 1, "HIGH": 3, "MEDIUM": 5, "LOW": 10}
    assert settings.default_alert_severity == "HIGH"


def test_environment_variables_use_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDSEC_ENVIRONMENT", "prod")
    monkeypatch.setenv("CLOUDSEC_CHECK_EKS", "false")
    monkeypatch.setenv("CLOUDSEC_ALERT_THRESHOLDS", '{"CRITICAL": 2}')

    settings = Settings()

    assert settings.environment == "prod"
    assert settings.check_eks is False
    assert settings.alert_thresholds == {"CRITICAL": 2}


def test_unknown_threshold_severity_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(alert_thresholds={"URGENT": 1})


def test_unknown_default_alert_severity_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(default_alert_severity="SEVERE")
