"""Tests for the cloudsec-compliance command-line interface."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from cloudsec_compliance import cli
from cloudsec_compliance.compliance.engine import ComplianceEngine
from cloudsec_compliance.core.services import SecurityCheckService
from cloudsec_compliance.errors import FetchError
from cloudsec_compliance.settings import Settings


def _write_descriptors(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


OPEN_GROUP = {
    "kind": "SecurityGroup",
    "id": "sg-open",
    "fields": {"IpPermissions": [{"IpRanges": [{"CidrIp": "0.0.0.0/0"}]}]},
}


def test_rules_lists_enabled_rules(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["rules"], settings=settings)

    assert exit_code == cli.EXIT_OK
    rules = json.loads(capsys.readouterr().out)["rules"]
    assert {"id": "open-ports", "kind": "SecurityGroup", "severity": "HIGH"}.items() <= rules[0].items()


def test_check_descriptor_file_writes_report(settings: Settings, tmp_path: Path) -> None:
    descriptors = _write_descriptors(tmp_path / "descriptors.json", [OPEN_GROUP])
    output = tmp_path / "result.json"

    exit_code = cli.main(["check", "--descriptors", str(descriptors), "--output", str(output)], settings=settings)

    assert exit_code == cli.EXIT_OK
    result = json.loads(output.read_text(encoding="utf-8"))
    assert result["report"]["total_failures"] == 1
    assert "validation" not in result


def test_check_accepts_wrapped_descriptor_batch(settings: Settings, tmp_path: Path) -> None:
    descriptors = _write_descriptors(tmp_path / "descriptors.json", {"descriptors": [OPEN_GROUP]})
    output = tmp_path / "result.json"

    cli.main(["check", "--descriptors", str(descriptors), "--output", str(output)], settings=settings)

    assert json.loads(output.read_text(encoding="utf-8"))["report"]["resource_count"] == 1


@pytest.mark.parametrize(
    ("expected_state", "exit_code"),
    [("secure", cli.EXIT_VIOLATIONS), ("insecure", cli.EXIT_OK)],
)
def test_check_expected_state_sets_exit_code(
    settings: Settings,
    tmp_path: Path,
    expected_state: str,
    exit_code: int,
) -> None:
    descriptors = _write_descriptors(tmp_path / "descriptors.json", [OPEN_GROUP])
    output = tmp_path / "result.json"

    assert (
        cli.main(
            ["check", "--descriptors", str(descriptors), "--expect", expected_state, "--output", str(output)],
            settings=settings,
        )
        == exit_code
    )
    assert json.loads(output.read_text(encoding="utf-8"))["validation"]["expected_state"] == expected_state


def test_invalid_json_exits_with_failure(
    settings: Settings,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    descriptors = tmp_path / "descriptors.json"
    descriptors.write_text("[{not json", encoding="utf-8")

    assert cli.main(["check", "--descriptors", str(descriptors)], settings=settings) == cli.EXIT_FAILURE
    assert "Invalid JSON" in capsys.readouterr().err


def test_unknown_kind_exits_with_failure(settings: Settings, tmp_path: Path) -> None:
    descriptors = _write_descriptors(tmp_path / "descriptors.json", [{"kind": "Database", "id": "db", "fields": {}}])
    assert cli.main(["check", "--descriptors", str(descriptors)], settings=settings) == cli.EXIT_FAILURE


def test_load_descriptors_builds_descriptors(tmp_path: Path) -> None:
    descriptors = cli.load_descriptors(_write_descriptors(tmp_path / "d.json", [OPEN_GROUP]))
    assert [(d.kind.value, d.id) for d in descriptors] == [("SecurityGroup", "sg-open")]


def test_live_run_failure_exits_with_failure(
    settings: Settings,
    engine: ComplianceEngine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    collector = MagicMock(**{"collect.side_effect": FetchError("list_roles failed")})
    service = SecurityCheckService(engine=engine, collector=collector, publisher=MagicMock())
    monkeypatch.setattr(cli, "build_check_service", lambda settings, live=True: service)

    assert cli.main(["check", "--publish"], settings=settings) == cli.EXIT_FAILURE
