"""Tests for ComplianceEngine.run_check and failure aggregation.

Covers:
- Verdict ordering (descriptor-order, rule-order)
- Descriptors of kinds without rules
- Severity counting for FAIL only, with ERROR counted separately
- Determinism and report serialization
"""

import pytest

from cloudsec_compliance.compliance.engine import ComplianceEngine, count_failures_by_severity
from cloudsec_compliance.compliance.models import (
    ResourceDescriptor,
    ResourceKind,
    Rule,
    Severity,
    Verdict,
    VerdictStatus,
)
from cloudsec_compliance.compliance.rule_registry import RuleRegistry
from tests.conftest import make_bucket, make_cluster, make_role, make_security_group


def test_empty_batch_yields_empty_report(engine: ComplianceEngine) -> None:
    report = engine.run_check([])

    assert report.verdicts == ()
    assert report.total_failures == 0
    assert report.error_count == 0
    assert dict(report.failure_counts_by_severity) == {severity: 0 for severity in Severity}


def test_compliant_batch_passes_every_rule(engine: ComplianceEngine) -> None:
    batch = [make_security_group(), make_bucket(), make_role(), make_cluster()]
    report = engine.run_check(batch, environment="test")

    assert report.verdicts
    assert all(v.status == VerdictStatus.PASS for v in report.verdicts)
    assert report.pass_count == len(report.verdicts)
    assert report.resource_count == 4
    assert report.environment == "test"


def test_verdicts_follow_descriptor_then_rule_order(engine: ComplianceEngine) -> None:
    batch = [make_cluster(), make_security_group()]
    report = engine.run_check(batch)

    cluster_rules = [rule.id for rule in engine.registry.rules_for(ResourceKind.CLUSTER)]
    assert [(v.resource_id, v.rule_id) for v in report.verdicts] == [
        *[("cloudsecdemo-eks", rule_id) for rule_id in cluster_rules],
        ("sg-0001", "open-ports"),
    ]


def test_kind_without_rules_produces_no_verdicts() -> None:
    """A descriptor whose kind has no rules is skipped silently."""
    registry = RuleRegistry()
    registry.register(
        Rule(id="always", kind=ResourceKind.BUCKET, severity=Severity.LOW, predicate=lambda fields: True)
    )
    report = ComplianceEngine(registry=registry).run_check([make_cluster(), make_bucket()])

    assert [v.resource_kind for v in report.verdicts] == [ResourceKind.BUCKET]
    assert report.resource_count == 2


def test_insecure_cluster_counts_failures_by_severity(engine: ComplianceEngine) -> None:
    """A cluster failing all three checks contributes HIGH 2 and MEDIUM 1."""
    cluster = make_cluster(private_access=False, encrypted=False, logging_enabled=False)
    report = engine.run_check([cluster])

    assert [v.status for v in report.verdicts] == [VerdictStatus.FAIL] * 3
    assert report.failure_counts_by_severity[Severity.HIGH] == 2
    assert report.failure_counts_by_severity[Severity.MEDIUM] == 1
    assert report.failure_counts_by_severity[Severity.CRITICAL] == 0
    assert report.total_failures == 3


def test_error_verdicts_are_not_counted_as_failures(engine: ComplianceEngine) -> None:
    bucket = make_bucket(PublicAccessBlockConfiguration=None)
    report = engine.run_check([bucket])

    assert report.error_count == 1
    assert report.total_failures == 0
    assert report.errors()[0].rule_id == "public-access"


def test_one_bad_resource_does_not_abort_the_run(engine: ComplianceEngine) -> None:
    broken = ResourceDescriptor(kind=ResourceKind.SECURITY_GROUP, id="sg-broken", fields={})
    report = engine.run_check([broken, make_security_group("sg-open", cidrs=["0.0.0.0/0"])])

    assert [v.status for v in report.verdicts] == [VerdictStatus.ERROR, VerdictStatus.FAIL]
    assert report.failures()[0].resource_id == "sg-open"


def test_run_check_is_deterministic(engine: ComplianceEngine) -> None:
    """Two runs over the same batch differ only in timestamp."""
    batch = [make_security_group(cidrs=["0.0.0.0/0"]), make_bucket(Versioning={}), make_role()]
    first = engine.run_check(batch)
    second = engine.run_check(batch)

    assert first.verdicts == second.verdicts
    assert dict(first.failure_counts_by_severity) == dict(second.failure_counts_by_severity)


def test_report_to_dict_uses_severity_names(engine: ComplianceEngine) -> None:
    report = engine.run_check([make_security_group(cidrs=["0.0.0.0/0"])], environment="test")
    payload = report.to_dict()

    assert payload["failure_counts_by_severity"] == {"LOW": 0, "MEDIUM": 0, "HIGH": 1, "CRITICAL": 0}
    assert payload["total_failures"] == 1
    assert payload["verdicts"][0]["severity"] == "HIGH"
    assert payload["verdicts"][0]["status"] == "FAIL"
    assert payload["environment"] == "test"


def test_count_failures_by_severity_ignores_pass_and_error() -> None:
    def verdict(status: VerdictStatus, severity: Severity) -> Verdict:
        return Verdict(
            rule_id="r",
            resource_id="x",
            resource_kind=ResourceKind.BUCKET,
            severity=severity,
            status=status,
        )

    counts = count_failures_by_severity(
        [
            verdict(VerdictStatus.FAIL, Severity.CRITICAL),
            verdict(VerdictStatus.PASS, Severity.CRITICAL),
            verdict(VerdictStatus.ERROR, Severity.LOW),
        ]
    )
    assert counts == {Severity.LOW: 0, Severity.MEDIUM: 0, Severity.HIGH: 0, Severity.CRITICAL: 1}


def test_descriptor_fields_are_isolated_from_caller_mutation(engine: ComplianceEngine) -> None:
    fields = {"IpPermissions": [{"IpRanges": [{"CidrIp": "10.0.0.0/8"}]}]}
    descriptor = ResourceDescriptor(kind=ResourceKind.SECURITY_GROUP, id="sg-m", fields=fields)
    fields["IpPermissions"][0]["IpRanges"].append({"CidrIp": "0.0.0.0/0"})

    report = engine.run_check([descriptor])
    assert report.verdicts[0].status == VerdictStatus.PASS


def test_descriptor_fields_are_read_only_at_every_level() -> None:
    descriptor = make_security_group(cidrs=["10.0.0.0/16"])

    with pytest.raises(AttributeError):
        descriptor.fields["IpPermissions"].append({"IpRanges": [{"CidrIp": "0.0.0.0/0"}]})
    with pytest.raises(TypeError):
        descriptor.fields["IpPermissions"][0]["IpRanges"] = []
    assert len(descriptor.fields["IpPermissions"]) == 1
