"""Compliance engine — single-pass evaluation of a descriptor batch.

The engine processes a batch by:
1. Looking up the registry's rules for each descriptor's kind
2. Evaluating every rule against the descriptor via the RuleEvaluator
3. Appending verdicts in (descriptor-order, rule-order)
4. Counting FAIL verdicts per rule severity and ERROR verdicts separately
5. Returning an immutable Report

The engine does not fetch, retry, or publish, and keeps no state between
runs. Given the same batch and registry it produces the same Report apart
from the timestamp. Per-resource problems become ERROR verdicts; only a
malformed registry (ConfigurationError) escapes run_check.
"""

import time
from collections.abc import Iterable
from datetime import UTC, datetime
from types import MappingProxyType

from cloudsec_compliance.compliance.evaluator import RuleEvaluator
from cloudsec_compliance.compliance.models import (
    Report,
    ResourceDescriptor,
    Severity,
    Verdict,
    VerdictStatus,
)
from cloudsec_compliance.compliance.rule_registry import RuleRegistry, create_default_registry
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)


def count_failures_by_severity(verdicts: Iterable[Verdict]) -> dict[Severity, int]:
    """Count FAIL verdicts per severity.

    Every severity is present in ascending order, so two reports with the same
    verdicts serialize identically.

    Args:
        verdicts: Verdicts to aggregate.

    Returns:
        Mapping of severity to FAIL count. ERROR verdicts are not counted.
    """
    counts = {severity: 0 for severity in Severity}
    for verdict in verdicts:
        if verdict.status == VerdictStatus.FAIL:
            counts[verdict.severity] += 1
    return counts


class ComplianceEngine:
    """Runs the rule registry over a batch of resource descriptors.

    Args:
        registry: Rules to apply.
        evaluator: Evaluator applying one rule to one descriptor.
    """

    def __init__(self, registry: RuleRegistry, evaluator: RuleEvaluator | None = None) -> None:
        self._registry = registry
        self._evaluator = evaluator if evaluator is not None else RuleEvaluator()

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    def run_check(
        self,
        descriptors: Iterable[ResourceDescriptor],
        environment: str | None = None,
    ) -> Report:
        """Evaluate every applicable rule against every descriptor.

        Args:
            descriptors: The complete batch for this run.
            environment: Optional environment label copied into the Report.

        Returns:
            The Report for this run.

        Raises:
            ConfigurationError: If the registry returns a rule for the wrong kind.
        """
        start_time = time.monotonic()
        batch = list(descriptors)

        logger.info("Starting compliance check", resource_count=len(batch), environment=environment)

        verdicts: list[Verdict] = []
        for descriptor in batch:
            for rule in self._registry.rules_for(descriptor.kind):
                verdicts.append(self._evaluator.evaluate(rule, descriptor))

        failure_counts = count_failures_by_severity(verdicts)
        error_count = sum(1 for v in verdicts if v.status == VerdictStatus.ERROR)

        report = Report(
            timestamp=datetime.now(UTC),
            verdicts=tuple(verdicts),
            failure_counts_by_severity=MappingProxyType(failure_counts),
            error_count=error_count,
            resource_count=len(batch),
            environment=environment,
        )

        logger.info(
            "Compliance check complete",
            resource_count=len(batch),
            verdict_count=len(verdicts),
            total_failures=report.total_failures,
            error_count=error_count,
            failures_by_severity={s.name: c for s, c in failure_counts.items()},
            duration_ms=round((time.monotonic() - start_time) * 1000, 2),
        )
        return report


def create_default_engine() -> ComplianceEngine:
    """Create a ComplianceEngine over the default rule registry.

    Returns:
        Configured ComplianceEngine instance.
    """
    return ComplianceEngine(registry=create_default_registry())
