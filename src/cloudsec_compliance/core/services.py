"""Check service — the harness around the compliance engine.

SecurityCheckService runs one check cycle. Fetching completes before evaluation starts:
1. Collect every descriptor through the resource collector
2. Run the engine over the complete batch
3. Publish the report (metric + alert)
4. Optionally validate the report against the expected environment state

The engine itself never fails for a bad resource. Anything that fails the
whole cycle (fetch or publish) is logged, reported as a CRITICAL
"Security Check Error" alert, and re-raised so the scheduler records the
invocation as failed and retries on the next tick.
"""

import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from cloudsec_compliance.compliance.engine import ComplianceEngine
from cloudsec_compliance.compliance.models import Report, ResourceDescriptor
from cloudsec_compliance.compliance.state_validator import (
    ExpectedState,
    StateValidationResult,
    validate_expected_state,
)
from cloudsec_compliance.core.interfaces import IReportPublisher, IResourceCollector
from cloudsec_compliance.errors import ConfigurationError, PublishError
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)


def _coerce_state(expected_state: ExpectedState | str | None) -> ExpectedState | None:
    if expected_state is None:
        return None
    return ExpectedState(expected_state)


@dataclass(frozen=True)
class CheckRunResult:
    """Report of one cycle plus the optional expected-state validation."""

    report: Report
    validation: StateValidationResult | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"report": self.report.to_dict()}
        if self.validation is not None:
            result["validation"] = self.validation.to_dict()
        return result


class SecurityCheckService:
    """Runs check cycles: collect, evaluate, publish, validate.

    Args:
        engine: Compliance engine holding the rule registry.
        collector: Source of descriptor batches. Required for live runs only.
        publisher: Metric/alert publisher. Required when publishing.
        environment: Environment label carried into every report.
        check_interval_minutes: Scheduled cadence; slower runs log a warning.
    """

    def __init__(
        self,
        engine: ComplianceEngine,
        collector: IResourceCollector | None = None,
        publisher: IReportPublisher | None = None,
        environment: str | None = None,
        check_interval_minutes: int = 5,
    ) -> None:
        self._engine = engine
        self._collector = collector
        self._publisher = publisher
        self._environment = environment
        self._interval_seconds = check_interval_minutes * 60

    @property
    def engine(self) -> ComplianceEngine:
        return self._engine

    def evaluate(
        self,
        descriptors: Iterable[ResourceDescriptor],
        expected_state: ExpectedState | str | None = None,
    ) -> CheckRunResult:
        """Evaluate caller-supplied descriptors without touching AWS.

        Args:
            descriptors: Descriptor batch to check.
            expected_state: Optional secure/insecure state to validate against.

        Returns:
            CheckRunResult with the report and optional validation.
        """
        state = _coerce_state(expected_state)
        report = self._engine.run_check(descriptors, environment=self._environment)
        return self._with_validation(report, state)

    def run(
        self,
        publish: bool = True,
        expected_state: ExpectedState | str | None = None,
    ) -> CheckRunResult:
        """Run one full check cycle against live resources.

        Args:
            publish: Publish the metric and alert for the report.
            expected_state: Optional secure/insecure state to validate against.

        Returns:
            CheckRunResult with the report and optional validation.

        Raises:
            ConfigurationError: If the service lacks a collector, or a
                publisher while publishing.
            ValueError: If expected_state is not a known state. Raised before
                anything is fetched or published.
            RunFailure: If fetching or publishing fails for the cycle.
        """
        if self._collector is None:
            raise ConfigurationError("SecurityCheckService has no resource collector configured")
        if publish and self._publisher is None:
            raise ConfigurationError("SecurityCheckService has no publisher configured")
        state = _coerce_state(expected_state)

        start_time = time.monotonic()
        logger.info("Starting security check run", environment=self._environment, publish=publish)

        try:
            descriptors = self._collector.collect()
            report = self._engine.run_check(descriptors, environment=self._environment)
            if publish and self._publisher is not None:
                self._publisher.publish(report)
        except Exception as exc:
            logger.exception("Security check run failed", environment=self._environment)
            self._alert_run_failure(exc)
            raise

        elapsed = time.monotonic() - start_time
        if elapsed > self._interval_seconds:
            logger.warning(
                "Security check run exceeded the check interval",
                elapsed_seconds=round(elapsed, 2),
                interval_seconds=self._interval_seconds,
            )

        logger.info(
            "Security check run complete",
            total_failures=report.total_failures,
            error_count=report.error_count,
            elapsed_seconds=round(elapsed, 2),
        )
        return self._with_validation(report, state)

    def _with_validation(
        self,
        report: Report,
        expected_state: ExpectedState | None,
    ) -> CheckRunResult:
        if expected_state is None:
            return CheckRunResult(report=report)
        return CheckRunResult(report=report, validation=validate_expected_state(report, expected_state))

    def _alert_run_failure(self, exc: Exception) -> None:
        if self._publisher is None:
            return
        try:
            self._publisher.send_alert(
                title="Security Check Error",
                message=str(exc) or type(exc).__name__,
                severity="CRITICAL",
            )
        except PublishError:
            logger.error("Could not send run failure alert", original_error=str(exc))
