"""ReportPublisher — CloudWatch metric and SNS alert publication.

Consumes a Report after every run:
- Puts the SecurityCheckFailures metric (FAIL total, Environment dimension)
- When the FAIL total is above zero, publishes an SNS alert whose body holds
  the message, severity, timestamp and the serialized report

ERROR verdicts are not part of the failure metric; they are logged so a
check that could not run stays visible without triggering the alert.

Alert severity escalates through the configured per-severity thresholds: the
most severe level whose FAIL count reaches its threshold wins, otherwise the
configured default applies.
"""

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from cloudsec_compliance.compliance.models import Report, Severity
from cloudsec_compliance.errors import PublishError
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)

METRIC_NAME = "SecurityCheckFailures"
_SUBJECT_MAX_LENGTH = 100


def resolve_alert_severity(
    failure_counts: Mapping[Severity, int],
    thresholds: Mapping[str, int],
    default: str = "HIGH",
) -> str:
    """Choose the alert severity for a set of failure counts.

    Args:
        failure_counts: FAIL count per severity.
        thresholds: Minimum count per severity name that escalates to it.
        default: Severity used when no threshold is reached.

    Returns:
        Severity name for the alert subject and body.
    """
    for severity in sorted(Severity, reverse=True):
        threshold = thresholds.get(severity.name)
        if threshold is not None and failure_counts.get(severity, 0) >= threshold:
            return severity.name
    return default


class ReportPublisher:
    """Publishes check reports as metrics and alerts.

    Args:
        cloudwatch_client: boto3 CloudWatch client.
        sns_client: boto3 SNS client.
        topic_arn: SNS topic for alerts. Alerts are skipped when empty.
        namespace: CloudWatch metric namespace.
        environment: Value of the Environment metric dimension.
        alert_thresholds: Per-severity escalation thresholds.
        default_alert_severity: Severity when no threshold is reached.
        alerts_enabled: Disable to publish metrics only.
    """

    def __init__(
        self,
        cloudwatch_client: Any,
        sns_client: Any,
        topic_arn: str,
        namespace: str = "CloudSecDemo",
        environment: str = "dev",
        alert_thresholds: Mapping[str, int] | None = None,
        default_alert_severity: str = "HIGH",
        alerts_enabled: bool = True,
    ) -> None:
        self._cloudwatch = cloudwatch_client
        self._sns = sns_client
        self._topic_arn = topic_arn
        self._namespace = namespace
        self._environment = environment
        self._thresholds = dict(alert_thresholds or {})
        self._default_alert_severity = default_alert_severity
        self._alerts_enabled = alerts_enabled

    def publish(self, report: Report) -> None:
        """Publish the failure metric and, if anything failed, an alert.

        Args:
            report: The completed check report.

        Raises:
            PublishError: If CloudWatch or SNS rejects the call.
        """
        failures = report.total_failures
        self._put_failure_metric(failures)

        if report.error_count:
            logger.warning(
                "Checks could not be evaluated",
                error_count=report.error_count,
                resources=sorted({v.resource_id for v in report.errors()}),
            )

        if failures > 0:
            severity = resolve_alert_severity(
                report.failure_counts_by_severity,
                self._thresholds,
                self._default_alert_severity,
            )
            self.send_alert(
                title="Security Check Failures",
                message=f"Found {failures} security check failures",
                severity=severity,
                details=report.to_dict(),
            )

    def _put_failure_metric(self, failures: int) -> None:
        try:
            self._cloudwatch.put_metric_data(
                Namespace=self._namespace,
                MetricData=[
                    {
                        "MetricName": METRIC_NAME,
                        "Value": failures,
                        "Unit": "Count",
                        "Dimensions": [{"Name": "Environment", "Value": self._environment}],
                    }
                ],
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to publish failure metric", error=str(exc))
            raise PublishError(f"put_metric_data failed: {exc}") from exc

        logger.info(
            "Failure metric published",
            namespace=self._namespace,
            metric=METRIC_NAME,
            value=failures,
            environment=self._environment,
        )

    def send_alert(
        self,
        title: str,
        message: str,
        severity: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Publish a structured alert to the SNS topic.

        Args:
            title: Alert title, prefixed with the severity in the subject.
            message: Short human-readable summary.
            severity: LOW | MEDIUM | HIGH | CRITICAL.
            details: Optional structured payload (usually the report).

        Raises:
            PublishError: If SNS rejects the publish call.
        """
        if not self._alerts_enabled:
            logger.info("Alerts disabled, skipping alert", title=title, severity=severity)
            return
        if not self._topic_arn:
            logger.warning("No SNS topic configured, skipping alert", title=title, severity=severity)
            return

        body = {
            "message": message,
            "severity": severity,
            "timestamp": datetime.now(UTC).isoformat(),
            "details": details,
        }
        try:
            self._sns.publish(
                TopicArn=self._topic_arn,
                Subject=f"[{severity}] {title}"[:_SUBJECT_MAX_LENGTH],
                Message=json.dumps(body, indent=2, default=str),
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to send alert", title=title, error=str(exc))
            raise PublishError(f"sns publish failed: {exc}") from exc

        logger.info("Alert sent", title=title, severity=severity, topic_arn=self._topic_arn)
