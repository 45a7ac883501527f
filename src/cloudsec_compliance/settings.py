"""Service settings for cloudsec-compliance.

All settings use the CLOUDSEC_ prefix and cover:
- Project identification (name and tag used to select monitored resources)
- Resource-name patterns per resource kind
- Per-check enable toggles
- Metric and alert publication (CloudWatch namespace, SNS topic, thresholds)
- Scheduling cadence and logging
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SEVERITY_NAMES = ("LOW", "MEDIUM", "HIGH", "CRITICAL")


class Settings(BaseSettings):
    """Settings for the compliance checker.

    Environment variable prefix: CLOUDSEC_
    """

    service_name: str = "cloudsec-compliance"

    # -------------------------------------------------------------------------
    # Project identification
    # -------------------------------------------------------------------------

    environment: str = Field(
        default="dev",
        description="Deployment environment name, published as the metric's Environment dimension.",
    )
    project_tag: str = Field(
        default="cloudsecdemo",
        description="Value of the Project tag carried by monitored security groups.",
    )
    aws_region: str | None = Field(
        default=None,
        description="AWS region for all clients. Falls back to the boto3 default chain when unset.",
    )

    # -------------------------------------------------------------------------
    # Resource patterns to monitor
    # -------------------------------------------------------------------------

    security_group_pattern: str = Field(
        default="-sg$",
        description="Regex matched against security group names.",
    )
    bucket_pattern: str = Field(
        default="^cloudsecdemo-",
        description="Regex matched against S3 bucket names.",
    )
    role_pattern: str = Field(
        default="^cloudsecdemo-",
        description="Regex matched against IAM role names.",
    )
    cluster_pattern: str = Field(
        default="^cloudsecdemo-",
        description="Regex matched against EKS cluster names.",
    )

    # -------------------------------------------------------------------------
    # Check toggles
    # -------------------------------------------------------------------------

    check_security_groups: bool = True
    check_s3: bool = True
    check_iam: bool = True
    check_eks: bool = True

    check_open_ports: bool = True
    check_public_access: bool = True
    check_bucket_encryption: bool = True
    check_versioning: bool = True
    check_bucket_logging: bool = True
    check_wildcard_permissions: bool = True
    check_role_trust: bool = True
    check_private_endpoint: bool = True
    check_cluster_encryption: bool = True
    check_cluster_logging: bool = True

    # -------------------------------------------------------------------------
    # Metric and alert publication
    # -------------------------------------------------------------------------

    metric_namespace: str = Field(
        default="CloudSecDemo",
        description="CloudWatch namespace for the SecurityCheckFailures metric.",
    )
    sns_topic_arn: str = Field(
        default="",
        description="SNS topic receiving alerts. Alerts are skipped with a warning when empty.",
    )
    alerts_enabled: bool = True
    alert_thresholds: dict[str, int] = Field(
        default_factory=lambda: {"CRITICAL": 1, "HIGH": 3, "MEDIUM": 5, "LOW": 10},
        description="Failure count per severity at which the alert escalates to that severity.",
    )
    default_alert_severity: str = Field(
        default="HIGH",
        description="Alert severity used when failures exist but no threshold is reached.",
    )

    # -------------------------------------------------------------------------
    # Scheduling and logging
    # -------------------------------------------------------------------------

    check_interval_minutes: int = Field(
        default=5,
        description="Cadence of the scheduled check. Runs longer than this log a warning.",
    )
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="CLOUDSEC_")

    @field_validator("alert_thresholds")
    @classmethod
    def _validate_thresholds(cls, value: dict[str, int]) -> dict[str, int]:
        unknown = set(value) - set(_SEVERITY_NAMES)
        if unknown:
            raise ValueError(f"Unknown severities in alert_thresholds: {sorted(unknown)}")
        return value

    @field_validator("default_alert_severity")
    @classmethod
    def _validate_default_severity(cls, value: str) -> str:
        if value not in _SEVERITY_NAMES:
            raise ValueError(f"default_alert_severity must be one of {_SEVERITY_NAMES}")
        return value
