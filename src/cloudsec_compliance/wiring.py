"""Process-level wiring of the check service.

Builds the boto3 session, fetchers, publisher, rule registry and engine once
per process from Settings. Entry points (Lambda handler, API lifespan, CLI)
call ``build_check_service`` and keep the result for the process lifetime.
"""

import boto3

from cloudsec_compliance.adapters.fetchers import create_resource_collector, create_session
from cloudsec_compliance.adapters.publisher import ReportPublisher
from cloudsec_compliance.compliance.engine import ComplianceEngine
from cloudsec_compliance.compliance.rule_registry import create_default_registry
from cloudsec_compliance.core.services import SecurityCheckService
from cloudsec_compliance.observability import get_logger
from cloudsec_compliance.settings import Settings

logger = get_logger(__name__)


def build_publisher(settings: Settings, session: boto3.Session) -> ReportPublisher:
    return ReportPublisher(
        cloudwatch_client=session.client("cloudwatch"),
        sns_client=session.client("sns"),
        topic_arn=settings.sns_topic_arn,
        namespace=settings.metric_namespace,
        environment=settings.environment,
        alert_thresholds=settings.alert_thresholds,
        default_alert_severity=settings.default_alert_severity,
        alerts_enabled=settings.alerts_enabled,
    )


def build_check_service(
    settings: Settings,
    session: boto3.Session | None = None,
    live: bool = True,
) -> SecurityCheckService:
    """Wire a SecurityCheckService from settings.

    Args:
        settings: Service settings.
        session: boto3 Session to reuse. Created from settings when omitted.
        live: When False, build an offline service without AWS collaborators
            (evaluation of supplied descriptors only).

    Returns:
        Configured SecurityCheckService.

    Raises:
        ConfigurationError: If the rule registry cannot be built.
    """
    engine = ComplianceEngine(registry=create_default_registry(settings))
    if not live:
        return SecurityCheckService(
            engine=engine,
            environment=settings.environment,
            check_interval_minutes=settings.check_interval_minutes,
        )

    session = session or create_session(settings)
    logger.info(
        "Building check service",
        environment=settings.environment,
        region=session.region_name,
        project_tag=settings.project_tag,
    )
    return SecurityCheckService(
        engine=engine,
        collector=create_resource_collector(settings, session),
        publisher=build_publisher(settings, session),
        environment=settings.environment,
        check_interval_minutes=settings.check_interval_minutes,
    )
