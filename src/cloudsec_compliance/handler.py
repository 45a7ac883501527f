"""AWS Lambda entry point for the scheduled security check.

Invoked by an EventBridge schedule (every ``check_interval_minutes``). The
check service is built on the first invocation and reused while the
execution environment stays warm.

Event keys (all optional):
- ``expected_state``: ``secure`` or ``insecure``; the report is validated against it
- ``publish``: set to false to skip the metric and alert

Returns ``{"statusCode": 200, "body": <JSON report>}``. A failed cycle is
alerted by the service and re-raised so Lambda records the error.
"""

import json
from typing import Any

from pydantic import BaseModel

from cloudsec_compliance.compliance.state_validator import ExpectedState
from cloudsec_compliance.core.services import SecurityCheckService
from cloudsec_compliance.observability import configure_logging, get_logger
from cloudsec_compliance.settings import Settings
from cloudsec_compliance.wiring import build_check_service

logger = get_logger(__name__)

_service: SecurityCheckService | None = None


class CheckEvent(BaseModel):
    """Recognized keys of the invocation event. Unknown keys are ignored.

    Console tests and EventBridge input templates often send strings, so
    ``publish`` accepts ``"false"``, ``"0"``, ``"no"`` and ``"off"`` as False.
    """

    source: str = "direct"
    publish: bool = True
    expected_state: ExpectedState | None = None


def get_service() -> SecurityCheckService:
    """Return the process-wide check service, building it on first use."""
    global _service
    if _service is None:
        settings = Settings()
        configure_logging(settings.log_level, json_logs=settings.log_json)
        _service = build_check_service(settings)
    return _service


def lambda_handler(event: dict[str, Any] | None, context: Any) -> dict[str, Any]:
    """Run one security check cycle.

    Args:
        event: Scheduler event; see module docstring for recognized keys.
        context: Lambda context object (unused).

    Returns:
        API Gateway style response with the serialized check result.

    Raises:
        pydantic.ValidationError: If a recognized event key has an invalid value.
    """
    check_event = CheckEvent.model_validate(event or {})
    service = get_service()
    logger.info("Starting security check run", trigger=check_event.source)

    result = service.run(publish=check_event.publish, expected_state=check_event.expected_state)
    return {
        "statusCode": 200,
        "body": json.dumps(result.to_dict(), default=str),
    }
