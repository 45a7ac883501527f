"""API router for cloudsec-compliance.

All endpoints are registered here and included in main.py under the /api/v1
prefix. Routes only translate between schemas and the check service; errors
are mapped to HTTP status codes here.

Endpoints:
- GET   /rules             — List registered compliance rules
- POST  /checks/evaluate   — Evaluate caller-supplied descriptors (no AWS access)
- POST  /checks/validate   — Evaluate descriptors against an expected state
- POST  /checks/run        — Run a live check cycle (fetch, evaluate, publish)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from cloudsec_compliance.api.schemas import (
    CheckEvaluateRequest,
    CheckRunRequest,
    CheckRunResponse,
    RuleListResponse,
    RuleResponse,
)
from cloudsec_compliance.core.services import SecurityCheckService
from cloudsec_compliance.errors import ConfigurationError, RunFailure
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["compliance"])


def get_check_service(request: Request) -> SecurityCheckService:
    """Return the check service stored on app state by the lifespan handler.

    Args:
        request: The incoming request.

    Returns:
        The process-wide SecurityCheckService.
    """
    return request.app.state.check_service


ServiceDep = Annotated[SecurityCheckService, Depends(get_check_service)]


@router.get("/rules", response_model=RuleListResponse)
def list_rules(service: ServiceDep) -> RuleListResponse:
    """List every registered rule in evaluation order."""
    rules = service.engine.registry.list_all()
    return RuleListResponse(total=len(rules), rules=[RuleResponse.from_rule(r) for r in rules])


@router.post("/checks/evaluate", response_model=CheckRunResponse)
def evaluate_descriptors(body: CheckEvaluateRequest, service: ServiceDep) -> CheckRunResponse:
    """Evaluate the supplied descriptor batch and return the report."""
    result = service.evaluate(
        [d.to_descriptor() for d in body.descriptors],
        expected_state=body.expected_state,
    )
    return CheckRunResponse.from_result(result)


@router.post("/checks/validate", response_model=CheckRunResponse)
def validate_descriptors(body: CheckEvaluateRequest, service: ServiceDep) -> CheckRunResponse:
    """Evaluate descriptors and validate them against the expected state.

    Returns 409 with the full result when the environment does not match.
    """
    if body.expected_state is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="expected_state is required for validation",
        )
    result = service.evaluate(
        [d.to_descriptor() for d in body.descriptors],
        expected_state=body.expected_state,
    )
    response = CheckRunResponse.from_result(result)
    if result.validation is not None and not result.validation.ok:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=response.model_dump(mode="json"))
    return response


@router.post("/checks/run", response_model=CheckRunResponse)
def run_check(body: CheckRunRequest, service: ServiceDep) -> CheckRunResponse:
    """Run a live check cycle against the project's AWS resources."""
    try:
        result = service.run(publish=body.publish, expected_state=body.expected_state)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RunFailure as exc:
        logger.error("Live check run failed", error=str(exc))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return CheckRunResponse.from_result(result)
