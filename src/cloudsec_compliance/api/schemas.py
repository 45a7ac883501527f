"""Pydantic request and response schemas for the compliance API.

Request bodies are validated into these models before reaching the service,
and responses are built from the domain objects via the from_* constructors.

Resources:
- Rule — registered compliance rules
- ResourceDescriptor — caller-supplied resource snapshots
- Report / Verdict — check results
- StateValidation — expected-state validation outcome
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from cloudsec_compliance.compliance.models import Report, ResourceDescriptor, ResourceKind, Rule
from cloudsec_compliance.compliance.state_validator import ExpectedState, StateValidationResult
from cloudsec_compliance.core.services import CheckRunResult


# ---------------------------------------------------------------------------
# Rule schemas
# ---------------------------------------------------------------------------


class RuleResponse(BaseModel):
    """A registered compliance rule."""

    id: str = Field(description="Rule identifier, unique within its kind")
    kind: ResourceKind = Field(description="Resource kind the rule applies to")
    severity: str = Field(description="LOW | MEDIUM | HIGH | CRITICAL")
    description: str = Field(description="What the rule checks")

    @classmethod
    def from_rule(cls, rule: Rule) -> "RuleResponse":
        return cls(id=rule.id, kind=rule.kind, severity=rule.severity.name, description=rule.description)


class RuleListResponse(BaseModel):
    """Response for GET /rules."""

    total: int
    rules: list[RuleResponse]


# ---------------------------------------------------------------------------
# Check schemas
# ---------------------------------------------------------------------------


class ResourceDescriptorSchema(BaseModel):
    """A resource snapshot supplied by the caller."""

    kind: ResourceKind = Field(description="SecurityGroup | Bucket | Role | Cluster")
    id: str = Field(description="Resource identifier", min_length=1)
    fields: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw API response fields the rules inspect",
    )

    def to_descriptor(self) -> ResourceDescriptor:
        return ResourceDescriptor(kind=self.kind, id=self.id, fields=self.fields)


class CheckEvaluateRequest(BaseModel):
    """Request body for POST /checks/evaluate."""

    descriptors: list[ResourceDescriptorSchema] = Field(
        description="Descriptor batch to evaluate",
    )
    expected_state: ExpectedState | None = Field(
        default=None,
        description="Optional expected environment state: secure | insecure",
    )


class CheckRunRequest(BaseModel):
    """Request body for POST /checks/run."""

    publish: bool = Field(default=True, description="Publish the failure metric and alert")
    expected_state: ExpectedState | None = Field(
        default=None,
        description="Optional expected environment state: secure | insecure",
    )


class VerdictSchema(BaseModel):
    rule_id: str
    resource_id: str
    resource_kind: ResourceKind
    severity: str
    status: str
    detail: str | None = None


class ReportSchema(BaseModel):
    """Serialized check report."""

    timestamp: datetime
    environment: str | None
    resource_count: int
    verdicts: list[VerdictSchema]
    failure_counts_by_severity: dict[str, int]
    total_failures: int
    error_count: int

    @classmethod
    def from_report(cls, report: Report) -> "ReportSchema":
        return cls.model_validate(report.to_dict())


class StateValidationSchema(BaseModel):
    expected_state: ExpectedState
    ok: bool
    violation_count: int
    violations: list[VerdictSchema]
    unverifiable: list[VerdictSchema]

    @classmethod
    def from_result(cls, result: StateValidationResult) -> "StateValidationSchema":
        return cls.model_validate(result.to_dict())


class CheckRunResponse(BaseModel):
    """Response for the check endpoints."""

    report: ReportSchema
    validation: StateValidationSchema | None = None

    @classmethod
    def from_result(cls, result: CheckRunResult) -> "CheckRunResponse":
        return cls(
            report=ReportSchema.from_report(result.report),
            validation=(
                StateValidationSchema.from_result(result.validation)
                if result.validation is not None
                else None
            ),
        )
