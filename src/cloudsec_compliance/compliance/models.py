"""Core value types for the compliance engine.

- ResourceDescriptor: normalized snapshot of one resource's configuration.
- Rule: a named, severity-tagged predicate scoped to one resource kind.
- Verdict: PASS / FAIL / ERROR outcome of one rule against one descriptor.
- Report: ordered verdicts of one run plus the severity summary.

All types are frozen. Descriptors copy their field tree into read-only
containers on construction (mappings become MappingProxyType, lists become
tuples), so neither the fetcher nor a rule can change a descriptor once built.
"""

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from cloudsec_compliance.errors import UnknownResourceKindError


class ResourceKind(enum.StrEnum):
    """Kinds of cloud resources the engine knows how to check."""

    SECURITY_GROUP = "SecurityGroup"
    BUCKET = "Bucket"
    ROLE = "Role"
    CLUSTER = "Cluster"

    @classmethod
    def parse(cls, value: "str | ResourceKind") -> "ResourceKind":
        """Coerce a string into a ResourceKind.

        Raises:
            UnknownResourceKindError: If the value names no known kind.
        """
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownResourceKindError(value) from exc


class Severity(enum.IntEnum):
    """Ordinal compliance impact of a rule."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class VerdictStatus(enum.StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


Predicate = Callable[[Mapping[str, Any]], bool]


def freeze_fields(value: Any) -> Any:
    """Return a read-only copy of a JSON-like value tree."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_fields(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_fields(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze_fields(item) for item in value)
    return value


@dataclass(frozen=True)
class ResourceDescriptor:
    """Normalized configuration snapshot of one monitored resource.

    Attributes:
        kind: Resource kind; selects which rules apply.
        id: Resource identifier (group id, bucket name, role name, cluster name).
        fields: Schema-free tree of API response fields, read-only at every level.
    """

    kind: ResourceKind
    id: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ResourceKind.parse(self.kind))
        object.__setattr__(self, "fields", freeze_fields(self.fields))


@dataclass(frozen=True)
class Rule:
    """A compliance rule. The predicate returns True when the resource is compliant.

    Attributes:
        id: Rule identifier, unique within its kind.
        kind: Resource kind the rule applies to.
        severity: Impact used to weight failures.
        predicate: Pure function over a descriptor's fields.
        description: What the rule checks.
        failure_detail: Detail attached to FAIL verdicts.
    """

    id: str
    kind: ResourceKind
    severity: Severity
    predicate: Predicate = field(compare=False)
    description: str = ""
    failure_detail: str | None = None


@dataclass(frozen=True)
class Verdict:
    """Outcome of one rule against one resource."""

    rule_id: str
    resource_id: str
    resource_kind: ResourceKind
    severity: Severity
    status: VerdictStatus
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "resource_id": self.resource_id,
            "resource_kind": self.resource_kind.value,
            "severity": self.severity.name,
            "status": self.status.value,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class Report:
    """Aggregated result of one check run.

    Attributes:
        timestamp: When the run completed (UTC).
        verdicts: Verdicts in (descriptor-order, rule-order).
        failure_counts_by_severity: FAIL verdict count per severity. Every
            severity is present, in ascending order.
        error_count: Number of ERROR verdicts. Not folded into the severity counts.
        resource_count: Number of descriptors in the batch.
        environment: Optional environment label carried through to the publisher.
    """

    timestamp: datetime
    verdicts: tuple[Verdict, ...]
    failure_counts_by_severity: Mapping[Severity, int]
    error_count: int = 0
    resource_count: int = 0
    environment: str | None = None

    @property
    def total_failures(self) -> int:
        """Total FAIL verdicts across all severities."""
        return sum(self.failure_counts_by_severity.values())

    @property
    def pass_count(self) -> int:
        return sum(1 for v in self.verdicts if v.status == VerdictStatus.PASS)

    def failures(self) -> list[Verdict]:
        return [v for v in self.verdicts if v.status == VerdictStatus.FAIL]

    def errors(self) -> list[Verdict]:
        return [v for v in self.verdicts if v.status == VerdictStatus.ERROR]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (alert payload, API response)."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "environment": self.environment,
            "resource_count": self.resource_count,
            "verdicts": [v.to_dict() for v in self.verdicts],
            "failure_counts_by_severity": {
                severity.name: count for severity, count in self.failure_counts_by_severity.items()
            },
            "total_failures": self.total_failures,
            "error_count": self.error_count,
        }
