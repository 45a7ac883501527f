"""Expected-state validation for the secure/insecure demo environments.

The demo environment is toggled between a hardened ("secure") and a
deliberately weak ("insecure") configuration. After a toggle, a report is
checked against the state the environment should be in:

- secure: every FAIL verdict is a violation
- insecure: every PASS verdict is a violation (the weakness was not applied)

ERROR verdicts cannot confirm either state and are listed as unverifiable.
"""

import enum
from dataclasses import dataclass
from typing import Any

from cloudsec_compliance.compliance.models import Report, Verdict, VerdictStatus
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)


class ExpectedState(enum.StrEnum):
    SECURE = "secure"
    INSECURE = "insecure"


@dataclass(frozen=True)
class StateValidationResult:
    """Outcome of comparing a report with an expected environment state.

    Attributes:
        expected_state: The state the environment should be in.
        violations: Verdicts contradicting the expected state.
        unverifiable: ERROR verdicts that could not be checked.
    """

    expected_state: ExpectedState
    violations: tuple[Verdict, ...]
    unverifiable: tuple[Verdict, ...]

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "expected_state": self.expected_state.value,
            "ok": self.ok,
            "violation_count": len(self.violations),
            "violations": [v.to_dict() for v in self.violations],
            "unverifiable": [v.to_dict() for v in self.unverifiable],
        }


def validate_expected_state(report: Report, expected_state: ExpectedState | str) -> StateValidationResult:
    """Compare a report's verdicts with the expected environment state.

    Args:
        report: Report of a completed check run.
        expected_state: ``secure`` or ``insecure``.

    Returns:
        StateValidationResult listing violations and unverifiable verdicts.

    Raises:
        ValueError: If expected_state is not a known state.
    """
    state = ExpectedState(expected_state)
    violating_status = VerdictStatus.FAIL if state == ExpectedState.SECURE else VerdictStatus.PASS

    violations = tuple(v for v in report.verdicts if v.status == violating_status)
    unverifiable = tuple(v for v in report.verdicts if v.status == VerdictStatus.ERROR)

    for verdict in violations:
        logger.warning(
            "Resource does not match expected state",
            expected_state=state.value,
            rule_id=verdict.rule_id,
            resource_id=verdict.resource_id,
            status=verdict.status.value,
        )

    logger.info(
        "Expected state validation complete",
        expected_state=state.value,
        violation_count=len(violations),
        unverifiable_count=len(unverifiable),
    )
    return StateValidationResult(
        expected_state=state,
        violations=violations,
        unverifiable=unverifiable,
    )
