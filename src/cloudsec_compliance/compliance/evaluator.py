"""Rule evaluator — apply one rule to one resource descriptor.

Evaluation is pure: no I/O, no mutation, no counters. A predicate that
raises (most often FieldMissingError for an absent API field) yields an ERROR
verdict carrying the exception message, so one bad resource never aborts a
run. Only a kind mismatch between rule and descriptor propagates, because it
means the registry was wired incorrectly.
"""

from cloudsec_compliance.compliance.models import (
    ResourceDescriptor,
    Rule,
    Verdict,
    VerdictStatus,
)
from cloudsec_compliance.errors import ConfigurationError
from cloudsec_compliance.observability import get_logger

logger = get_logger(__name__)


class RuleEvaluator:
    """Evaluates rules against descriptors, converting predicate failures to ERROR verdicts."""

    def evaluate(self, rule: Rule, descriptor: ResourceDescriptor) -> Verdict:
        """Evaluate a single rule against a single descriptor.

        Args:
            rule: The rule to apply.
            descriptor: The resource to check.

        Returns:
            A PASS, FAIL, or ERROR verdict.

        Raises:
            ConfigurationError: If the rule's kind differs from the descriptor's.
        """
        if rule.kind != descriptor.kind:
            raise ConfigurationError(
                f"Rule '{rule.id}' targets kind '{rule.kind}' but was applied to "
                f"'{descriptor.kind}' resource '{descriptor.id}'"
            )

        try:
            compliant = bool(rule.predicate(descriptor.fields))
        except Exception as exc:
            detail = str(exc) or type(exc).__name__
            logger.warning(
                "Rule evaluation error",
                rule_id=rule.id,
                resource_id=descriptor.id,
                kind=descriptor.kind.value,
                error=detail,
            )
            return self._verdict(rule, descriptor, VerdictStatus.ERROR, detail)

        if compliant:
            return self._verdict(rule, descriptor, VerdictStatus.PASS, None)
        return self._verdict(rule, descriptor, VerdictStatus.FAIL, rule.failure_detail)

    @staticmethod
    def _verdict(
        rule: Rule,
        descriptor: ResourceDescriptor,
        status: VerdictStatus,
        detail: str | None,
    ) -> Verdict:
        return Verdict(
            rule_id=rule.id,
            resource_id=descriptor.id,
            resource_kind=descriptor.kind,
            severity=rule.severity,
            status=status,
            detail=detail,
        )
