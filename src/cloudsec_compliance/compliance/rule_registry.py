"""Rule registry — ordered compliance rules per resource kind.

The RuleRegistry holds rules keyed by (kind, rule_id). Insertion order is the
evaluation order, which only affects Report ordering since rules are
independent. The registry is validated at registration time: malformed rules
raise ConfigurationError immediately so a bad deployment fails before any run.

The registry is an injectable object rather than a module global;
``create_default_registry`` builds the canonical one from settings.
"""

import dataclasses
from typing import Any

from cloudsec_compliance.compliance.models import ResourceKind, Rule, Severity
from cloudsec_compliance.compliance.rule_catalog import list_catalog
from cloudsec_compliance.errors import (
    ConfigurationError,
    DuplicateRuleError,
)
from cloudsec_compliance.observability import get_logger
from cloudsec_compliance.settings import Settings

logger = get_logger(__name__)


class RuleRegistry:
    """In-memory registry of compliance rules.

    Rules are never mutated or replaced once registered; registering the
    same (kind, id) twice is a configuration defect.
    """

    def __init__(self) -> None:
        self._rules: dict[ResourceKind, dict[str, Rule]] = {}

    def register(self, rule: Rule) -> Rule:
        """Add a rule to the registry.

        Args:
            rule: The rule to register.

        Returns:
            The registered rule.

        Raises:
            UnknownResourceKindError: If the rule's kind names no ResourceKind.
            DuplicateRuleError: If (kind, id) is already registered.
            ConfigurationError: If the rule id is empty, the severity is not a
                Severity, or the predicate is not callable.
        """
        kind = ResourceKind.parse(rule.kind)
        if kind is not rule.kind:
            rule = dataclasses.replace(rule, kind=kind)
        if not rule.id:
            raise ConfigurationError(f"Rule for kind '{rule.kind}' has an empty id")
        if not isinstance(rule.severity, Severity):
            raise ConfigurationError(f"Rule '{rule.id}' has invalid severity {rule.severity!r}")
        if not callable(rule.predicate):
            raise ConfigurationError(f"Rule '{rule.id}' predicate is not callable")

        rules_for_kind = self._rules.setdefault(rule.kind, {})
        if rule.id in rules_for_kind:
            raise DuplicateRuleError(rule.kind.value, rule.id)

        rules_for_kind[rule.id] = rule
        logger.debug(
            "Rule registered",
            kind=rule.kind.value,
            rule_id=rule.id,
            severity=rule.severity.name,
        )
        return rule

    def rules_for(self, kind: ResourceKind) -> tuple[Rule, ...]:
        """Return the rules for a kind in registration order.

        Returns:
            Tuple of rules; empty if none are registered for the kind.
        """
        return tuple(self._rules.get(kind, {}).values())

    def get(self, kind: ResourceKind, rule_id: str) -> Rule | None:
        return self._rules.get(kind, {}).get(rule_id)

    def list_all(self) -> list[Rule]:
        """Return all rules, grouped by kind in registration order."""
        return [rule for rules in self._rules.values() for rule in rules.values()]

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def get_stats(self) -> dict[str, Any]:
        """Return registry statistics.

        Returns:
            Dictionary with the total rule count and per-kind/per-severity breakdowns.
        """
        by_kind: dict[str, int] = {}
        by_severity: dict[str, int] = {}
        for rule in self.list_all():
            by_kind[rule.kind.value] = by_kind.get(rule.kind.value, 0) + 1
            by_severity[rule.severity.name] = by_severity.get(rule.severity.name, 0) + 1

        return {
            "total_rules": len(self),
            "by_kind": by_kind,
            "by_severity": by_severity,
        }


def create_default_registry(settings: Settings | None = None) -> RuleRegistry:
    """Build a registry holding the catalog rules enabled in settings.

    Args:
        settings: Check toggles. Defaults to ``Settings()`` (all checks on).

    Returns:
        A populated RuleRegistry.
    """
    settings = settings or Settings()
    registry = RuleRegistry()
    for entry in list_catalog():
        if not getattr(settings, entry.kind_toggle) or not getattr(settings, entry.rule_toggle):
            logger.info(
                "Rule disabled by configuration",
                kind=entry.rule.kind.value,
                rule_id=entry.rule.id,
            )
            continue
        registry.register(entry.rule)

    logger.info("Default rule registry built", **registry.get_stats())
    return registry
