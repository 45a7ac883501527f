"""Tests for RuleRegistry and create_default_registry."""

import pytest

from cloudsec_compliance.compliance.models import ResourceKind, Rule, Severity
from cloudsec_compliance.compliance.rule_catalog import list_catalog
from cloudsec_compliance.compliance.rule_registry import RuleRegistry, create_default_registry
from cloudsec_compliance.errors import ConfigurationError, DuplicateRuleError, UnknownResourceKindError
from cloudsec_compliance.settings import Settings


def _always_pass(fields) -> bool:
    return True


def _rule(rule_id: str = "custom", kind=ResourceKind.BUCKET, severity=Severity.LOW) -> Rule:
    return Rule(id=rule_id, kind=kind, severity=severity, predicate=_always_pass)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_and_lookup() -> None:
    registry = RuleRegistry()
    rule = registry.register(_rule())

    assert registry.get(ResourceKind.BUCKET, "custom") is rule
    assert registry.rules_for(ResourceKind.BUCKET) == (rule,)
    assert len(registry) == 1


def test_rules_for_kind_without_rules_is_empty() -> None:
    assert RuleRegistry().rules_for(ResourceKind.CLUSTER) == ()


def test_rules_for_preserves_registration_order() -> None:
    registry = RuleRegistry()
    for rule_id in ("b-rule", "a-rule", "c-rule"):
        registry.register(_rule(rule_id))
    assert [rule.id for rule in registry.rules_for(ResourceKind.BUCKET)] == ["b-rule", "a-rule", "c-rule"]


def test_duplicate_rule_is_rejected() -> None:
    """Registering the same (kind, id) twice raises DuplicateRuleError."""
    registry = RuleRegistry()
    registry.register(_rule("encryption"))

    with pytest.raises(DuplicateRuleError) as exc_info:
        registry.register(_rule("encryption", severity=Severity.HIGH))

    assert exc_info.value.rule_id == "encryption"
    assert registry.get(ResourceKind.BUCKET, "encryption").severity == Severity.LOW


def test_same_id_allowed_across_kinds() -> None:
    """Rule ids are unique per kind only."""
    registry = RuleRegistry()
    registry.register(_rule("encryption", kind=ResourceKind.BUCKET))
    registry.register(_rule("encryption", kind=ResourceKind.CLUSTER))
    assert len(registry) == 2


def test_unknown_kind_is_rejected() -> None:
    rule = Rule(id="x", kind="Database", severity=Severity.LOW, predicate=_always_pass)  # type: ignore[arg-type]
    with pytest.raises(UnknownResourceKindError):
        RuleRegistry().register(rule)


def test_string_kind_is_coerced() -> None:
    rule = Rule(id="x", kind="Bucket", severity=Severity.LOW, predicate=_always_pass)  # type: ignore[arg-type]
    registered = RuleRegistry().register(rule)
    assert registered.kind is ResourceKind.BUCKET


@pytest.mark.parametrize(
    "rule",
    [
        Rule(id="", kind=ResourceKind.BUCKET, severity=Severity.LOW, predicate=_always_pass),
        Rule(id="bad-severity", kind=ResourceKind.BUCKET, severity=5, predicate=_always_pass),  # type: ignore[arg-type]
        Rule(id="not-callable", kind=ResourceKind.BUCKET, severity=Severity.LOW, predicate=None),  # type: ignore[arg-type]
    ],
)
def test_malformed_rules_are_rejected(rule: Rule) -> None:
    with pytest.raises(ConfigurationError):
        RuleRegistry().register(rule)


def test_get_stats() -> None:
    registry = RuleRegistry()
    registry.register(_rule("one", severity=Severity.LOW))
    registry.register(_rule("two", kind=ResourceKind.ROLE, severity=Severity.CRITICAL))

    stats = registry.get_stats()

    assert stats["total_rules"] == 2
    assert stats["by_kind"] == {"Bucket": 1, "Role": 1}
    assert stats["by_severity"] == {"LOW": 1, "CRITICAL": 1}


# ---------------------------------------------------------------------------
# Default registry
# ---------------------------------------------------------------------------


def test_default_registry_holds_whole_catalog(registry: RuleRegistry) -> None:
    assert len(registry) == len(list_catalog())


def test_default_registry_kind_toggle_disables_kind() -> None:
    registry = create_default_registry(Settings(check_eks=False))
    assert registry.rules_for(ResourceKind.CLUSTER) == ()
    assert registry.rules_for(ResourceKind.BUCKET)


def test_default_registry_rule_toggle_disables_single_rule() -> None:
    registry = create_default_registry(Settings(check_versioning=False))
    assert registry.get(ResourceKind.BUCKET, "versioning") is None
    assert registry.get(ResourceKind.BUCKET, "encryption") is not None
