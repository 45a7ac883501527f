"""Error taxonomy for the compliance checker.

- FieldMissingError: a rule predicate could not find a field it needs. The
  evaluator converts it into an ERROR verdict; it never leaves run_check.
- ConfigurationError: a deployment defect (duplicate rule, unknown kind,
  malformed registry). Raised at startup and never folded into a Report.
- RunFailure: a whole check cycle failed in a collaborator (fetcher or
  publisher). The harness logs it, alerts, and re-raises.
"""


class ComplianceError(Exception):
    """Base class for all compliance checker errors."""


class FieldMissingError(ComplianceError):
    """A required field is absent from a descriptor's field tree.

    Args:
        path: Dotted path of the missing field, e.g.
            ``PublicAccessBlockConfiguration.BlockPublicAcls``.
        reason: Why the field is absent, when the fetcher recorded an API error.
    """

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        self.reason = reason
        message = f"Required field '{path}' is missing from resource descriptor"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigurationError(ComplianceError):
    """The rule registry or check configuration is malformed."""


class DuplicateRuleError(ConfigurationError):
    """A rule with the same (kind, id) is already registered."""

    def __init__(self, kind: str, rule_id: str) -> None:
        self.kind = kind
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' is already registered for kind '{kind}'")


class UnknownResourceKindError(ConfigurationError):
    """A rule or descriptor references a resource kind that is not supported."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Unknown resource kind: {kind!r}")


class RunFailure(ComplianceError):
    """An entire check cycle failed outside the engine."""


class FetchError(RunFailure):
    """Resource enumeration or field retrieval failed for a whole service."""


class PublishError(RunFailure):
    """Metric or alert publication failed."""
