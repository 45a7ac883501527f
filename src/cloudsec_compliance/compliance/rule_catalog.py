"""Rule catalog — the canonical compliance rules for each resource kind.

This module is the single source of truth for which checks exist, their
severity, and the settings toggles that enable them. Predicates are pure
functions over a descriptor's field tree and return True when the resource
is compliant. They raise FieldMissingError (via the fields helpers) when a
field they depend on is absent.

Field names follow the AWS API responses the fetchers store verbatim:
- SecurityGroup: ``ec2.describe_security_groups`` entry
- Bucket: ``PublicAccessBlockConfiguration``, ``ServerSideEncryptionConfiguration``,
  ``Versioning``, ``Logging``
- Role: ``iam.list_roles`` entry plus ``InlinePolicies`` [{PolicyName, PolicyDocument}]
- Cluster: ``eks.describe_cluster()["cluster"]``
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cloudsec_compliance.compliance.fields import (
    as_list,
    field_present,
    policy_statements,
    require_field,
    require_list,
)
from cloudsec_compliance.compliance.models import ResourceKind, Rule, Severity

OPEN_CIDR = "0.0.0.0/0"
WILDCARD = "*"


# ---------------------------------------------------------------------------
# SecurityGroup
# ---------------------------------------------------------------------------


def no_open_ingress(fields: Mapping[str, Any]) -> bool:
    """PASS when no ingress permission allows 0.0.0.0/0."""
    for permission in require_list(fields, "IpPermissions"):
        for ip_range in as_list(permission.get("IpRanges")):
            if ip_range.get("CidrIp") == OPEN_CIDR:
                return False
    return True


# ---------------------------------------------------------------------------
# Bucket
# ---------------------------------------------------------------------------


def blocks_public_acls(fields: Mapping[str, Any]) -> bool:
    return require_field(fields, "PublicAccessBlockConfiguration.BlockPublicAcls") is True


def has_default_encryption(fields: Mapping[str, Any]) -> bool:
    return field_present(fields, "ServerSideEncryptionConfiguration")


def versioning_enabled(fields: Mapping[str, Any]) -> bool:
    versioning = require_field(fields, "Versioning")
    return versioning.get("Status") == "Enabled"


def access_logging_enabled(fields: Mapping[str, Any]) -> bool:
    logging_config = require_field(fields, "Logging")
    return bool(logging_config.get("LoggingEnabled"))


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


def no_wildcard_actions(fields: Mapping[str, Any]) -> bool:
    """PASS when no inline policy statement grants Action "*".

    Statements are inspected regardless of Effect, matching the original
    text search over the whole document.
    """
    for policy in require_list(fields, "InlinePolicies"):
        document = policy.get("PolicyDocument")
        if document is None:
            raise ValueError(f"Inline policy {policy.get('PolicyName')!r} has no PolicyDocument")
        for statement in policy_statements(document):
            if WILDCARD in as_list(statement.get("Action")):
                return False
    return True


def _principal_is_wildcard(principal: Any) -> bool:
    if principal == WILDCARD:
        return True
    if isinstance(principal, Mapping):
        return WILDCARD in as_list(principal.get("AWS"))
    return False


def no_wildcard_trust(fields: Mapping[str, Any]) -> bool:
    """PASS when no Allow statement in the trust policy names principal "*"."""
    document = require_field(fields, "AssumeRolePolicyDocument")
    for statement in policy_statements(document):
        if statement.get("Effect") != "Allow":
            continue
        if _principal_is_wildcard(statement.get("Principal")):
            return False
    return True


# ---------------------------------------------------------------------------
# Cluster
# ---------------------------------------------------------------------------


def private_endpoint_enabled(fields: Mapping[str, Any]) -> bool:
    return require_field(fields, "resourcesVpcConfig.endpointPrivateAccess") is True


def has_secrets_encryption(fields: Mapping[str, Any]) -> bool:
    return field_present(fields, "encryptionConfig")


def control_plane_logging_enabled(fields: Mapping[str, Any]) -> bool:
    return any(entry.get("enabled") is True for entry in require_list(fields, "logging.clusterLogging"))


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogEntry:
    """A catalog rule and the settings toggles that enable it.

    Attributes:
        rule: The rule definition.
        kind_toggle: Settings attribute enabling every rule of the kind.
        rule_toggle: Settings attribute enabling this rule alone.
    """

    rule: Rule
    kind_toggle: str
    rule_toggle: str


_CATALOG: list[CatalogEntry] = [
    CatalogEntry(
        rule=Rule(
            id="open-ports",
            kind=ResourceKind.SECURITY_GROUP,
            severity=Severity.HIGH,
            predicate=no_open_ingress,
            description="Ingress rules do not allow 0.0.0.0/0",
            failure_detail="Security group has ports open to 0.0.0.0/0",
        ),
        kind_toggle="check_security_groups",
        rule_toggle="check_open_ports",
    ),
    CatalogEntry(
        rule=Rule(
            id="public-access",
            kind=ResourceKind.BUCKET,
            severity=Severity.CRITICAL,
            predicate=blocks_public_acls,
            description="Public access block configuration blocks public ACLs",
            failure_detail="Bucket public access block does not block public ACLs",
        ),
        kind_toggle="check_s3",
        rule_toggle="check_public_access",
    ),
    CatalogEntry(
        rule=Rule(
            id="encryption",
            kind=ResourceKind.BUCKET,
            severity=Severity.HIGH,
            predicate=has_default_encryption,
            description="Default encryption configuration is present",
            failure_detail="Bucket has no default encryption configuration",
        ),
        kind_toggle="check_s3",
        rule_toggle="check_bucket_encryption",
    ),
    CatalogEntry(
        rule=Rule(
            id="versioning",
            kind=ResourceKind.BUCKET,
            severity=Severity.LOW,
            predicate=versioning_enabled,
            description="Object versioning is enabled",
            failure_detail="Bucket versioning is not enabled",
        ),
        kind_toggle="check_s3",
        rule_toggle="check_versioning",
    ),
    CatalogEntry(
        rule=Rule(
            id="access-logging",
            kind=ResourceKind.BUCKET,
            severity=Severity.LOW,
            predicate=access_logging_enabled,
            description="Server access logging is enabled",
            failure_detail="Bucket server access logging is not enabled",
        ),
        kind_toggle="check_s3",
        rule_toggle="check_bucket_logging",
    ),
    CatalogEntry(
        rule=Rule(
            id="policy-wildcard",
            kind=ResourceKind.ROLE,
            severity=Severity.CRITICAL,
            predicate=no_wildcard_actions,
            description="Inline policies do not grant Action '*'",
            failure_detail="Policy contains wildcard permissions",
        ),
        kind_toggle="check_iam",
        rule_toggle="check_wildcard_permissions",
    ),
    CatalogEntry(
        rule=Rule(
            id="trust-wildcard",
            kind=ResourceKind.ROLE,
            severity=Severity.CRITICAL,
            predicate=no_wildcard_trust,
            description="Trust policy does not allow any principal to assume the role",
            failure_detail="Role trust policy allows principal '*'",
        ),
        kind_toggle="check_iam",
        rule_toggle="check_role_trust",
    ),
    CatalogEntry(
        rule=Rule(
            id="private-endpoint",
            kind=ResourceKind.CLUSTER,
            severity=Severity.HIGH,
            predicate=private_endpoint_enabled,
            description="Private endpoint access is enabled",
            failure_detail="Cluster API endpoint is not privately accessible",
        ),
        kind_toggle="check_eks",
        rule_toggle="check_private_endpoint",
    ),
    CatalogEntry(
        rule=Rule(
            id="encryption",
            kind=ResourceKind.CLUSTER,
            severity=Severity.HIGH,
            predicate=has_secrets_encryption,
            description="Secrets envelope encryption is configured",
            failure_detail="Cluster has no encryption configuration",
        ),
        kind_toggle="check_eks",
        rule_toggle="check_cluster_encryption",
    ),
    CatalogEntry(
        rule=Rule(
            id="logging",
            kind=ResourceKind.CLUSTER,
            severity=Severity.MEDIUM,
            predicate=control_plane_logging_enabled,
            description="At least one control plane log type is enabled",
            failure_detail="Cluster control plane logging is disabled",
        ),
        kind_toggle="check_eks",
        rule_toggle="check_cluster_logging",
    ),
]


def list_catalog() -> list[CatalogEntry]:
    """Return every catalog entry in canonical evaluation order."""
    return list(_CATALOG)


def get_catalog_rule(kind: ResourceKind, rule_id: str) -> Rule | None:
    """Look up a catalog rule by kind and id.

    Returns:
        The Rule if found, None otherwise.
    """
    return next(
        (entry.rule for entry in _CATALOG if entry.rule.kind == kind and entry.rule.id == rule_id),
        None,
    )
