"""Test fixtures for cloudsec-compliance.

Provides:
- settings: Settings with deterministic values (no environment lookups matter)
- registry / engine: the default rule registry and an engine over it
- make_* factories: descriptors for each resource kind in a compliant state
- mock_collector / mock_publisher: in-memory collaborators for the check service
- reset_logging: restores structlog defaults after every test
"""

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog

from cloudsec_compliance.compliance.engine import ComplianceEngine
from cloudsec_compliance.compliance.models import ResourceDescriptor, ResourceKind
from cloudsec_compliance.compliance.rule_registry import RuleRegistry, create_default_registry
from cloudsec_compliance.settings import Settings


def make_security_group(group_id: str = "sg-0001", cidrs: list[str] | None = None) -> ResourceDescriptor:
    """Security group with one ingress permission per CIDR."""
    cidrs = ["10.0.0.0/16"] if cidrs is None else cidrs
    return ResourceDescriptor(
        kind=ResourceKind.SECURITY_GROUP,
        id=group_id,
        fields={
            "GroupId": group_id,
            "GroupName": "cloudsecdemo-web-sg",
            "IpPermissions": [
                {"IpProtocol": "tcp", "FromPort": 443, "ToPort": 443, "IpRanges": [{"CidrIp": cidr}]}
                for cidr in cidrs
            ],
        },
    )


def make_bucket(name: str = "cloudsecdemo-data", **overrides: Any) -> ResourceDescriptor:
    """Bucket passing every bucket rule unless fields are overridden (None removes)."""
    fields: dict[str, Any] = {
        "Name": name,
        "PublicAccessBlockConfiguration": {
            "BlockPublicAcls": True,
            "IgnorePublicAcls": True,
            "BlockPublicPolicy": True,
            "RestrictPublicBuckets": True,
        },
        "ServerSideEncryptionConfiguration": {
            "Rules": [{"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "aws:kms"}}]
        },
        "Versioning": {"Status": "Enabled"},
        "Logging": {"LoggingEnabled": {"TargetBucket": "cloudsecdemo-logs", "TargetPrefix": "s3/"}},
    }
    for key, value in overrides.items():
        if value is None:
            fields.pop(key, None)
        else:
            fields[key] = value
    return ResourceDescriptor(kind=ResourceKind.BUCKET, id=name, fields=fields)


def make_role(
    name: str = "cloudsecdemo-app-role",
    statements: list[dict[str, Any]] | None = None,
    trust_principal: Any = None,
) -> ResourceDescriptor:
    """Role with one inline policy holding the given statements."""
    statements = (
        [{"Effect": "Allow", "Action": ["s3:GetObject"], "Resource": "arn:aws:s3:::cloudsecdemo-data/*"}]
        if statements is None
        else statements
    )
    return ResourceDescriptor(
        kind=ResourceKind.ROLE,
        id=name,
        fields={
            "RoleName": name,
            "AssumeRolePolicyDocument": {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": trust_principal or {"Service": "ec2.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    }
                ],
            },
            "InlinePolicies": [
                {
                    "PolicyName": "app-access",
                    "PolicyDocument": {"Version": "2012-10-17", "Statement": statements},
                }
            ],
        },
    )


def make_cluster(
    name: str = "cloudsecdemo-eks",
    private_access: bool = True,
    encrypted: bool = True,
    logging_enabled: bool = True,
) -> ResourceDescriptor:
    fields: dict[str, Any] = {
        "name": name,
        "resourcesVpcConfig": {"endpointPrivateAccess": private_access, "endpointPublicAccess": False},
        "logging": {"clusterLogging": [{"types": ["api", "audit"], "enabled": logging_enabled}]},
    }
    if encrypted:
        fields["encryptionConfig"] = [{"resources": ["secrets"], "provider": {"keyArn": "arn:aws:kms:key"}}]
    return ResourceDescriptor(kind=ResourceKind.CLUSTER, id=name, fields=fields)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop logging configuration bound to a test's captured streams."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def settings() -> Settings:
    """Settings with a fixed environment and SNS topic."""
    return Settings(
        environment="test",
        sns_topic_arn="arn:aws:sns:us-east-1:123456789012:cloudsecdemo-alerts",
        aws_region="us-east-1",
    )


@pytest.fixture()
def registry(settings: Settings) -> RuleRegistry:
    return create_default_registry(settings)


@pytest.fixture()
def engine(registry: RuleRegistry) -> ComplianceEngine:
    return ComplianceEngine(registry=registry)


@pytest.fixture()
def mock_collector() -> MagicMock:
    """Collector returning one compliant descriptor of each kind."""
    collector = MagicMock()
    collector.collect.return_value = [make_security_group(), make_bucket(), make_role(), make_cluster()]
    return collector


@pytest.fixture()
def mock_publisher() -> MagicMock:
    """Publisher capturing publish() and send_alert() calls."""
    return MagicMock()
