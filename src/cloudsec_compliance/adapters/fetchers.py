"""Resource fetchers — enumerate monitored AWS resources as descriptors.

Each fetcher wraps one boto3 client, selects the project's resources, and
returns ResourceDescriptors whose fields are the raw API response shapes the
rule catalog reads. Fetchers are constructed once per process from a shared
boto3 Session and passed into the check service; nothing here is global.

Failure policy:
- Enumeration failures (list/describe of the whole service) raise FetchError;
  the cycle cannot produce a meaningful report.
- Per-resource call failures, API and transport errors alike, are recorded
  under the descriptor's FetchErrors field so the affected rules yield ERROR
  verdicts.
- "Not configured" responses (no public access block, no default encryption)
  simply omit the field.
"""

import re
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cloudsec_compliance.compliance.fields import ALL_FIELDS, FETCH_ERRORS_KEY
from cloudsec_compliance.compliance.models import ResourceDescriptor, ResourceKind
from cloudsec_compliance.errors import FetchError
from cloudsec_compliance.observability import get_logger
from cloudsec_compliance.settings import Settings

logger = get_logger(__name__)

_NOT_CONFIGURED_CODES = frozenset(
    {
        "NoSuchPublicAccessBlockConfiguration",
        "ServerSideEncryptionConfigurationNotFoundError",
    }
)


class IResourceFetcher(Protocol):
    """Contract for per-kind descriptor fetchers."""

    kind: ResourceKind

    def fetch(self) -> list[ResourceDescriptor]:
        """Return descriptors for every monitored resource of this kind.

        Raises:
            FetchError: If the resources cannot be enumerated.
        """
        ...


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return f"{error.get('Code', 'ClientError')}: {error.get('Message', str(exc))}"
    return str(exc)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class SecurityGroupFetcher:
    """Fetches security groups carrying the project tag.

    Args:
        ec2_client: boto3 EC2 client.
        project_tag: Required value of the Project tag.
        name_pattern: Regex matched against GroupName.
    """

    kind = ResourceKind.SECURITY_GROUP

    def __init__(self, ec2_client: Any, project_tag: str, name_pattern: str) -> None:
        self._ec2 = ec2_client
        self._project_tag = project_tag
        self._name_pattern = re.compile(name_pattern)

    def fetch(self) -> list[ResourceDescriptor]:
        try:
            paginator = self._ec2.get_paginator("describe_security_groups")
            groups: list[dict[str, Any]] = []
            for page in paginator.paginate(
                Filters=[{"Name": "tag:Project", "Values": [self._project_tag]}]
            ):
                groups.extend(page.get("SecurityGroups", []))
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to describe security groups", error=_error_message(exc))
            raise FetchError(f"describe_security_groups failed: {_error_message(exc)}") from exc

        descriptors = [
            ResourceDescriptor(kind=self.kind, id=group["GroupId"], fields=group)
            for group in groups
            if self._name_pattern.search(group.get("GroupName", ""))
        ]
        logger.info("Fetched security groups", count=len(descriptors), candidates=len(groups))
        return descriptors


class BucketFetcher:
    """Fetches S3 buckets whose names match the project pattern.

    Args:
        s3_client: boto3 S3 client.
        name_pattern: Regex matched against bucket names.
    """

    kind = ResourceKind.BUCKET

    def __init__(self, s3_client: Any, name_pattern: str) -> None:
        self._s3 = s3_client
        self._name_pattern = re.compile(name_pattern)

    def fetch(self) -> list[ResourceDescriptor]:
        try:
            response = self._s3.list_buckets()
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to list buckets", error=_error_message(exc))
            raise FetchError(f"list_buckets failed: {_error_message(exc)}") from exc

        names = [
            bucket["Name"]
            for bucket in response.get("Buckets", [])
            if self._name_pattern.search(bucket["Name"])
        ]
        descriptors = [self._describe(name) for name in names]
        logger.info("Fetched buckets", count=len(descriptors))
        return descriptors

    def _describe(self, bucket_name: str) -> ResourceDescriptor:
        fields: dict[str, Any] = {"Name": bucket_name}
        fetch_errors: dict[str, str] = {}

        calls = (
            ("PublicAccessBlockConfiguration", self._s3.get_public_access_block),
            ("ServerSideEncryptionConfiguration", self._s3.get_bucket_encryption),
        )
        for field_name, call in calls:
            try:
                fields[field_name] = call(Bucket=bucket_name)[field_name]
            except (ClientError, BotoCoreError) as exc:
                if isinstance(exc, ClientError) and _error_code(exc) in _NOT_CONFIGURED_CODES:
                    continue
                fetch_errors[field_name] = _error_message(exc)

        try:
            versioning = self._s3.get_bucket_versioning(Bucket=bucket_name)
            fields["Versioning"] = {k: v for k, v in versioning.items() if k != "ResponseMetadata"}
        except (ClientError, BotoCoreError) as exc:
            fetch_errors["Versioning"] = _error_message(exc)

        try:
            logging_config = self._s3.get_bucket_logging(Bucket=bucket_name)
            fields["Logging"] = {k: v for k, v in logging_config.items() if k != "ResponseMetadata"}
        except (ClientError, BotoCoreError) as exc:
            fetch_errors["Logging"] = _error_message(exc)

        if fetch_errors:
            logger.warning("Partial bucket configuration", bucket=bucket_name, errors=fetch_errors)
            fields[FETCH_ERRORS_KEY] = fetch_errors
        return ResourceDescriptor(kind=self.kind, id=bucket_name, fields=fields)


class RoleFetcher:
    """Fetches IAM roles matching the project pattern, with their inline policies.

    Args:
        iam_client: boto3 IAM client.
        name_pattern: Regex matched against role names.
    """

    kind = ResourceKind.ROLE

    def __init__(self, iam_client: Any, name_pattern: str) -> None:
        self._iam = iam_client
        self._name_pattern = re.compile(name_pattern)

    def fetch(self) -> list[ResourceDescriptor]:
        try:
            roles: list[dict[str, Any]] = []
            for page in self._iam.get_paginator("list_roles").paginate():
                roles.extend(page.get("Roles", []))
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to list roles", error=_error_message(exc))
            raise FetchError(f"list_roles failed: {_error_message(exc)}") from exc

        descriptors = [
            self._describe(role) for role in roles if self._name_pattern.search(role["RoleName"])
        ]
        logger.info("Fetched roles", count=len(descriptors), candidates=len(roles))
        return descriptors

    def _describe(self, role: dict[str, Any]) -> ResourceDescriptor:
        role_name = role["RoleName"]
        fields: dict[str, Any] = dict(role)
        try:
            policies = []
            for page in self._iam.get_paginator("list_role_policies").paginate(RoleName=role_name):
                for policy_name in page.get("PolicyNames", []):
                    policy = self._iam.get_role_policy(RoleName=role_name, PolicyName=policy_name)
                    policies.append(
                        {"PolicyName": policy_name, "PolicyDocument": policy["PolicyDocument"]}
                    )
            fields["InlinePolicies"] = policies
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Failed to read inline policies", role=role_name, error=_error_message(exc))
            fields[FETCH_ERRORS_KEY] = {"InlinePolicies": _error_message(exc)}
        return ResourceDescriptor(kind=self.kind, id=role_name, fields=fields)


class ClusterFetcher:
    """Fetches EKS clusters matching the project pattern.

    Args:
        eks_client: boto3 EKS client.
        name_pattern: Regex matched against cluster names.
    """

    kind = ResourceKind.CLUSTER

    def __init__(self, eks_client: Any, name_pattern: str) -> None:
        self._eks = eks_client
        self._name_pattern = re.compile(name_pattern)

    def fetch(self) -> list[ResourceDescriptor]:
        try:
            names: list[str] = []
            for page in self._eks.get_paginator("list_clusters").paginate():
                names.extend(page.get("clusters", []))
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to list clusters", error=_error_message(exc))
            raise FetchError(f"list_clusters failed: {_error_message(exc)}") from exc

        descriptors = [self._describe(name) for name in names if self._name_pattern.search(name)]
        logger.info("Fetched clusters", count=len(descriptors), candidates=len(names))
        return descriptors

    def _describe(self, cluster_name: str) -> ResourceDescriptor:
        try:
            fields = dict(self._eks.describe_cluster(name=cluster_name)["cluster"])
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Failed to describe cluster", cluster=cluster_name, error=_error_message(exc))
            fields = {"name": cluster_name, FETCH_ERRORS_KEY: {ALL_FIELDS: _error_message(exc)}}
        return ResourceDescriptor(kind=self.kind, id=cluster_name, fields=fields)


class ResourceCollector:
    """Runs every configured fetcher and concatenates their descriptors.

    Args:
        fetchers: Fetchers in the order their descriptors should appear.
    """

    def __init__(self, fetchers: list[IResourceFetcher]) -> None:
        self._fetchers = fetchers

    @property
    def fetchers(self) -> list[IResourceFetcher]:
        return list(self._fetchers)

    def collect(self) -> list[ResourceDescriptor]:
        """Fetch the complete descriptor batch for one run.

        Raises:
            FetchError: If any fetcher cannot enumerate its resources.
        """
        descriptors: list[ResourceDescriptor] = []
        for fetcher in self._fetchers:
            descriptors.extend(fetcher.fetch())
        return descriptors


def create_session(settings: Settings) -> boto3.Session:
    """Create the boto3 Session shared by all fetchers and the publisher."""
    if settings.aws_region:
        return boto3.Session(region_name=settings.aws_region)
    return boto3.Session()


def create_resource_collector(settings: Settings, session: boto3.Session) -> ResourceCollector:
    """Build a collector with one fetcher per kind enabled in settings.

    Args:
        settings: Project tag, name patterns and kind toggles.
        session: boto3 Session used to create the service clients.

    Returns:
        Configured ResourceCollector.
    """
    fetchers: list[IResourceFetcher] = []
    if settings.check_security_groups:
        fetchers.append(
            SecurityGroupFetcher(
                session.client("ec2"),
                project_tag=settings.project_tag,
                name_pattern=settings.security_group_pattern,
            )
        )
    if settings.check_s3:
        fetchers.append(BucketFetcher(session.client("s3"), name_pattern=settings.bucket_pattern))
    if settings.check_iam:
        fetchers.append(RoleFetcher(session.client("iam"), name_pattern=settings.role_pattern))
    if settings.check_eks:
        fetchers.append(ClusterFetcher(session.client("eks"), name_pattern=settings.cluster_pattern))
    return ResourceCollector(fetchers)
