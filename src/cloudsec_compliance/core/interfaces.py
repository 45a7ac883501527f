"""Abstract interfaces (Protocol classes) for the check service.

The service layer depends on these protocols, never on the concrete boto3
adapters, so tests can substitute in-memory collaborators.

Protocols defined:
- IResourceCollector
- IReportPublisher
"""

from typing import Any, Protocol

from cloudsec_compliance.compliance.models import Report, ResourceDescriptor


class IResourceCollector(Protocol):
    """Supplies the complete descriptor batch for one run."""

    def collect(self) -> list[ResourceDescriptor]:
        """Fetch descriptors for every monitored resource.

        Returns:
            The descriptor batch.

        Raises:
            FetchError: If resources cannot be enumerated.
        """
        ...


class IReportPublisher(Protocol):
    """Emits reports and alerts to the monitoring channel."""

    def publish(self, report: Report) -> None:
        """Publish the report's failure metric and alert.

        Raises:
            PublishError: If publication fails.
        """
        ...

    def send_alert(
        self,
        title: str,
        message: str,
        severity: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Send a standalone alert.

        Raises:
            PublishError: If publication fails.
        """
        ...
