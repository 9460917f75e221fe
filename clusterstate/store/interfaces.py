"""Collaborator interfaces consumed by the controllers."""

from abc import ABC, abstractmethod
from typing import List, Optional

from clusterstate.state.desired_state import DesiredStateDocument
from clusterstate.state.metadata import InstanceMetadata
from clusterstate.state.resource_config import ResourceConfig


class CoordinationStore(ABC):
    """
    Client of the coordination store holding desired-state documents.

    Calls are synchronous. Connectivity errors propagate to the caller.
    """

    @abstractmethod
    def get_desired_state(self, resource_name: str) -> DesiredStateDocument:
        """
        Read the desired-state document of a resource.

        Args:
            resource_name: Resource name

        Returns:
            A document the caller may mutate freely

        Raises:
            NotFoundError: If the resource has no document
        """
        pass

    @abstractmethod
    def set_desired_state(self, resource_name: str, doc: DesiredStateDocument) -> bool:
        """
        Write the desired-state document of a resource.

        Args:
            resource_name: Resource name
            doc: Document to persist

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    def get_instances_with_tag(self, tag: str) -> List[str]:
        """
        List instances carrying a tag.

        Args:
            tag: Instance group tag

        Returns:
            Ordered instance ids
        """
        pass

    @abstractmethod
    def set_instance_enabled(
        self,
        enabled: bool,
        resource_name: str,
        instance_id: str,
        partition_ids: List[str],
    ) -> None:
        """
        Enable or disable partitions of a resource on one instance.

        Args:
            enabled: Target enablement
            resource_name: Resource owning the partitions
            instance_id: Instance id
            partition_ids: Partitions to toggle
        """
        pass


class ResourceConfigStore(ABC):
    """Read-only access to resource configuration."""

    @abstractmethod
    def get_resource_config(self, resource_name: str) -> ResourceConfig:
        """
        Read a resource's configuration.

        Raises:
            NotFoundError: If the resource is not configured
        """
        pass


class InstanceMetadataStore(ABC):
    """Access to per-instance metadata records."""

    @abstractmethod
    def get_instance_metadata(self, instance_id: str) -> Optional[InstanceMetadata]:
        """
        Read an instance record.

        Returns:
            The record, or None if the instance has none yet
        """
        pass

    @abstractmethod
    def set_instance_metadata(self, record: InstanceMetadata) -> None:
        """Create or overwrite an instance record."""
        pass
