"""
In-memory collaborator implementations.

Used to embed the controllers without a coordination service, and by the
tests. Documents and records are copied on every read and write so callers
never share mutable state with the store.
"""

import threading
from typing import Dict, List, Optional, Tuple

from clusterstate.errors import NotFoundError
from clusterstate.state.desired_state import DesiredStateDocument
from clusterstate.state.metadata import InstanceMetadata
from clusterstate.state.resource_config import ResourceConfig
from clusterstate.store.interfaces import (
    CoordinationStore,
    InstanceMetadataStore,
    ResourceConfigStore,
)
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)

# (enabled, resource_name, instance_id, partition_ids)
AdminCall = Tuple[bool, str, str, Tuple[str, ...]]


class InMemoryCoordinationStore(CoordinationStore):
    """
    Coordination store kept in process memory.

    Besides the documents it keeps:
    - instance tags, for pool selection
    - a journal of every write and admin call, in call order
    """

    def __init__(self):
        self._documents: Dict[str, dict] = {}
        self._instance_tags: Dict[str, List[str]] = {}
        self._disabled: Dict[Tuple[str, str], set] = {}
        self._lock = threading.RLock()

        # Ordered journal: ("write", resource, doc_dict) or ("admin", AdminCall)
        self.journal: List[tuple] = []

    def add_instance(self, instance_id: str, *tags: str) -> None:
        """
        Register an instance under one or more tags.

        Args:
            instance_id: Instance id
            tags: Tags to attach
        """
        with self._lock:
            for tag in tags:
                members = self._instance_tags.setdefault(tag, [])
                if instance_id not in members:
                    members.append(instance_id)

    def remove_instance(self, instance_id: str) -> None:
        with self._lock:
            for members in self._instance_tags.values():
                if instance_id in members:
                    members.remove(instance_id)

    def has_desired_state(self, resource_name: str) -> bool:
        with self._lock:
            return resource_name in self._documents

    def get_desired_state(self, resource_name: str) -> DesiredStateDocument:
        with self._lock:
            data = self._documents.get(resource_name)
            if data is None:
                raise NotFoundError(f"No desired state for resource: {resource_name}")
            return DesiredStateDocument.from_dict(data)

    def set_desired_state(self, resource_name: str, doc: DesiredStateDocument) -> bool:
        with self._lock:
            data = doc.to_dict()
            self._documents[resource_name] = data
            self.journal.append(("write", resource_name, data))

        logger.debug(
            "Stored desired state",
            resource=resource_name,
            num_partitions=doc.num_partitions,
        )

        return True

    def get_instances_with_tag(self, tag: str) -> List[str]:
        with self._lock:
            return list(self._instance_tags.get(tag, []))

    def set_instance_enabled(
        self,
        enabled: bool,
        resource_name: str,
        instance_id: str,
        partition_ids: List[str],
    ) -> None:
        with self._lock:
            disabled = self._disabled.setdefault((resource_name, instance_id), set())
            if enabled:
                disabled.difference_update(partition_ids)
            else:
                disabled.update(partition_ids)

            call: AdminCall = (enabled, resource_name, instance_id, tuple(partition_ids))
            self.journal.append(("admin", call))

    def is_partition_enabled(self, resource_name: str, instance_id: str, partition_id: str) -> bool:
        with self._lock:
            return partition_id not in self._disabled.get((resource_name, instance_id), set())

    def admin_calls(self) -> List[AdminCall]:
        """Admin calls in call order."""
        with self._lock:
            return [entry[1] for entry in self.journal if entry[0] == "admin"]

    def writes(self, resource_name: Optional[str] = None) -> List[dict]:
        """Persisted document snapshots in write order."""
        with self._lock:
            return [
                entry[2]
                for entry in self.journal
                if entry[0] == "write" and (resource_name is None or entry[1] == resource_name)
            ]


class InMemoryResourceConfigStore(ResourceConfigStore):
    """Resource configuration kept in process memory."""

    def __init__(self):
        self._configs: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def put_resource_config(self, config: ResourceConfig) -> None:
        with self._lock:
            self._configs[config.resource_name] = config.to_dict()

    def get_resource_config(self, resource_name: str) -> ResourceConfig:
        with self._lock:
            data = self._configs.get(resource_name)
        if data is None:
            raise NotFoundError(f"No configuration for resource: {resource_name}")
        return ResourceConfig.from_dict(data)


class InMemoryInstanceMetadataStore(InstanceMetadataStore):
    """Instance metadata kept in process memory."""

    def __init__(self):
        self._records: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get_instance_metadata(self, instance_id: str) -> Optional[InstanceMetadata]:
        with self._lock:
            data = self._records.get(instance_id)
        return InstanceMetadata.from_dict(data) if data else None

    def set_instance_metadata(self, record: InstanceMetadata) -> None:
        with self._lock:
            self._records[record.instance_id] = record.to_dict()

    def list_instances(self) -> List[str]:
        with self._lock:
            return list(self._records.keys())
