"""
Stream consumer assignment for realtime resources.

Consuming instances are split into num_replicas consumer groups; within a
group every instance consumes a distinct stream partition.
Example: 6 instances, 2 replicas, base group "orders_1700000000000"
  Instances 1-3: groups orders_1700000000000_0, partitions 0, 1, 2
  Instances 4-6: groups orders_1700000000000_1, partitions 0, 1, 2
"""

import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from clusterstate.errors import InsufficientCapacityError, UnsupportedConfigurationError
from clusterstate.state.desired_state import DesiredStateDocument
from clusterstate.state.metadata import InstanceMetadata
from clusterstate.state.resource_config import ConsumerType, ResourceConfig, StreamType
from clusterstate.store.interfaces import CoordinationStore, InstanceMetadataStore
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)

GROUP_ID_KEY = "stream.kafka.hlc.group.id"


@dataclass(frozen=True)
class StreamAssignment:
    """
    Consumer assignment of one instance for one resource.

    Attributes:
        instance_id: Consuming instance
        group_id: Consumer group id
        partition_id: Partition within the group
    """
    instance_id: str
    group_id: str
    partition_id: int


class StreamConsumerAssignmentController:
    """
    Assigns consuming instances to (consumer group, partition) pairs.

    Assignments are written into each instance's metadata record; a missing
    record is bootstrapped from the structured instance id.
    """

    def __init__(
        self,
        store: CoordinationStore,
        instance_store: InstanceMetadataStore,
        group_id_key: str = GROUP_ID_KEY,
    ):
        """
        Initialize stream consumer assignment controller.

        Args:
            store: Coordination store, for the consuming instance pool
            instance_store: Instance metadata store receiving the assignments
            group_id_key: Stream property overriding the base group id
        """
        self.store = store
        self.instance_store = instance_store
        self.group_id_key = group_id_key

    def build_initial_realtime_state(self, resource_config: ResourceConfig) -> DesiredStateDocument:
        """
        Build the document of a new realtime resource and assign its consumers.

        Args:
            resource_config: Realtime resource configuration

        Returns:
            Empty document tagged with the resource name

        Raises:
            UnsupportedConfigurationError: For a non-realtime resource or an
                unsupported stream/consumer type
        """
        resource_name = resource_config.resource_name
        stream_config = resource_config.stream_config

        if stream_config is None:
            raise UnsupportedConfigurationError(
                f"Resource {resource_name} has no stream configuration"
            )

        if stream_config.stream_type != StreamType.KAFKA:
            logger.error(
                "Unsupported stream type",
                resource=resource_name,
                stream_type=stream_config.stream_type,
            )
            raise UnsupportedConfigurationError(
                f"Unsupported stream type: {stream_config.stream_type}"
            )

        if stream_config.consumer_type != ConsumerType.HIGH_LEVEL:
            logger.error(
                "Unsupported consumer type",
                resource=resource_name,
                consumer_type=stream_config.consumer_type,
            )
            raise UnsupportedConfigurationError(
                f"Unsupported consumer type: {stream_config.consumer_type}"
            )

        doc = DesiredStateDocument(
            resource_name=resource_name,
            num_partitions=0,
            num_replicas=1,
            instance_group_tag=resource_name,
        )

        instances = self.store.get_instances_with_tag(resource_config.tenant_tag)
        self.assign_instances(
            resource_name,
            instances,
            resource_config.replica_count,
            stream_config.properties,
        )

        return doc

    def resolve_base_group_id(
        self,
        resource_name: str,
        stream_properties: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Get the base consumer group id of a resource.

        Args:
            resource_name: Resource name
            stream_properties: Stream properties possibly holding an override

        Returns:
            The configured override if non-empty, else "<resource>_<epoch ms>"
        """
        override = (stream_properties or {}).get(self.group_id_key)
        if override:
            return override

        return f"{resource_name}_{int(time.time() * 1000)}"

    def compute_assignments(
        self,
        resource_name: str,
        instances: List[str],
        num_replicas: int,
        stream_properties: Optional[Dict[str, str]] = None,
    ) -> List[StreamAssignment]:
        """
        Compute consumer assignments without persisting them.

        Instances beyond num_per_group * num_replicas are left unassigned.

        Args:
            resource_name: Realtime resource name
            instances: Consuming instances, in assignment order
            num_replicas: Number of consumer groups
            stream_properties: Stream properties (group id override)

        Returns:
            One assignment per assigned instance, in input order

        Raises:
            ValueError: If num_replicas is not positive
            InsufficientCapacityError: If there are fewer instances than groups
        """
        if num_replicas <= 0:
            raise ValueError(f"num_replicas must be positive, got {num_replicas}")

        num_per_group = len(instances) // num_replicas
        if num_per_group == 0:
            logger.error(
                "Not enough consuming instances",
                resource=resource_name,
                instances=len(instances),
                replicas=num_replicas,
            )
            raise InsufficientCapacityError(num_replicas, len(instances), resource_name)

        base_group_id = self.resolve_base_group_id(resource_name, stream_properties)
        num_assigned = num_per_group * num_replicas

        if num_assigned < len(instances):
            logger.warning(
                "Leaving remainder instances unassigned",
                resource=resource_name,
                unassigned=instances[num_assigned:],
            )

        assignments = []
        partition_id = 0
        replica_id = 0

        for instance in instances[:num_assigned]:
            assignments.append(
                StreamAssignment(
                    instance_id=instance,
                    group_id=f"{base_group_id}_{replica_id}",
                    partition_id=partition_id,
                )
            )
            partition_id = (partition_id + 1) % num_per_group
            if partition_id == 0:
                replica_id += 1

        return assignments

    def assign_instances(
        self,
        resource_name: str,
        instances: List[str],
        num_replicas: int,
        stream_properties: Optional[Dict[str, str]] = None,
    ) -> List[StreamAssignment]:
        """
        Compute consumer assignments and write them to instance metadata.

        Args:
            resource_name: Realtime resource name
            instances: Consuming instances, in assignment order
            num_replicas: Number of consumer groups
            stream_properties: Stream properties (group id override)

        Returns:
            The persisted assignments
        """
        assignments = self.compute_assignments(
            resource_name, instances, num_replicas, stream_properties,
        )

        for assignment in assignments:
            record = self.instance_store.get_instance_metadata(assignment.instance_id)
            if record is None:
                record = InstanceMetadata.from_instance_id(assignment.instance_id)

            record.set_stream_assignment(
                resource_name, assignment.group_id, assignment.partition_id,
            )
            self.instance_store.set_instance_metadata(record)

        logger.info(
            "Assigned stream consumers",
            resource=resource_name,
            replicas=num_replicas,
            assignments={a.instance_id: (a.group_id, a.partition_id) for a in assignments},
        )

        return assignments
