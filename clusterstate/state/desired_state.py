"""
Desired-state documents.

A document maps each partition (a segment id, or a data resource name for the
routing document) to the instances that should host it and the state each
instance should be in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

UNBOUNDED = 2**31 - 1

SEGMENT_STATE_MODEL = "SegmentOnlineOfflineStateModel"
ROUTING_STATE_MODEL = "BrokerResourceOnlineOfflineStateModel"

TransitionListener = Callable[[str, str, "SegmentState"], None]


class SegmentState(str, Enum):
    """Target state of a (partition, instance) pair."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    DROPPED = "DROPPED"     # Terminal until the pair is erased


@dataclass
class DesiredStateDocument:
    """
    Placement map for one resource.

    Attributes:
        resource_name: Resource this document belongs to
        partitions: partition -> (instance -> state)
        num_partitions: Number of tracked partitions, or UNBOUNDED
        num_replicas: Target replica count, or UNBOUNDED
        instance_group_tag: Tag selecting the eligible instance pool
        state_model: State model observed by the hosting instances
    """
    resource_name: str
    partitions: Dict[str, Dict[str, SegmentState]] = field(default_factory=dict)
    num_partitions: int = 0
    num_replicas: int = 1
    instance_group_tag: Optional[str] = None
    state_model: str = SEGMENT_STATE_MODEL
    _listeners: List[TransitionListener] = field(
        default_factory=list, repr=False, compare=False,
    )

    @property
    def is_unbounded(self) -> bool:
        return self.num_partitions == UNBOUNDED

    def add_listener(self, listener: TransitionListener) -> None:
        """
        Register a callback invoked on every state write.

        Args:
            listener: Called as listener(partition, instance, state)
        """
        self._listeners.append(listener)

    def set_partition_state(self, partition: str, instance: str, state: SegmentState) -> None:
        """
        Set the target state of an instance for a partition.

        Args:
            partition: Segment id or routed resource name
            instance: Instance id
            state: Target state
        """
        self.partitions.setdefault(partition, {})[instance] = SegmentState(state)
        self._recompute_num_partitions()

        for listener in self._listeners:
            listener(partition, instance, SegmentState(state))

    def remove_partition(self, partition: str) -> None:
        """Erase a partition and all its instance entries."""
        self.partitions.pop(partition, None)
        self._recompute_num_partitions()

    def _recompute_num_partitions(self) -> None:
        if not self.is_unbounded:
            self.num_partitions = len(self.partitions)

    def partition_set(self) -> Set[str]:
        return set(self.partitions.keys())

    def get_instance_set(self, partition: str) -> List[str]:
        """
        Get instances assigned to a partition, in insertion order.

        Returns:
            Instance ids (empty if the partition is absent)
        """
        return list(self.partitions.get(partition, {}).keys())

    def get_instance_state_map(self, partition: str) -> Dict[str, SegmentState]:
        return dict(self.partitions.get(partition, {}))

    def live_instances(self, partition: str) -> List[str]:
        """Instances of a partition that are not DROPPED."""
        return [
            instance
            for instance, state in self.partitions.get(partition, {}).items()
            if state != SegmentState.DROPPED
        ]

    def instance_load(self) -> Dict[str, int]:
        """
        Count live partitions hosted by each instance.

        Returns:
            instance -> number of non-DROPPED partitions
        """
        load: Dict[str, int] = {}
        for instance_states in self.partitions.values():
            for instance, state in instance_states.items():
                if state != SegmentState.DROPPED:
                    load[instance] = load.get(instance, 0) + 1
        return load

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "resource_name": self.resource_name,
            "partitions": {
                partition: {instance: state.value for instance, state in states.items()}
                for partition, states in self.partitions.items()
            },
            "num_partitions": self.num_partitions,
            "num_replicas": self.num_replicas,
            "instance_group_tag": self.instance_group_tag,
            "state_model": self.state_model,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DesiredStateDocument":
        """Create from dictionary."""
        partitions = {
            partition: {instance: SegmentState(state) for instance, state in states.items()}
            for partition, states in data.get("partitions", {}).items()
        }
        return cls(
            resource_name=data["resource_name"],
            partitions=partitions,
            num_partitions=data.get("num_partitions", len(partitions)),
            num_replicas=data.get("num_replicas", 1),
            instance_group_tag=data.get("instance_group_tag"),
            state_model=data.get("state_model", SEGMENT_STATE_MODEL),
        )


def build_routing_document(resource_name: str) -> DesiredStateDocument:
    """
    Build the empty cluster-wide routing document.

    Every routing instance may serve every resource, so partition and replica
    counts are unbounded.

    Args:
        resource_name: Name of the routing document

    Returns:
        Empty routing document
    """
    return DesiredStateDocument(
        resource_name=resource_name,
        num_partitions=UNBOUNDED,
        num_replicas=UNBOUNDED,
        state_model=ROUTING_STATE_MODEL,
    )
