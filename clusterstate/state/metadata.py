"""
Segment and instance metadata records.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class SegmentMetadata:
    """
    Metadata about a published segment.

    Attributes:
        resource_name: Resource the segment belongs to
        segment_name: Segment id, unique within the resource
        crc: Checksum of the segment payload
        total_docs: Number of rows in the segment
        creation_time_ms: Creation timestamp
    """
    resource_name: str
    segment_name: str
    crc: Optional[str] = None
    total_docs: int = 0
    creation_time_ms: int = 0

    def __post_init__(self):
        if self.creation_time_ms == 0:
            self.creation_time_ms = int(time.time() * 1000)


@dataclass
class InstanceMetadata:
    """
    Per-instance record holding stream consumer assignments.

    Attributes:
        instance_type: Instance role prefix (e.g. "Server")
        instance_name: Host name
        instance_port: Serving port
        group_ids: resource -> consumer group id
        partitions: resource -> consumer partition id
    """
    instance_type: str
    instance_name: str
    instance_port: int
    group_ids: Dict[str, str] = field(default_factory=dict)
    partitions: Dict[str, str] = field(default_factory=dict)

    @property
    def instance_id(self) -> str:
        return f"{self.instance_type}_{self.instance_name}_{self.instance_port}"

    @classmethod
    def from_instance_id(cls, instance_id: str) -> "InstanceMetadata":
        """
        Bootstrap a record from a structured instance id.

        Args:
            instance_id: Identifier of the form <type>_<host>_<port>

        Returns:
            Record with no assignments

        Raises:
            ValueError: If the id is not of the expected form
        """
        parts = instance_id.split("_")
        if len(parts) != 3 or not parts[2].isdigit():
            raise ValueError(f"Malformed instance id: {instance_id}")

        return cls(
            instance_type=parts[0],
            instance_name=parts[1],
            instance_port=int(parts[2]),
        )

    def set_stream_assignment(self, resource_name: str, group_id: str, partition_id: int) -> None:
        self.group_ids[resource_name] = group_id
        self.partitions[resource_name] = str(partition_id)

    def get_group_id(self, resource_name: str) -> Optional[str]:
        return self.group_ids.get(resource_name)

    def get_partition(self, resource_name: str) -> Optional[str]:
        return self.partitions.get(resource_name)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "instance_type": self.instance_type,
            "instance_name": self.instance_name,
            "instance_port": self.instance_port,
            "group_ids": dict(self.group_ids),
            "partitions": dict(self.partitions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InstanceMetadata":
        """Create from dictionary."""
        return cls(
            instance_type=data["instance_type"],
            instance_name=data["instance_name"],
            instance_port=data["instance_port"],
            group_ids=dict(data.get("group_ids", {})),
            partitions=dict(data.get("partitions", {})),
        )
