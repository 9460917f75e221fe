"""
Resource configuration as read from the configuration store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from clusterstate.errors import UnsupportedConfigurationError


class StreamType(str, Enum):
    """Streaming sources a realtime resource can consume from."""

    KAFKA = "kafka"


class ConsumerType(str, Enum):
    """Consumer modes for a streaming source."""

    HIGH_LEVEL = "highLevel"
    SIMPLE = "simple"


def _parse_enum(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported {what}: {value}") from None


@dataclass
class StreamConfig:
    """
    Streaming ingestion settings of a realtime resource.

    Attributes:
        stream_type: Streaming source
        consumer_type: Consumer mode
        properties: Raw provider properties (group id override, brokers, ...)
    """
    stream_type: StreamType = StreamType.KAFKA
    consumer_type: ConsumerType = ConsumerType.HIGH_LEVEL
    properties: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "stream_type": self.stream_type.value,
            "consumer_type": self.consumer_type.value,
            "properties": dict(self.properties),
        }

    @staticmethod
    def from_dict(data: dict) -> "StreamConfig":
        return StreamConfig(
            stream_type=_parse_enum(StreamType, data.get("stream_type", "kafka"), "stream type"),
            consumer_type=_parse_enum(
                ConsumerType, data.get("consumer_type", "highLevel"), "consumer type",
            ),
            properties=dict(data.get("properties", {})),
        )


@dataclass
class ResourceConfig:
    """
    Configuration of a resource.

    Attributes:
        resource_name: Resource name
        replica_count: Replicas per segment for new placements
        assignment_strategy: Placement strategy name (None uses the process default)
        tenant_tag: Tag of the serving instance pool (defaults to resource_name)
        num_routing_instances: Routing instances serving this resource
        stream_config: Streaming settings, for realtime resources only
    """
    resource_name: str
    replica_count: int = 1
    assignment_strategy: Optional[str] = None
    tenant_tag: Optional[str] = None
    num_routing_instances: int = 1
    stream_config: Optional[StreamConfig] = None

    def __post_init__(self):
        if self.tenant_tag is None:
            self.tenant_tag = self.resource_name

    @property
    def is_realtime(self) -> bool:
        return self.stream_config is not None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "resource_name": self.resource_name,
            "replica_count": self.replica_count,
            "assignment_strategy": self.assignment_strategy,
            "tenant_tag": self.tenant_tag,
            "num_routing_instances": self.num_routing_instances,
            "stream_config": self.stream_config.to_dict() if self.stream_config else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "ResourceConfig":
        """Create from dictionary."""
        stream = data.get("stream_config")
        return ResourceConfig(
            resource_name=data["resource_name"],
            replica_count=int(data.get("replica_count", 1)),
            assignment_strategy=data.get("assignment_strategy"),
            tenant_tag=data.get("tenant_tag"),
            num_routing_instances=int(data.get("num_routing_instances", 1)),
            stream_config=StreamConfig.from_dict(stream) if stream else None,
        )
