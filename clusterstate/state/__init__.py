"""
Desired-state data model.

Documents, segment and instance metadata, and resource configuration.
"""

from clusterstate.state.desired_state import (
    ROUTING_STATE_MODEL,
    SEGMENT_STATE_MODEL,
    UNBOUNDED,
    DesiredStateDocument,
    SegmentState,
    build_routing_document,
)
from clusterstate.state.metadata import InstanceMetadata, SegmentMetadata
from clusterstate.state.resource_config import (
    ConsumerType,
    ResourceConfig,
    StreamConfig,
    StreamType,
)

__all__ = [
    # Documents
    "DesiredStateDocument",
    "SegmentState",
    "build_routing_document",
    "UNBOUNDED",
    "SEGMENT_STATE_MODEL",
    "ROUTING_STATE_MODEL",
    # Metadata
    "SegmentMetadata",
    "InstanceMetadata",
    # Configuration
    "ResourceConfig",
    "StreamConfig",
    "StreamType",
    "ConsumerType",
]
