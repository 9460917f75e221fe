"""
Desired-state controllers.

Each controller applies one kind of transformation to a desired-state
document.
"""

from clusterstate.controller.locks import ResourceLockManager
from clusterstate.controller.replica_scaler import ReplicaScaler
from clusterstate.controller.routing import RoutingAssignmentController
from clusterstate.controller.segment_placement import SegmentPlacementController
from clusterstate.controller.stream_consumer import (
    GROUP_ID_KEY,
    StreamAssignment,
    StreamConsumerAssignmentController,
)

__all__ = [
    # Segments
    "SegmentPlacementController",
    "ReplicaScaler",
    # Routing
    "RoutingAssignmentController",
    # Streaming
    "StreamConsumerAssignmentController",
    "StreamAssignment",
    "GROUP_ID_KEY",
    # Locking
    "ResourceLockManager",
]
