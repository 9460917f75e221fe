"""
clusterstate - desired-state reconciliation for a partitioned serving cluster.

This package computes where segments of each resource should live:
- Segment placement with pluggable assignment strategies
- Replica count scaling
- Routing of data resources to query-routing instances
- Stream consumer group and partition assignment
"""

__version__ = "0.1.0"

from clusterstate.errors import (
    ClusterStateError,
    InsufficientCapacityError,
    NotFoundError,
    UnsupportedConfigurationError,
)
from clusterstate.manager import DesiredStateManager

__all__ = [
    "DesiredStateManager",
    "ClusterStateError",
    "NotFoundError",
    "UnsupportedConfigurationError",
    "InsufficientCapacityError",
]
