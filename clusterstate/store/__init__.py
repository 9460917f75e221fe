"""External collaborator interfaces and in-memory implementations."""

from clusterstate.store.in_memory import (
    InMemoryCoordinationStore,
    InMemoryInstanceMetadataStore,
    InMemoryResourceConfigStore,
)
from clusterstate.store.interfaces import (
    CoordinationStore,
    InstanceMetadataStore,
    ResourceConfigStore,
)

__all__ = [
    "CoordinationStore",
    "ResourceConfigStore",
    "InstanceMetadataStore",
    "InMemoryCoordinationStore",
    "InMemoryResourceConfigStore",
    "InMemoryInstanceMetadataStore",
]
