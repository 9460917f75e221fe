"""Shared fixtures built on the in-memory collaborators."""

import random

import pytest

from clusterstate.manager import DesiredStateManager
from clusterstate.state.metadata import SegmentMetadata
from clusterstate.state.resource_config import ResourceConfig
from clusterstate.store.in_memory import (
    InMemoryCoordinationStore,
    InMemoryInstanceMetadataStore,
    InMemoryResourceConfigStore,
)
from clusterstate.utils.config import Config


@pytest.fixture
def store():
    """Coordination store with four servers tagged "orders"."""
    store = InMemoryCoordinationStore()
    for instance in ["A", "B", "C", "D"]:
        store.add_instance(instance, "orders")
    return store


@pytest.fixture
def config_store():
    configs = InMemoryResourceConfigStore()
    configs.put_resource_config(ResourceConfig(resource_name="orders", replica_count=2))
    return configs


@pytest.fixture
def instance_store():
    return InMemoryInstanceMetadataStore()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def manager(store, config_store, instance_store):
    return DesiredStateManager(
        store=store,
        config_store=config_store,
        instance_store=instance_store,
        config=Config(),
    )


def make_segment(name: str, resource: str = "orders") -> SegmentMetadata:
    return SegmentMetadata(resource_name=resource, segment_name=name)


@pytest.fixture
def segment_factory():
    return make_segment
