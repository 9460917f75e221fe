"""
Desired-state manager.

Composes the controllers with their collaborators and exposes one entry point
per cluster event. Every entry point reads the current document, applies one
transformation under the resource's lock, and writes the result back.
"""

from typing import Optional

from clusterstate.controller.locks import ResourceLockManager
from clusterstate.controller.replica_scaler import ReplicaScaler
from clusterstate.controller.routing import RoutingAssignmentController
from clusterstate.controller.segment_placement import SegmentPlacementController
from clusterstate.controller.stream_consumer import StreamConsumerAssignmentController
from clusterstate.errors import NotFoundError
from clusterstate.state.desired_state import DesiredStateDocument
from clusterstate.state.metadata import SegmentMetadata
from clusterstate.state.resource_config import ResourceConfig
from clusterstate.store.interfaces import (
    CoordinationStore,
    InstanceMetadataStore,
    ResourceConfigStore,
)
from clusterstate.strategy.cache import StrategyCache
from clusterstate.utils.config import Config, get_config
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class DesiredStateManager:
    """
    Entry point for desired-state mutations.

    Owns:
    - the strategy cache (one resolved strategy per resource)
    - the per-resource locks serializing read-modify-write cycles
    """

    def __init__(
        self,
        store: CoordinationStore,
        config_store: ResourceConfigStore,
        instance_store: InstanceMetadataStore,
        config: Optional[Config] = None,
        strategy_cache: Optional[StrategyCache] = None,
        locks: Optional[ResourceLockManager] = None,
        replica_scaler: Optional[ReplicaScaler] = None,
        routing: Optional[RoutingAssignmentController] = None,
    ):
        """
        Initialize desired-state manager.

        Args:
            store: Coordination store client
            config_store: Resource configuration store
            instance_store: Instance metadata store
            config: Process configuration (defaults to the global one)
            strategy_cache: Strategy cache (a fresh one if None)
            locks: Resource lock manager (a fresh one if None)
            replica_scaler: Replica scaler (a fresh one if None)
            routing: Routing controller (a fresh one if None)
        """
        self.store = store
        self.config_store = config_store
        self.instance_store = instance_store
        self.config = config or get_config()

        self.strategy_cache = strategy_cache or StrategyCache()
        self.locks = locks or ResourceLockManager()

        self.segments = SegmentPlacementController(store)
        self.replica_scaler = replica_scaler or ReplicaScaler()
        self.routing = routing or RoutingAssignmentController(store)
        self.stream_consumers = StreamConsumerAssignmentController(
            store,
            instance_store,
            group_id_key=self.config.get("stream.group_id_key"),
        )

        self.routing_resource_name = self.config.get("routing.resource_name")
        self.routing_instance_tag = self.config.get("routing.instance_tag")

        logger.info(
            "DesiredStateManager initialized",
            routing_resource=self.routing_resource_name,
            routing_tag=self.routing_instance_tag,
        )

    # Resources

    def create_resource(self, resource_name: str) -> DesiredStateDocument:
        """
        Create the document of a newly configured resource.

        Realtime resources also get their stream consumers assigned.

        Args:
            resource_name: Resource name

        Returns:
            The persisted document
        """
        resource_config = self.config_store.get_resource_config(resource_name)

        if resource_config.is_realtime:
            return self.create_realtime_resource(resource_name)

        with self.locks.locked(resource_name):
            doc = self.segments.build_empty_state(resource_name, resource_config.replica_count)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def create_realtime_resource(self, resource_name: str) -> DesiredStateDocument:
        """
        Create the document of a realtime resource and assign its consumers.

        Args:
            resource_name: Realtime resource name

        Returns:
            The persisted document
        """
        resource_config = self.config_store.get_resource_config(resource_name)

        with self.locks.locked(resource_name):
            doc = self.stream_consumers.build_initial_realtime_state(resource_config)
            self.store.set_desired_state(resource_name, doc)

        return doc

    # Segments

    def _strategy_name(self, resource_config: ResourceConfig) -> str:
        return resource_config.assignment_strategy or self.config.get("strategy.default", "random")

    def add_segment(self, segment_meta: SegmentMetadata) -> DesiredStateDocument:
        """
        Place a newly published segment, or refresh a replaced one.

        Args:
            segment_meta: Metadata of the published segment

        Returns:
            The persisted document
        """
        resource_name = segment_meta.resource_name
        resource_config = self.config_store.get_resource_config(resource_name)
        strategy = self.strategy_cache.get_or_create(
            resource_name, self._strategy_name(resource_config),
        )

        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            self.segments.add_or_update_segment(
                doc,
                segment_meta.segment_name,
                segment_meta,
                strategy,
                resource_config.replica_count,
                resource_config.tenant_tag,
            )
            self.store.set_desired_state(resource_name, doc)

        return doc

    def refresh_segment(self, resource_name: str, segment_id: str) -> DesiredStateDocument:
        """
        Reload a segment on its instances with the OFFLINE phase persisted.

        Args:
            resource_name: Resource name
            segment_id: Segment id

        Returns:
            The persisted document
        """
        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            self.segments.update_segment_in_place(doc, segment_id, self.store)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def add_realtime_segment(
        self,
        resource_name: str,
        segment_id: str,
        instance_id: str,
    ) -> DesiredStateDocument:
        """Record a segment sealed by a consuming instance."""
        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            self.segments.add_realtime_segment(doc, segment_id, instance_id)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def drop_segment(self, resource_name: str, segment_id: str) -> DesiredStateDocument:
        """
        Mark a segment DROPPED on all its instances.

        Args:
            resource_name: Resource name
            segment_id: Segment id

        Returns:
            The persisted document
        """
        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            self.segments.drop_segment(doc, segment_id)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def remove_segment(self, resource_name: str, segment_id: str) -> DesiredStateDocument:
        """
        Erase a segment from a resource's document.

        Args:
            resource_name: Resource name
            segment_id: Segment id

        Returns:
            The persisted document
        """
        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            self.segments.remove_segment(doc, segment_id)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def scale_replicas(self, resource_name: str, new_replica_count: int) -> DesiredStateDocument:
        """
        Change the replica count of every segment of a resource.

        Args:
            resource_name: Resource name
            new_replica_count: Target replicas per segment

        Returns:
            The persisted document
        """
        with self.locks.locked(resource_name):
            doc = self.store.get_desired_state(resource_name)
            pool = self.store.get_instances_with_tag(doc.instance_group_tag or resource_name)
            self.replica_scaler.scale_replicas(doc, new_replica_count, pool)
            self.store.set_desired_state(resource_name, doc)

        return doc

    def evict_strategy(self, resource_name: str) -> bool:
        """Forget the cached strategy of a resource."""
        return self.strategy_cache.evict(resource_name)

    # Routing

    def _load_routing_document(self) -> DesiredStateDocument:
        try:
            return self.store.get_desired_state(self.routing_resource_name)
        except NotFoundError:
            logger.info(
                "Creating routing document",
                resource=self.routing_resource_name,
            )
            return self.segments.build_empty_routing_state(self.routing_resource_name)

    def add_routing_resource(
        self,
        resource_name: str,
        num_instances: Optional[int] = None,
    ) -> DesiredStateDocument:
        """
        Route a data resource to query-routing instances, or rescale its routing.

        Args:
            resource_name: Data resource name
            num_instances: Routing instances to use (defaults to the
                resource's configured count)

        Returns:
            The routing document as persisted
        """
        if num_instances is None:
            num_instances = self.config_store.get_resource_config(resource_name).num_routing_instances

        with self.locks.locked(self.routing_resource_name):
            doc = self._load_routing_document()
            pool = self.store.get_instances_with_tag(self.routing_instance_tag)
            result = self.routing.add_resource(doc, resource_name, num_instances, pool)

            # None means the scale-down path already committed the document
            if result is not None:
                self.store.set_desired_state(self.routing_resource_name, result)

        return doc

    def remove_routing_resource(self, resource_name: str) -> DesiredStateDocument:
        """
        Stop routing a data resource.

        Args:
            resource_name: Data resource name

        Returns:
            The persisted routing document
        """
        with self.locks.locked(self.routing_resource_name):
            doc = self.store.get_desired_state(self.routing_resource_name)
            self.routing.remove_resource(doc, resource_name)
            self.store.set_desired_state(self.routing_resource_name, doc)

        return doc
