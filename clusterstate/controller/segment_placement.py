"""
Segment placement on desired-state documents.

Builds documents and adds, refreshes, drops and removes segment entries.
Methods transform the given document in memory and return it; only
update_segment_in_place writes to the store itself. No locking happens
here: callers serialize mutations per resource (see DesiredStateManager).
"""

from typing import Optional

from clusterstate.errors import NotFoundError
from clusterstate.state.desired_state import (
    DesiredStateDocument,
    SegmentState,
    build_routing_document,
)
from clusterstate.state.metadata import SegmentMetadata
from clusterstate.store.interfaces import CoordinationStore
from clusterstate.strategy.assignment import AssignmentStrategy
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class SegmentPlacementController:
    """
    Places segments of a resource onto serving instances.

    Hosting instances react to state transitions, not to document contents,
    so a segment that must be reloaded is pulsed OFFLINE then ONLINE even
    though its instance set does not change.
    """

    def __init__(self, store: CoordinationStore):
        """
        Initialize segment placement controller.

        Args:
            store: Coordination store, used for instance pools and the
                intermediate write of an in-place update
        """
        self.store = store

    def build_empty_state(self, resource_name: str, replica_count: int) -> DesiredStateDocument:
        """
        Build the document of a resource that has no data yet.

        Args:
            resource_name: Resource name, also used as instance group tag
            replica_count: Replicas per segment

        Returns:
            Empty document
        """
        doc = DesiredStateDocument(
            resource_name=resource_name,
            num_partitions=0,
            num_replicas=replica_count,
            instance_group_tag=resource_name,
        )

        logger.info(
            "Built empty desired state",
            resource=resource_name,
            replicas=replica_count,
        )

        return doc

    def build_empty_routing_state(self, resource_name: str) -> DesiredStateDocument:
        """Build the empty cluster-wide routing document."""
        return build_routing_document(resource_name)

    def add_or_update_segment(
        self,
        doc: DesiredStateDocument,
        segment_id: str,
        segment_meta: SegmentMetadata,
        strategy: AssignmentStrategy,
        replica_count: int,
        tenant_tag: str,
    ) -> DesiredStateDocument:
        """
        Place a new segment, or pulse an existing one so it is reloaded.

        Args:
            doc: Resource document
            segment_id: Segment id
            segment_meta: Segment metadata passed to the strategy
            strategy: Placement strategy of the resource
            replica_count: Replicas for a new segment
            tenant_tag: Tag selecting the candidate pool

        Returns:
            The mutated document

        Raises:
            InsufficientCapacityError: If the pool cannot hold replica_count replicas
        """
        current_instances = doc.live_instances(segment_id)

        if not current_instances and segment_id in doc.partitions:
            # Only DROPPED entries left: the segment starts a fresh lifecycle
            logger.info(
                "Replacing dropped segment",
                resource=doc.resource_name,
                segment=segment_id,
            )
            doc.remove_partition(segment_id)

        if not current_instances:
            candidate_pool = self.store.get_instances_with_tag(tenant_tag)
            selected = strategy.select(
                candidate_pool,
                segment_meta,
                replica_count,
                tenant_tag,
                instance_load=doc.instance_load(),
            )

            for instance in selected:
                doc.set_partition_state(segment_id, instance, SegmentState.ONLINE)

            logger.info(
                "Added segment",
                resource=doc.resource_name,
                segment=segment_id,
                instances=selected,
                num_partitions=doc.num_partitions,
            )
        else:
            for instance in current_instances:
                doc.set_partition_state(segment_id, instance, SegmentState.OFFLINE)
                doc.set_partition_state(segment_id, instance, SegmentState.ONLINE)

            logger.info(
                "Refreshed segment",
                resource=doc.resource_name,
                segment=segment_id,
                instances=current_instances,
            )

        return doc

    def add_realtime_segment(
        self,
        doc: DesiredStateDocument,
        segment_id: str,
        instance_id: str,
    ) -> DesiredStateDocument:
        """
        Record a segment sealed by a consuming instance.

        The segment is hosted by the instance that built it.

        Args:
            doc: Realtime resource document
            segment_id: Segment id
            instance_id: Consuming instance

        Returns:
            The mutated document
        """
        doc.set_partition_state(segment_id, instance_id, SegmentState.ONLINE)

        logger.info(
            "Added realtime segment",
            resource=doc.resource_name,
            segment=segment_id,
            instance=instance_id,
        )

        return doc

    def _require_segment(self, doc: DesiredStateDocument, segment_id: str, action: str) -> None:
        if not doc.get_instance_set(segment_id) or segment_id not in doc.partition_set():
            logger.error(
                f"Cannot {action} unknown segment",
                resource=doc.resource_name,
                segment=segment_id,
            )
            raise NotFoundError(
                f"Cannot find segment {segment_id} in resource {doc.resource_name}"
            )

    def drop_segment(self, doc: DesiredStateDocument, segment_id: str) -> DesiredStateDocument:
        """
        Mark every instance of a segment DROPPED.

        Args:
            doc: Resource document
            segment_id: Segment id

        Returns:
            The mutated document

        Raises:
            NotFoundError: If the segment is absent or has no live instances
        """
        self._require_segment(doc, segment_id, "drop")

        instances = doc.get_instance_set(segment_id)
        for instance in instances:
            doc.set_partition_state(segment_id, instance, SegmentState.DROPPED)

        logger.info(
            "Dropped segment",
            resource=doc.resource_name,
            segment=segment_id,
            instances=instances,
        )

        return doc

    def remove_segment(self, doc: DesiredStateDocument, segment_id: str) -> DesiredStateDocument:
        """
        Erase a segment from the document.

        Args:
            doc: Resource document
            segment_id: Segment id

        Returns:
            The mutated document

        Raises:
            NotFoundError: If the segment is absent or has no instances
        """
        self._require_segment(doc, segment_id, "remove")

        doc.remove_partition(segment_id)

        logger.info(
            "Removed segment",
            resource=doc.resource_name,
            segment=segment_id,
            num_partitions=doc.num_partitions,
        )

        return doc

    def update_segment_in_place(
        self,
        doc: DesiredStateDocument,
        segment_id: str,
        store: Optional[CoordinationStore] = None,
    ) -> DesiredStateDocument:
        """
        Pulse a segment with the OFFLINE phase persisted in between.

        The OFFLINE document is written to the store before the instances are
        set back ONLINE, so the store observes both transitions. The caller
        persists the returned ONLINE document.

        Args:
            doc: Resource document
            segment_id: Segment id
            store: Store for the intermediate write (defaults to this controller's)

        Returns:
            The mutated document, back in ONLINE state

        Raises:
            NotFoundError: If the segment is absent or has no live instances
        """
        self._require_segment(doc, segment_id, "update")

        store = store or self.store
        instances = doc.live_instances(segment_id)

        if not instances:
            logger.error(
                "Cannot update dropped segment",
                resource=doc.resource_name,
                segment=segment_id,
            )
            raise NotFoundError(
                f"Segment {segment_id} in resource {doc.resource_name} has no live instances"
            )

        for instance in instances:
            doc.set_partition_state(segment_id, instance, SegmentState.OFFLINE)

        store.set_desired_state(doc.resource_name, doc)

        for instance in instances:
            doc.set_partition_state(segment_id, instance, SegmentState.ONLINE)

        logger.info(
            "Updated segment in place",
            resource=doc.resource_name,
            segment=segment_id,
            instances=instances,
        )

        return doc
