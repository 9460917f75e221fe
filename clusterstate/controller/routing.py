"""
Routing document management.

The routing document maps each data resource to the query-routing instances
that serve it. It has no DROPPED state: an instance stops serving a resource
by being absent from the resource's entry.
"""

import random
from typing import List, Optional

from clusterstate.errors import InsufficientCapacityError, NotFoundError
from clusterstate.state.desired_state import DesiredStateDocument, SegmentState
from clusterstate.store.interfaces import CoordinationStore
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class RoutingAssignmentController:
    """
    Assigns query-routing instances to data resources.

    Scale-down ordering:
    1. Persist the document without the removed instances
    2. Disable the resource on each removed instance
    3. Re-enable it, so the instance keeps serving its other resources

    Disabling before the write would let stale routing data address an
    instance that no longer serves the resource.
    """

    def __init__(self, store: CoordinationStore, rng: Optional[random.Random] = None):
        """
        Initialize routing assignment controller.

        Args:
            store: Coordination store for the scale-down write and admin calls
            rng: Random source for instance selection
        """
        self.store = store
        self._rng = rng or random.Random()

    def _select_random(self, pool: List[str], count: int, resource_name: str) -> List[str]:
        candidates = list(dict.fromkeys(pool))

        if len(candidates) < count:
            logger.error(
                "Not enough routing instances",
                resource=resource_name,
                required=count,
                available=len(candidates),
            )
            raise InsufficientCapacityError(count, len(candidates), "routing")

        return self._rng.sample(candidates, count)

    def add_resource(
        self,
        doc: DesiredStateDocument,
        resource_name: str,
        desired_instance_count: int,
        pool: List[str],
    ) -> Optional[DesiredStateDocument]:
        """
        Route a resource to desired_instance_count instances.

        An existing entry is rescaled instead (see scale_resource).

        Args:
            doc: Routing document
            resource_name: Data resource name
            desired_instance_count: Routing instances to serve it
            pool: Routing instances to choose from

        Returns:
            The mutated document, or None if a scale-down was committed
        """
        if doc.get_instance_set(resource_name):
            return self.scale_resource(doc, resource_name, desired_instance_count, pool)

        selected = self._select_random(pool, desired_instance_count, resource_name)
        for instance in selected:
            doc.set_partition_state(resource_name, instance, SegmentState.ONLINE)

        logger.info(
            "Added routing resource",
            resource=resource_name,
            instances=selected,
        )

        return doc

    def scale_resource(
        self,
        doc: DesiredStateDocument,
        resource_name: str,
        desired_instance_count: int,
        pool: List[str],
    ) -> Optional[DesiredStateDocument]:
        """
        Change the number of routing instances serving a resource.

        Args:
            doc: Routing document
            resource_name: Data resource name
            desired_instance_count: Routing instances to serve it
            pool: Routing instances to choose from

        Returns:
            The mutated document, or None if a scale-down was committed
            to the store
        """
        state_map = doc.get_instance_state_map(resource_name)
        online = [i for i, state in state_map.items() if state == SegmentState.ONLINE]

        if len(online) > desired_instance_count:
            self._scale_down(doc, resource_name, online, len(online) - desired_instance_count)
            return None

        if len(online) < desired_instance_count:
            num_to_add = desired_instance_count - len(online)
            selected = self._select_random(pool, desired_instance_count, resource_name)
            added = []

            for instance in selected:
                if instance in online:
                    continue
                doc.set_partition_state(resource_name, instance, SegmentState.ONLINE)
                added.append(instance)
                num_to_add -= 1
                if num_to_add == 0:
                    break

            logger.info(
                "Scaled up routing resource",
                resource=resource_name,
                added=added,
            )

        return doc

    def _scale_down(
        self,
        doc: DesiredStateDocument,
        resource_name: str,
        online: List[str],
        excess: int,
    ) -> None:
        removed = online[:excess]
        kept = online[excess:]

        doc.remove_partition(resource_name)
        for instance in kept:
            doc.set_partition_state(resource_name, instance, SegmentState.ONLINE)

        self.store.set_desired_state(doc.resource_name, doc)

        for instance in removed:
            self.store.set_instance_enabled(False, doc.resource_name, instance, [resource_name])

        for instance in removed:
            self.store.set_instance_enabled(True, doc.resource_name, instance, [resource_name])

        logger.info(
            "Scaled down routing resource",
            resource=resource_name,
            removed=removed,
            kept=kept,
        )

    def remove_resource(self, doc: DesiredStateDocument, resource_name: str) -> DesiredStateDocument:
        """
        Stop routing a resource.

        Args:
            doc: Routing document
            resource_name: Data resource name

        Returns:
            The mutated document

        Raises:
            NotFoundError: If the resource has no routing entry
        """
        if not doc.get_instance_set(resource_name):
            logger.error("Cannot remove unknown routing resource", resource=resource_name)
            raise NotFoundError(f"Cannot find routing resource {resource_name}")

        doc.remove_partition(resource_name)

        logger.info("Removed routing resource", resource=resource_name)

        return doc
