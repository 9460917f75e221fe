"""
Replica count changes for every segment of a resource.

The scaler does not consult the resource's assignment strategy. New replicas
are spread with a uniform proportional fill over the candidate pool instead.
"""

import random
from typing import List, Optional

from clusterstate.state.desired_state import DesiredStateDocument, SegmentState
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class ReplicaScaler:
    """
    Raises or lowers the replica count of all segments of a resource.

    Increase: each segment gains (new - current) instances picked from the
    candidates it does not already have.
    Decrease: each segment marks (current - new) of its live instances DROPPED,
    never leaving fewer than the new count live.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize replica scaler.

        Args:
            rng: Random source for the proportional fill
        """
        self._rng = rng or random.Random()

    def scale_replicas(
        self,
        doc: DesiredStateDocument,
        new_replica_count: int,
        candidate_pool: List[str],
    ) -> DesiredStateDocument:
        """
        Change the replica count of a resource.

        Args:
            doc: Resource document
            new_replica_count: Target replicas per segment
            candidate_pool: Instances eligible for new replicas

        Returns:
            The mutated document (unchanged if the count is the same)
        """
        current_replicas = doc.num_replicas

        if new_replica_count > current_replicas:
            doc.num_replicas = new_replica_count
            self._increase(doc, new_replica_count - current_replicas, candidate_pool)
        elif new_replica_count < current_replicas:
            doc.num_replicas = new_replica_count
            self._decrease(doc, current_replicas - new_replica_count, new_replica_count)
        else:
            return doc

        logger.info(
            "Scaled replicas",
            resource=doc.resource_name,
            old_replicas=current_replicas,
            new_replicas=new_replica_count,
            segments=doc.num_partitions,
        )

        return doc

    def _increase(self, doc: DesiredStateDocument, to_add: int, candidate_pool: List[str]) -> None:
        candidates = list(dict.fromkeys(candidate_pool))

        for segment_id in list(doc.partitions.keys()):
            if not doc.live_instances(segment_id):
                continue

            assigned = set(doc.get_instance_set(segment_id))
            num_to_assign = to_add
            num_available = sum(1 for instance in candidates if instance not in assigned)
            added = []

            # Admit each unassigned candidate with probability
            # remaining-to-assign / remaining-available
            for instance in candidates:
                if num_to_assign == 0:
                    break
                if instance in assigned:
                    continue

                if self._rng.randrange(num_available) < num_to_assign:
                    doc.set_partition_state(segment_id, instance, SegmentState.ONLINE)
                    added.append(instance)
                    num_to_assign -= 1

                num_available -= 1

            if num_to_assign > 0:
                logger.warning(
                    "Candidate pool exhausted while adding replicas",
                    resource=doc.resource_name,
                    segment=segment_id,
                    missing=num_to_assign,
                )

            logger.debug(
                "Added replicas",
                resource=doc.resource_name,
                segment=segment_id,
                instances=added,
            )

    def _decrease(self, doc: DesiredStateDocument, to_drop: int, new_replica_count: int) -> None:
        for segment_id in list(doc.partitions.keys()):
            live = doc.live_instances(segment_id)
            # A segment placed below the old count keeps at least the new count
            num_to_drop = min(to_drop, max(0, len(live) - new_replica_count))
            dropped = live[:num_to_drop]

            for instance in dropped:
                doc.set_partition_state(segment_id, instance, SegmentState.DROPPED)

            logger.debug(
                "Dropped replicas",
                resource=doc.resource_name,
                segment=segment_id,
                instances=dropped,
            )
