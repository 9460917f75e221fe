"""
Segment assignment strategies.

Implements different strategies for choosing the instances that host a segment.
"""

import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from clusterstate.errors import InsufficientCapacityError, UnsupportedConfigurationError
from clusterstate.state.metadata import SegmentMetadata
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class AssignmentStrategy(ABC):
    """Abstract base class for segment assignment strategies."""

    name = "abstract"

    @abstractmethod
    def select(
        self,
        candidate_pool: List[str],
        segment: SegmentMetadata,
        replica_count: int,
        tenant_tag: str,
        instance_load: Optional[Dict[str, int]] = None,
    ) -> List[str]:
        """
        Select the instances that should host a segment.

        Args:
            candidate_pool: Eligible instance ids
            segment: Segment being placed
            replica_count: Number of instances to select
            tenant_tag: Tag the pool was selected with
            instance_load: Live segment count per instance, when known

        Returns:
            Exactly replica_count distinct instance ids

        Raises:
            InsufficientCapacityError: If the pool is too small
        """
        pass

    def _check_capacity(
        self,
        candidate_pool: List[str],
        segment: SegmentMetadata,
        replica_count: int,
        tenant_tag: str,
    ) -> List[str]:
        candidates = list(dict.fromkeys(candidate_pool))

        if len(candidates) < replica_count:
            logger.error(
                "Not enough instances for replication",
                strategy=self.name,
                segment=segment.segment_name,
                tenant_tag=tenant_tag,
                required=replica_count,
                available=len(candidates),
            )
            raise InsufficientCapacityError(replica_count, len(candidates), tenant_tag)

        return candidates


class RandomAssignmentStrategy(AssignmentStrategy):
    """
    Random assignment strategy.

    Picks replica_count instances uniformly at random from the pool.
    """

    name = "random"

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(
        self,
        candidate_pool: List[str],
        segment: SegmentMetadata,
        replica_count: int,
        tenant_tag: str,
        instance_load: Optional[Dict[str, int]] = None,
    ) -> List[str]:
        """Select instances uniformly at random."""
        candidates = self._check_capacity(candidate_pool, segment, replica_count, tenant_tag)
        selected = self._rng.sample(candidates, replica_count)

        logger.info(
            "Random assignment complete",
            segment=segment.segment_name,
            instances=selected,
        )

        return selected


class BalancedAssignmentStrategy(AssignmentStrategy):
    """
    Balanced (least-loaded) assignment strategy.

    Picks the instances hosting the fewest live segments. Ties are broken
    randomly so equally loaded instances share new segments.
    Example: load {A: 3, B: 1, C: 1, D: 2}, replica_count 2
      Selected: B, C
    """

    name = "balanced"

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(
        self,
        candidate_pool: List[str],
        segment: SegmentMetadata,
        replica_count: int,
        tenant_tag: str,
        instance_load: Optional[Dict[str, int]] = None,
    ) -> List[str]:
        """Select the least-loaded instances."""
        candidates = self._check_capacity(candidate_pool, segment, replica_count, tenant_tag)
        load = instance_load or {}

        # Shuffle first so the stable sort breaks ties randomly
        self._rng.shuffle(candidates)
        candidates.sort(key=lambda instance: load.get(instance, 0))
        selected = candidates[:replica_count]

        logger.info(
            "Balanced assignment complete",
            segment=segment.segment_name,
            instances=selected,
            load={i: load.get(i, 0) for i in selected},
        )

        return selected


STRATEGIES = {
    "random": RandomAssignmentStrategy,
    "balanced": BalancedAssignmentStrategy,
    "balancenumsegment": BalancedAssignmentStrategy,
}


def create_assignment_strategy(name: str) -> AssignmentStrategy:
    """
    Create assignment strategy by name.

    Args:
        name: Strategy name (random, balanced)

    Returns:
        Assignment strategy instance

    Raises:
        UnsupportedConfigurationError: If the name is unknown
    """
    strategy_class = STRATEGIES.get(name.lower().replace("_", ""))
    if not strategy_class:
        raise UnsupportedConfigurationError(f"Unknown assignment strategy: {name}")

    return strategy_class()
