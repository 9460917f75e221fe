"""
Per-resource cache of resolved assignment strategies.
"""

import threading
from typing import Callable, Dict, Optional

from clusterstate.strategy.assignment import AssignmentStrategy, create_assignment_strategy
from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class StrategyCache:
    """
    Cache mapping resource name to its assignment strategy.

    A strategy is resolved from the resource configuration on first use and
    kept for the resource's lifetime. Later configuration changes only take
    effect after the entry is evicted.
    """

    def __init__(
        self,
        factory: Callable[[str], AssignmentStrategy] = create_assignment_strategy,
    ):
        """
        Initialize strategy cache.

        Args:
            factory: Builds a strategy from its configured name
        """
        self._factory = factory
        self._strategies: Dict[str, AssignmentStrategy] = {}
        self._lock = threading.Lock()

    def get_or_create(self, resource_name: str, strategy_name: str) -> AssignmentStrategy:
        """
        Get the cached strategy for a resource, resolving it if absent.

        Args:
            resource_name: Resource name
            strategy_name: Configured strategy name, used only on first use

        Returns:
            Strategy instance
        """
        strategy = self._strategies.get(resource_name)
        if strategy is not None:
            return strategy

        with self._lock:
            strategy = self._strategies.get(resource_name)
            if strategy is None:
                strategy = self._factory(strategy_name)
                self._strategies[resource_name] = strategy

                logger.info(
                    "Resolved assignment strategy",
                    resource=resource_name,
                    strategy=strategy.name,
                )

            return strategy

    def get(self, resource_name: str) -> Optional[AssignmentStrategy]:
        return self._strategies.get(resource_name)

    def evict(self, resource_name: str) -> bool:
        """
        Drop the cached strategy of a resource.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._strategies.pop(resource_name, None) is not None

        if removed:
            logger.info("Evicted assignment strategy", resource=resource_name)

        return removed

    def clear(self) -> None:
        with self._lock:
            self._strategies.clear()

    def __contains__(self, resource_name: str) -> bool:
        return resource_name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
