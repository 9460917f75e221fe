"""
Pluggable segment placement strategies and their per-resource cache.
"""

from clusterstate.strategy.assignment import (
    AssignmentStrategy,
    BalancedAssignmentStrategy,
    RandomAssignmentStrategy,
    create_assignment_strategy,
)
from clusterstate.strategy.cache import StrategyCache

__all__ = [
    "AssignmentStrategy",
    "RandomAssignmentStrategy",
    "BalancedAssignmentStrategy",
    "create_assignment_strategy",
    "StrategyCache",
]
