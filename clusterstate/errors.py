"""Error types raised by the desired-state controllers."""


class ClusterStateError(Exception):
    """Base exception for clusterstate."""
    pass


class NotFoundError(ClusterStateError):
    """A segment, resource or instance is absent where presence was assumed."""
    pass


class UnsupportedConfigurationError(ClusterStateError):
    """Unrecognized stream type, consumer mode or assignment strategy."""
    pass


class InsufficientCapacityError(ClusterStateError):
    """Fewer eligible instances than required replicas."""
    
    def __init__(self, required: int, available: int, tag: str = ""):
        self.required = required
        self.available = available
        self.tag = tag
        super().__init__(
            f"Not enough instances for tag '{tag}': required {required}, available {available}"
        )
