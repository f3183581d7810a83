class KubeFleetError(Exception):
    """Base exception for KubeFleet."""

    pass


class ClusterError(KubeFleetError):
    """Base exception for errors raised while talking to the cluster control plane."""

    pass


class ClusterUnavailable(ClusterError):
    """Raised when the control-plane client is not configured or not reachable."""

    pass


class NodeNotFound(ClusterError):
    """Raised when neither the store nor the live cluster knows the identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Worker node not found: {identifier}")


class MetricsUnavailable(ClusterError):
    """Raised when no metrics backend answers. Callers degrade instead of failing."""

    def __init__(self, node: str = None, reason: str = None):
        self.node = node
        self.reason = reason
        target = f"node '{node}'" if node else "the cluster"
        super().__init__(f"Metrics unavailable for {target}: {reason}")


class EvictionFailed(ClusterError):
    """Raised when a single pod eviction is rejected or cannot be submitted."""

    def __init__(self, pod: str, namespace: str, reason: str):
        self.pod = pod
        self.namespace = namespace
        self.reason = reason
        super().__init__(f"Eviction of pod {namespace}/{pod} failed: {reason}")


class StoreInconsistency(KubeFleetError):
    """Raised when a live node cannot be matched or written in the node store."""

    def __init__(self, node: str, reason: str):
        self.node = node
        self.reason = reason
        super().__init__(f"Node store inconsistency for '{node}': {reason}")


class DatabaseError(KubeFleetError):
    """Base exception for database related errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass


class QueryError(DatabaseError):
    """Raised when a database query fails."""

    pass
