from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.node import WorkerNode


class NodeStore(ABC):
    """
    Abstract base class for worker-node stores.
    Every operation is keyed by the unique node ``name``; ``id`` lookups
    exist only to resolve an opaque identifier to a name.
    """

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[WorkerNode]:
        """
        Retrieves one record by node name.

        Returns:
            The WorkerNode, or None if the name is unknown.
        """
        pass

    @abstractmethod
    async def get_by_id(self, node_id: str) -> Optional[WorkerNode]:
        """
        Retrieves one record by its store-assigned identifier.

        Returns:
            The WorkerNode, or None if the identifier is unknown.
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[WorkerNode]:
        """Returns every stored record, ordered by name."""
        pass

    @abstractmethod
    async def create(self, node: WorkerNode) -> WorkerNode:
        """
        Inserts a new record. Assigns ``id`` and timestamps when missing.

        Returns:
            The stored record.
        """
        pass

    @abstractmethod
    async def update(self, name: str, fields: Dict[str, Any]) -> Optional[WorkerNode]:
        """
        Partially updates the record named ``name``.

        Args:
            name: Node name.
            fields: Column values to set; ``updated_at`` is refreshed automatically.

        Returns:
            The updated record, or None if the name is unknown.
        """
        pass

    @abstractmethod
    async def upsert(self, node: WorkerNode) -> WorkerNode:
        """
        Inserts ``node`` or, when the name already exists, refreshes only the
        observed columns (identity, hardware, labels, taints, readiness,
        schedulability, heartbeat). Runs as a single statement so concurrent
        callers cannot both create the same name.

        Returns:
            The stored record after the write.
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """
        Deletes the record named ``name``.

        Returns:
            True if a record was deleted.
        """
        pass
