"""UI-side caches of host document state."""

from .dashboard_repository import DashboardRepository
from .node_repository import NodeRepository

__all__ = ["DashboardRepository", "NodeRepository"]
