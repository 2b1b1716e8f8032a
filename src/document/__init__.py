"""Host document access: API protocol, in-memory document, adapter."""

from .adapter import DocumentAdapter
from .api import DocumentAPI, DocumentChange, SceneNode
from .errors import DashboardError, DocumentAPIError, NodeNotFoundError, UnsupportedOperationError
from .factory import NodeFactory
from .memory import InMemoryDocument
from .tags import TagService

__all__ = [
    "DashboardError",
    "DocumentAPI",
    "DocumentAPIError",
    "DocumentAdapter",
    "DocumentChange",
    "InMemoryDocument",
    "NodeFactory",
    "NodeNotFoundError",
    "SceneNode",
    "TagService",
    "UnsupportedOperationError",
]
