"""
NodeRepository - UI-side cache of generic document nodes.

The host document is the source of truth; this cache is replaced wholesale
from every snapshot. Collections are immutable tuples swapped under a lock,
so a reader sees either the old or the new collection, never a mix.

Usage:
    nodes = NodeRepository()
    nodes.set_nodes(snapshot.nodes)
    matches = nodes.get_filtered_nodes()
"""

import logging
import threading
from collections.abc import Callable, Iterable

from models.entities import NodeData

logger = logging.getLogger(__name__)

Listener = Callable[["NodeRepository"], None]


class NodeRepository:
    """
    Cached nodes plus selection, loading and search state.

    Thread-safe: All state access is protected by lock.
    """

    def __init__(self):
        self._nodes: tuple[NodeData, ...] = ()
        self._selected_node_id: str | None = None
        self._is_loading = False
        self._search_query = ""
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

    # ========== Properties (Thread-safe getters) ==========

    @property
    def nodes(self) -> tuple[NodeData, ...]:
        with self._lock:
            return self._nodes

    @property
    def selected_node_id(self) -> str | None:
        with self._lock:
            return self._selected_node_id

    @property
    def selected_node(self) -> NodeData | None:
        with self._lock:
            return self.get(self._selected_node_id) if self._selected_node_id else None

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._is_loading

    @property
    def search_query(self) -> str:
        with self._lock:
            return self._search_query

    # ========== Mutations ==========

    def set_nodes(self, nodes: Iterable[NodeData], notify: bool = True) -> None:
        """Replace every cached node. With notify=False the caller must call notify()."""
        with self._lock:
            self._nodes = tuple(nodes)
        if notify:
            self.notify()

    def add_node(self, node: NodeData) -> None:
        """Append a node, replacing any cached node with the same id."""
        with self._lock:
            kept = tuple(n for n in self._nodes if n.id != node.id)
            self._nodes = kept + (node,)
        self.notify()

    def update_node(self, node_id: str, **changes) -> NodeData | None:
        """
        Apply field changes to a cached node.

        Returns:
            The updated node, or None if the id is not cached
        """
        with self._lock:
            updated = None
            nodes = []
            for node in self._nodes:
                if node.id == node_id:
                    updated = node.model_copy(update=changes)
                    nodes.append(updated)
                else:
                    nodes.append(node)
            if updated is None:
                return None
            self._nodes = tuple(nodes)
        self.notify()
        return updated

    def remove_node(self, node_id: str) -> None:
        """Drop a node; clears the selection if it pointed at it."""
        with self._lock:
            self._nodes = tuple(n for n in self._nodes if n.id != node_id)
            if self._selected_node_id == node_id:
                self._selected_node_id = None
        self.notify()

    def select_node(self, node_id: str | None) -> None:
        with self._lock:
            self._selected_node_id = node_id or None
        self.notify()

    def set_loading(self, is_loading: bool) -> None:
        with self._lock:
            self._is_loading = is_loading
        self.notify()

    def set_search_query(self, query: str) -> None:
        with self._lock:
            self._search_query = query
        self.notify()

    # ========== Queries ==========

    def get(self, node_id: str) -> NodeData | None:
        with self._lock:
            return next((n for n in self._nodes if n.id == node_id), None)

    def get_filtered_nodes(self, query: str | None = None) -> tuple[NodeData, ...]:
        """Nodes whose name or type contains the query, case-insensitively."""
        with self._lock:
            needle = (self._search_query if query is None else query).lower()
            if not needle:
                return self._nodes
            return tuple(
                n for n in self._nodes if needle in n.name.lower() or needle in n.type.lower()
            )

    # ========== Change notification ==========

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        """Call every listener with the current state."""
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Error in node repository listener: {e}")
