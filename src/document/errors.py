"""
Document-side error taxonomy.

Every one of these is caught at the host channel's handler boundary and
reported to the UI as a single `error` envelope carrying str(exc).
"""


class DashboardError(Exception):
    """Base class for failures raised while serving a UI command."""


class NodeNotFoundError(DashboardError):
    """A referenced node id no longer exists in the document."""

    def __init__(self, node_id: str | None = None, message: str = "Node not found"):
        self.node_id = node_id
        super().__init__(message)


class UnsupportedOperationError(DashboardError):
    """The requested node kind, config or export format cannot be served."""


class DocumentAPIError(DashboardError):
    """A call into the document API failed (bad resize, font load, SVG parse, ...)."""
