"""
Read-only projections of document nodes, as seen by the UI process.

The host document owns every node. These records are derived live on the
host side and cached (never authoritative) on the UI side.
"""

from pydantic import Field

from models.base import WireModel
from models.geometry import Rect


class NodeData(WireModel):
    """A generic positioned element."""

    id: str
    name: str
    type: str
    x: float
    y: float
    width: float
    height: float
    visible: bool = True
    locked: bool = False

    @property
    def rect(self) -> Rect:
        return Rect.of(self)


class DashboardFrame(WireModel):
    """
    A container node marked as a dashboard.

    visual_ids is derived from child membership when the host builds the
    snapshot; it is never stored on the node.
    """

    id: str
    name: str
    x: float
    y: float
    width: float
    height: float
    visual_ids: tuple[str, ...] = ()

    @property
    def rect(self) -> Rect:
        return Rect.of(self)


class Visual(WireModel):
    """A node that belongs to exactly one dashboard frame."""

    id: str
    name: str
    type: str
    dashboard_id: str
    x: float
    y: float
    width: float
    height: float

    @property
    def rect(self) -> Rect:
        return Rect.of(self)


class ViewportBounds(WireModel):
    """Visible region of the host document, in document coordinates."""

    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    @property
    def rect(self) -> Rect:
        return Rect.of(self)


class Snapshot(WireModel):
    """Full replace-style dump of document state sent after every mutation."""

    nodes: tuple[NodeData, ...] = ()
    dashboards: tuple[DashboardFrame, ...] = ()
    visuals: tuple[Visual, ...] = ()
    viewport: ViewportBounds | None = None
