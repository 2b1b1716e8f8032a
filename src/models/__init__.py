"""
Data models shared by the UI and host processes
"""

from .entities import DashboardFrame, NodeData, Snapshot, ViewportBounds, Visual
from .geometry import Dimensions, LayoutResult, Position, Rect
from .messages import (
    HostMessage,
    HostMessageType,
    MessageChannel,
    UIMessage,
    UIMessageType,
)
from .nodes import NodeKind, parse_node_config

__all__ = [
    "DashboardFrame",
    "Dimensions",
    "HostMessage",
    "HostMessageType",
    "LayoutResult",
    "MessageChannel",
    "NodeData",
    "NodeKind",
    "Position",
    "Rect",
    "Snapshot",
    "UIMessage",
    "UIMessageType",
    "ViewportBounds",
    "Visual",
    "parse_node_config",
]
