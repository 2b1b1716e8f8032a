"""
Node tags that mark plugin ownership and dashboard roles.

A node is a dashboard when it is a FRAME carrying both the plugin-ownership
tag and the dashboard tag. Tags are the only state this system persists.
"""

import logging
from datetime import datetime, timezone

from document.api import DocumentAPI, SceneNode
from models.nodes import NodeKind

logger = logging.getLogger(__name__)

DASHBOARD_KEY = "dashboard"
VISUAL_KEY = "visual"
CREATED_AT_KEY = "createdAt"
SOURCE_KEY = "source"
TRUE = "true"


class TagService:
    """Reads and writes the plugin's tags on document nodes."""

    def __init__(self, document: DocumentAPI, plugin_id: str = "smartbi-plugin"):
        self.document = document
        self.plugin_key = plugin_id

    def mark_plugin_owned(self, node: SceneNode, source: str | None = None) -> None:
        self.document.set_tag(node, self.plugin_key, TRUE)
        self.document.set_tag(node, CREATED_AT_KEY, datetime.now(timezone.utc).isoformat())
        if source:
            self.document.set_tag(node, SOURCE_KEY, source)

    def mark_dashboard(self, node: SceneNode) -> None:
        """Only frames can be dashboards; other kinds are left untouched."""
        if node.type == NodeKind.FRAME:
            self.document.set_tag(node, DASHBOARD_KEY, TRUE)

    def mark_visual(self, node: SceneNode) -> None:
        self.document.set_tag(node, VISUAL_KEY, TRUE)

    def is_plugin_owned(self, node: SceneNode) -> bool:
        return self.document.get_tag(node, self.plugin_key) == TRUE

    def is_dashboard(self, node: SceneNode) -> bool:
        return (
            node.type == NodeKind.FRAME
            and self.is_plugin_owned(node)
            and self.document.get_tag(node, DASHBOARD_KEY) == TRUE
        )

    def is_visual(self, node: SceneNode) -> bool:
        return self.document.get_tag(node, VISUAL_KEY) == TRUE

    def find_dashboard_for_node(self, node: SceneNode) -> SceneNode | None:
        """Nearest ancestor (excluding the node itself) that is a dashboard."""
        parent = node.parent
        while parent is not None:
            if self.is_dashboard(parent):
                return parent
            parent = parent.parent
        return None
