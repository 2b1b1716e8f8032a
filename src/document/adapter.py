"""
Document Adapter - executes UI commands against the host document.

Everything returned to the UI is re-derived live from the document on each
call; nothing is cached on the host side. Creation and import are atomic:
if any step after the node exists fails, the node is removed again before
the error propagates.
"""

import base64
import logging
import re

from document.api import DocumentAPI, SceneNode
from document.errors import NodeNotFoundError
from document.factory import NodeFactory
from document.tags import TagService
from models.entities import DashboardFrame, NodeData, Snapshot, ViewportBounds, Visual
from models.messages import (
    CreateVisualPayload,
    ExportCompletePayload,
    ExportedFile,
    ExportFormat,
    ImportSvgPayload,
    NodeProperties,
    SelectionChangedPayload,
)
from models.nodes import CONTAINER_KINDS, BaseNodeConfig, NodeKind

logger = logging.getLogger(__name__)

SVG_IMPORT_SOURCE = "svg-import"


class DocumentAdapter:
    """Host-side command executor over a DocumentAPI."""

    def __init__(self, document: DocumentAPI, tags: TagService, factory: NodeFactory | None = None):
        self.document = document
        self.tags = tags
        self.factory = factory or NodeFactory(document)

    # ========== Reads ==========

    def get_nodes(self) -> list[NodeData]:
        """Every plugin-owned node on the page, at any depth."""
        return [_node_data(n) for n in self.document.find_nodes_matching(self.tags.is_plugin_owned)]

    def get_dashboards(self) -> list[DashboardFrame]:
        frames = self.document.find_nodes_matching(self.tags.is_dashboard)
        return [
            DashboardFrame(
                id=frame.id,
                name=frame.name,
                x=frame.x,
                y=frame.y,
                width=frame.width,
                height=frame.height,
                visual_ids=tuple(c.id for c in self._visual_children(frame)),
            )
            for frame in frames
        ]

    def get_visuals(self) -> list[Visual]:
        """Plugin-owned immediate children of every dashboard."""
        visuals = []
        for frame in self.document.find_nodes_matching(self.tags.is_dashboard):
            for child in self._visual_children(frame):
                visuals.append(
                    Visual(
                        id=child.id,
                        name=child.name,
                        type=str(child.type),
                        dashboard_id=frame.id,
                        x=child.x,
                        y=child.y,
                        width=child.width,
                        height=child.height,
                    )
                )
        return visuals

    def snapshot(self) -> Snapshot:
        viewport = self.document.get_viewport()
        return Snapshot(
            nodes=tuple(self.get_nodes()),
            dashboards=tuple(self.get_dashboards()),
            visuals=tuple(self.get_visuals()),
            viewport=ViewportBounds(
                x=viewport.x, y=viewport.y, width=viewport.width, height=viewport.height
            ),
        )

    def require_node(self, node_id: str) -> SceneNode:
        node = self.document.get_node_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def require_dashboard(self, dashboard_id: str) -> SceneNode:
        node = self.document.get_node_by_id(dashboard_id)
        if node is None or not self.tags.is_dashboard(node):
            raise NodeNotFoundError(dashboard_id, f"Dashboard not found: {dashboard_id}")
        return node

    # ========== Commands ==========

    async def create_node(self, config: BaseNodeConfig) -> SceneNode:
        """
        Create a plain node.

        A frame created this way becomes a dashboard and is selected and
        brought into view.
        """
        node = await self._build(config, parent_id=config.parent_id)
        if node.type == NodeKind.FRAME:
            self.tags.mark_dashboard(node)
            self.document.set_selection([node])
            self.document.focus_viewport([node])
        logger.info(f"Created {node.type} {node.id} ({node.name})")
        return node

    async def create_visual(self, payload: CreateVisualPayload) -> SceneNode:
        """Create a node inside a dashboard at a precomputed rectangle."""
        dashboard = self.require_dashboard(payload.dashboard_id)
        node = await self._build(payload.config, parent_id=dashboard.id)
        try:
            self.tags.mark_visual(node)
            self.apply_layout(node, payload.x, payload.y, payload.width, payload.height)
            self.smart_zoom(dashboard, payload.should_zoom)
        except Exception:
            self._discard(node)
            raise
        logger.info(f"Created visual {node.id} in dashboard {dashboard.id}")
        return node

    async def import_svg(self, payload: ImportSvgPayload) -> SceneNode:
        """
        Import rendered SVG markup as a node.

        With a dashboard id the node is attached to it and laid out like a
        visual; otherwise it lands on the page root and is brought into view.
        """
        node = None
        try:
            dashboard = self.require_dashboard(payload.dashboard_id) if payload.dashboard_id else None
            node = self.document.create_node_from_svg(payload.svg)
            self.document.set_properties(node, name=payload.name)
            self.tags.mark_plugin_owned(node, source=SVG_IMPORT_SOURCE)

            if dashboard is not None:
                self.document.reparent(node, dashboard)
                self.tags.mark_visual(node)
                self.apply_layout(node, payload.x, payload.y, payload.width, payload.height)
                self.smart_zoom(dashboard, payload.should_zoom)
            else:
                self.apply_layout(node, payload.x, payload.y)
                self.document.focus_viewport([node])
        except Exception as e:
            logger.error(f"SVG import of {payload.name!r} failed: {e}")
            if node is not None:
                self._discard(node)
            raise
        logger.info(f"Imported {payload.name} as {node.id}")
        return node

    async def update_node(self, node_id: str, properties: NodeProperties) -> SceneNode:
        """Apply only the properties that are set."""
        node = self.require_node(node_id)
        changes = properties.model_dump(exclude_none=True)
        if changes:
            self.document.set_properties(node, **changes)
        logger.info(f"Updated {node_id}: {sorted(changes)}")
        return node

    async def delete_nodes(self, node_ids: tuple[str, ...]) -> tuple[str, ...]:
        """Remove each node that still exists; missing ids are skipped."""
        removed = 0
        for node_id in node_ids:
            node = self.document.get_node_by_id(node_id)
            if node is None:
                logger.debug(f"Delete skipped missing node {node_id}")
                continue
            self.document.remove(node)
            removed += 1
        logger.info(f"Deleted {removed}/{len(node_ids)} node(s)")
        return tuple(node_ids)

    async def select_node(self, node_id: str) -> SelectionChangedPayload:
        node = self.require_node(node_id)
        self.document.set_selection([node])
        self.document.focus_viewport([node])
        return self.resolve_selection()

    async def export_selection(self, format: ExportFormat = ExportFormat.SVG) -> ExportCompletePayload:
        selection = self.document.get_selection()
        if not selection:
            raise NodeNotFoundError(message="No selection")

        fmt = ExportFormat(format)
        exports = []
        for node in selection:
            data = await self.document.export_node(node, fmt.value)
            exports.append(
                ExportedFile(
                    id=node.id,
                    name=node.name,
                    format=fmt,
                    filename=f"{_safe_filename(node.name)}.{fmt.value.lower()}",
                    data=base64.b64encode(data).decode("ascii"),
                )
            )
        logger.info(f"Exported {len(exports)} node(s) as {fmt.value}")
        return ExportCompletePayload(exports=tuple(exports))

    # ========== Layout helpers ==========

    def apply_layout(
        self,
        node: SceneNode,
        x: float | None = None,
        y: float | None = None,
        width: float | None = None,
        height: float | None = None,
    ) -> None:
        """Resize (when both sides are given), then move (keeping unset coordinates)."""
        if width is not None and height is not None:
            self.document.resize(node, width, height)
        if x is not None or y is not None:
            self.document.move(node, node.x if x is None else x, node.y if y is None else y)

    def smart_zoom(self, dashboard: SceneNode, should_zoom: bool) -> None:
        if should_zoom:
            self.document.focus_viewport([dashboard])

    def resolve_selection(self) -> SelectionChangedPayload:
        """Selected node and its owning dashboard; empty unless exactly one is selected."""
        selection = self.document.get_selection()
        if len(selection) != 1:
            return SelectionChangedPayload(id="")

        node = selection[0]
        dashboard = node if self.tags.is_dashboard(node) else self.tags.find_dashboard_for_node(node)
        return SelectionChangedPayload(id=node.id, dashboard_id=dashboard.id if dashboard else None)

    # ========== Internals ==========

    async def _build(self, config: BaseNodeConfig, parent_id: str | None = None) -> SceneNode:
        node = await self.factory.create(config)
        try:
            self.tags.mark_plugin_owned(node)
            if parent_id:
                parent = self.document.get_node_by_id(parent_id)
                # Parents that cannot hold children leave the node at the page root
                if parent is not None and parent.type in CONTAINER_KINDS:
                    self.document.reparent(node, parent)
                else:
                    logger.debug(f"Parent {parent_id} cannot accept children, keeping {node.id} at root")
        except Exception:
            self._discard(node)
            raise
        return node

    def _visual_children(self, frame: SceneNode) -> list[SceneNode]:
        return [c for c in frame.children if self.tags.is_plugin_owned(c)]

    def _discard(self, node: SceneNode) -> None:
        if not node.removed:
            logger.debug(f"Rolling back partially created node {node.id}")
            self.document.remove(node)


def _node_data(node: SceneNode) -> NodeData:
    return NodeData(
        id=node.id,
        name=node.name,
        type=str(node.type),
        x=node.x,
        y=node.y,
        width=node.width,
        height=node.height,
        visible=node.visible,
        locked=node.locked,
    )


def _safe_filename(name: str) -> str:
    return re.sub(r"[^\w.-]+", "_", name).strip("_") or "export"
