"""
Dashboard Session - UI-side orchestration.

Turns user intent into command envelopes and inbound host envelopes into
repository updates. The repositories are never written optimistically:
every mutating command waits for the host's `nodes-data` snapshot, which
replaces the cached state wholesale. A failed command therefore needs no
rollback.

Usage:
    session = DashboardSession(bridge, NodeRepository(), DashboardRepository(), LayoutEngine())
    await session.start()
    await session.create_node(FrameConfig(name="Sales", width=1200, height=768))
    await session.create_visual(RectangleConfig(name="KPI"))
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from bridge.ui_bridge import UIBridge
from charts.defaults import default_chart_config
from charts.renderer import ChartRenderer
from charts.types import ChartConfig, ChartType
from layout.engine import LayoutEngine
from models.entities import DashboardFrame, Snapshot
from models.geometry import Dimensions, LayoutResult
from models.messages import (
    CreateVisualPayload,
    DeleteNodePayload,
    ExportCompletePayload,
    ExportFormat,
    ExportPayload,
    HostMessage,
    HostMessageType,
    ImportSvgPayload,
    NodeDeletedPayload,
    NodeProperties,
    SelectionChangedPayload,
    SelectNodePayload,
    UIMessageType,
    UpdateNodePayload,
    parse_host_data,
)
from models.nodes import BaseNodeConfig, parse_node_config
from repositories.dashboard_repository import DashboardRepository
from repositories.node_repository import NodeRepository
from ui.notifications import NotificationCenter, NotificationType

logger = logging.getLogger(__name__)


class DashboardSession:
    """One UI session bound to one bridge."""

    def __init__(
        self,
        bridge: UIBridge,
        nodes: NodeRepository,
        dashboards: DashboardRepository,
        layout: LayoutEngine,
        renderer: ChartRenderer | None = None,
        notifications: NotificationCenter | None = None,
    ):
        self.bridge = bridge
        self.nodes = nodes
        self.dashboards = dashboards
        self.layout = layout
        self.renderer = renderer
        self.notifications = notifications or NotificationCenter()
        self.last_export: ExportCompletePayload | None = None
        self._unsubscribers = []

    @property
    def is_started(self) -> bool:
        return bool(self._unsubscribers)

    async def start(self) -> HostMessage:
        """Register handlers and announce readiness; resolves with the first snapshot."""
        if not self.is_started:
            self._unsubscribers = [
                self.bridge.on(HostMessageType.NODES_DATA, self._on_nodes_data),
                self.bridge.on(HostMessageType.NODE_CREATED, self._on_node_created),
                self.bridge.on(HostMessageType.NODE_UPDATED, self._on_node_updated),
                self.bridge.on(HostMessageType.NODE_DELETED, self._on_node_deleted),
                self.bridge.on(HostMessageType.SELECTION_CHANGED, self._on_selection_changed),
                self.bridge.on(HostMessageType.EXPORT_COMPLETE, self._on_export_complete),
                self.bridge.on(HostMessageType.ERROR, self._on_error),
            ]
        self.nodes.set_loading(True)
        return await self.bridge.request(UIMessageType.UI_READY, expect=HostMessageType.NODES_DATA)

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ========== Commands ==========

    async def create_node(self, config: BaseNodeConfig | dict) -> HostMessage:
        return await self._mutate(UIMessageType.CREATE_NODE, parse_node_config(config))

    async def create_nodes(self, configs: Iterable[BaseNodeConfig | dict]) -> list[HostMessage]:
        """Create several plain nodes, one command at a time."""
        return [await self.create_node(config) for config in configs]

    async def create_visual(self, config: BaseNodeConfig | dict) -> HostMessage:
        """
        Create a node laid out inside the selected dashboard.

        Without a (cached) selected dashboard this is a plain create.
        """
        config = parse_node_config(config)
        dashboard = self.dashboards.selected_dashboard
        if dashboard is None:
            return await self.create_node(config)

        layout = self.compute_layout(dashboard)
        payload = CreateVisualPayload(
            config=config,
            dashboard_id=dashboard.id,
            x=layout.position.x,
            y=layout.position.y,
            width=layout.dimensions.width,
            height=layout.dimensions.height,
            should_zoom=layout.should_zoom,
        )
        return await self._mutate(UIMessageType.CREATE_NODE, payload)

    async def import_svg(self, svg: str, name: str, dimensions: Dimensions | None = None) -> HostMessage:
        """
        Import SVG markup, laid out inside the selected dashboard if there is one.

        Explicit dimensions override the computed visual size.
        """
        dashboard = self.dashboards.selected_dashboard
        if dashboard is None:
            return await self._mutate(UIMessageType.IMPORT_SVG, ImportSvgPayload(svg=svg, name=name))

        layout = self.compute_layout(dashboard)
        width = dimensions.width if dimensions and dimensions.width else layout.dimensions.width
        height = dimensions.height if dimensions and dimensions.height else layout.dimensions.height
        payload = ImportSvgPayload(
            svg=svg,
            name=name,
            dashboard_id=dashboard.id,
            x=layout.position.x,
            y=layout.position.y,
            width=width,
            height=height,
            should_zoom=layout.should_zoom,
        )
        return await self._mutate(UIMessageType.IMPORT_SVG, payload)

    async def import_chart(
        self, chart_type: ChartType | str, config: ChartConfig | dict | None = None
    ) -> HostMessage:
        """Render a chart sized for the selected dashboard and import it."""
        if self.renderer is None:
            raise RuntimeError("No chart renderer configured for this session")

        chart_type = ChartType(chart_type)
        config = ChartConfig.from_raw(config) if config is not None else default_chart_config(chart_type)
        size = self.optimized_visual_dimensions()
        if size.width and size.height:
            config = config.model_copy(update={"width": size.width, "height": size.height})

        svg = await asyncio.to_thread(self.renderer.render, chart_type, config)
        name = config.title or f"{chart_type.value.title()} Chart"
        return await self.import_svg(svg, name, Dimensions(width=config.width, height=config.height))

    def compute_layout(self, dashboard: DashboardFrame) -> LayoutResult:
        viewport = self.dashboards.viewport
        return self.layout.compute_layout(
            dashboard.rect,
            self.dashboards.get_visual_rects(dashboard.id),
            viewport.rect if viewport is not None else None,
        )

    def optimized_visual_dimensions(self) -> Dimensions:
        """Size the next visual would get in the selected dashboard (0x0 without one)."""
        dashboard = self.dashboards.selected_dashboard
        if dashboard is None:
            return Dimensions(width=0, height=0)
        return self.compute_layout(dashboard).dimensions

    async def update_node(self, node_id: str, **properties: Any) -> HostMessage:
        payload = UpdateNodePayload(id=node_id, properties=NodeProperties(**properties))
        return await self._mutate(UIMessageType.UPDATE_NODE, payload)

    async def delete_nodes(self, node_ids: Iterable[str]) -> HostMessage:
        return await self._mutate(UIMessageType.DELETE_NODE, DeleteNodePayload(ids=tuple(node_ids)))

    async def select_node(self, node_id: str) -> HostMessage:
        return await self.bridge.request(
            UIMessageType.SELECT_NODE,
            SelectNodePayload(id=node_id),
            expect=HostMessageType.SELECTION_CHANGED,
        )

    async def refresh_nodes(self) -> HostMessage:
        return await self._mutate(UIMessageType.GET_NODES)

    async def export_selection(self, format: ExportFormat = ExportFormat.SVG) -> HostMessage:
        return await self.bridge.request(
            UIMessageType.EXPORT_SELECTION,
            ExportPayload(format=format),
            expect=HostMessageType.EXPORT_COMPLETE,
        )

    async def _mutate(self, message_type: UIMessageType, payload: Any = None) -> HostMessage:
        """Send a command whose outcome is a fresh snapshot (or an error)."""
        self.nodes.set_loading(True)
        return await self.bridge.request(message_type, payload, expect=HostMessageType.NODES_DATA)

    # ========== Host envelope handlers ==========

    def _on_nodes_data(self, message: HostMessage) -> None:
        snapshot: Snapshot = parse_host_data(message) or Snapshot()
        # Both caches swap before any listener runs
        self.nodes.set_nodes(snapshot.nodes, notify=False)
        self.dashboards.replace_all(
            snapshot.dashboards, snapshot.visuals, snapshot.viewport, notify=False
        )
        self.nodes.set_loading(False)
        self.dashboards.notify()

    def _on_node_created(self, message: HostMessage) -> None:
        created = parse_host_data(message)
        self.notifications.push(f"Created {created.name}", NotificationType.SUCCESS)

    def _on_node_updated(self, message: HostMessage) -> None:
        updated = parse_host_data(message)
        logger.debug(f"Host confirmed update of {updated.id}")

    def _on_node_deleted(self, message: HostMessage) -> None:
        deleted: NodeDeletedPayload = parse_host_data(message)
        for node_id in deleted.ids:
            self.nodes.remove_node(node_id)
            self.dashboards.remove_dashboard(node_id)
            self.dashboards.remove_visual(node_id)

    def _on_selection_changed(self, message: HostMessage) -> None:
        selection: SelectionChangedPayload = parse_host_data(message)
        self.nodes.select_node(selection.id or None)
        self.dashboards.select_dashboard(selection.dashboard_id)

    def _on_export_complete(self, message: HostMessage) -> None:
        self.last_export = parse_host_data(message)
        count = len(self.last_export.exports)
        self.notifications.push(f"Exported {count} node(s)", NotificationType.SUCCESS)

    def _on_error(self, message: HostMessage) -> None:
        self.nodes.set_loading(False)
        self.notifications.push(message.error or "Unknown error", NotificationType.ERROR)
