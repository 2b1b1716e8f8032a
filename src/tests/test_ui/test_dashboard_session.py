"""
Tests for DashboardSession - end-to-end UI orchestration against the host.
"""

import asyncio

import pytest

from bridge import InProcessChannel, UIBridge
from charts import ChartRenderer
from layout import LayoutEngine
from models.geometry import Dimensions
from repositories import DashboardRepository, NodeRepository
from ui import DashboardSession, NotificationType

DASHBOARD = {"type": "FRAME", "name": "Sales", "width": 1200, "height": 768}
CHART_SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400"></svg>'


async def dashboard_with_visuals(session, count):
    await session.create_node(DASHBOARD)
    for i in range(count):
        reply = await session.create_visual({"type": "RECTANGLE", "name": f"Card {i}"})
        assert reply.success, reply.error
    return session.dashboards.selected_dashboard


class TestStartup:
    @pytest.mark.asyncio
    async def test_start_loads_snapshot(self, session):
        assert session.is_started
        assert not session.nodes.is_loading
        assert session.dashboards.viewport.width == 1440

    @pytest.mark.asyncio
    async def test_unanswered_ready_times_out_cleanly(self):
        channel = InProcessChannel()
        bridge = UIBridge(channel.ui, request_timeout=0.1)
        await bridge.start()
        session = DashboardSession(bridge, NodeRepository(), DashboardRepository(), LayoutEngine())

        reply = await session.start()

        assert reply.success is False
        assert "timed out" in reply.error
        assert not session.nodes.is_loading
        assert session.notifications.active()[-1].type == NotificationType.ERROR
        session.stop()
        await bridge.stop()


class TestDashboards:
    @pytest.mark.asyncio
    async def test_new_dashboard_becomes_selected(self, session):
        reply = await session.create_node(DASHBOARD)

        assert reply.type == "nodes-data"
        selected = session.dashboards.selected_dashboard
        assert (selected.name, selected.width, selected.height) == ("Sales", 1200, 768)
        assert session.notifications.drain()[-1].message == "Created Sales"

    @pytest.mark.asyncio
    async def test_three_visuals_fill_first_row(self, session):
        dashboard = await dashboard_with_visuals(session, 3)

        visuals = session.dashboards.get_visuals_for_dashboard(dashboard.id)

        assert [v.x for v in visuals] == [0, 396, 792]
        assert {(v.y, v.width, v.height) for v in visuals} == {(0, 386, 307)}

    @pytest.mark.asyncio
    async def test_fourth_visual_wraps_to_next_row(self, session):
        dashboard = await dashboard_with_visuals(session, 4)

        last = session.dashboards.get_visuals_for_dashboard(dashboard.id)[-1]

        assert (last.x, last.y) == (0, 317)

    @pytest.mark.asyncio
    async def test_visual_without_dashboard_is_plain_node(self, session):
        reply = await session.create_visual({"type": "ELLIPSE", "name": "Dot"})

        assert reply.success
        assert session.dashboards.visuals == ()
        assert [n.name for n in session.nodes.nodes] == ["Dot"]

    @pytest.mark.asyncio
    async def test_deleting_dashboard_cascades(self, session):
        dashboard = await dashboard_with_visuals(session, 2)

        reply = await session.delete_nodes([dashboard.id])

        assert reply.success
        assert session.dashboards.dashboards == ()
        assert session.dashboards.visuals == ()
        assert session.dashboards.selected_dashboard_id is None
        assert session.nodes.nodes == ()

    @pytest.mark.asyncio
    async def test_removal_in_document_updates_cache(self, session, wired):
        """Deletes made directly in the document reach the cache without a snapshot."""
        dashboard = await dashboard_with_visuals(session, 2)
        first, second = session.dashboards.get_visuals_for_dashboard(dashboard.id)
        snapshots = []
        wired.bridge.on("nodes-data", snapshots.append)

        wired.document.remove(wired.document.get_node_by_id(first.id))
        await wired.host_channel.join()
        await asyncio.sleep(0.05)

        assert [v.id for v in session.dashboards.visuals] == [second.id]
        assert session.dashboards.get_dashboard(dashboard.id).visual_ids == (second.id,)

        wired.document.remove(wired.document.get_node_by_id(dashboard.id))
        await wired.host_channel.join()
        await asyncio.sleep(0.05)

        assert session.dashboards.dashboards == ()
        assert session.dashboards.visuals == ()
        assert session.dashboards.selected_dashboard_id is None
        assert snapshots == []

    @pytest.mark.asyncio
    async def test_node_listener_sees_matching_dashboards(self, session):
        seen = []
        session.nodes.subscribe(
            lambda nodes: seen.append((len(nodes.nodes), len(session.dashboards.dashboards)))
        )

        await session.create_node(DASHBOARD)

        assert (1, 1) in seen
        assert (1, 0) not in seen

    @pytest.mark.asyncio
    async def test_optimized_dimensions(self, session):
        assert session.optimized_visual_dimensions() == Dimensions(width=0, height=0)

        await session.create_node(DASHBOARD)

        assert session.optimized_visual_dimensions() == Dimensions(width=386, height=307)


class TestCommands:
    @pytest.mark.asyncio
    async def test_update_node(self, session):
        await session.create_node(DASHBOARD)
        dashboard_id = session.dashboards.selected_dashboard_id

        await session.update_node(dashboard_id, name="Revenue")

        assert session.dashboards.selected_dashboard.name == "Revenue"
        assert session.nodes.get(dashboard_id).name == "Revenue"

    @pytest.mark.asyncio
    async def test_error_clears_loading_and_notifies(self, session):
        reply = await session.update_node("1:404", name="Ghost")

        assert reply.success is False
        assert not session.nodes.is_loading
        note = session.notifications.active()[-1]
        assert (note.type, note.message) == (NotificationType.ERROR, "Node not found")

    @pytest.mark.asyncio
    async def test_select_visual_selects_its_dashboard(self, session):
        dashboard = await dashboard_with_visuals(session, 1)
        visual = session.dashboards.visuals[0]
        session.dashboards.select_dashboard(None)

        reply = await session.select_node(visual.id)

        assert reply.type == "selection-changed"
        assert session.nodes.selected_node_id == visual.id
        assert session.dashboards.selected_dashboard_id == dashboard.id

    @pytest.mark.asyncio
    async def test_import_svg_into_dashboard(self, session):
        await session.create_node(DASHBOARD)

        await session.import_svg(CHART_SVG, "Revenue", Dimensions(width=500, height=0))

        visual = session.dashboards.visuals[0]
        assert (visual.name, visual.type) == ("Revenue", "SVG")
        assert (visual.width, visual.height) == (500, 307)

    @pytest.mark.asyncio
    async def test_export_selection_records_result(self, session):
        await session.create_node(DASHBOARD)

        reply = await session.export_selection()

        assert reply.type == "export-complete"
        assert session.last_export.exports[0].filename == "Sales.svg"

    @pytest.mark.asyncio
    async def test_refresh_nodes(self, session):
        reply = await session.refresh_nodes()

        assert reply.type == "nodes-data"
        assert not session.nodes.is_loading

    @pytest.mark.asyncio
    async def test_create_nodes_in_order(self, session):
        replies = await session.create_nodes([{"type": "RECTANGLE", "name": "A"}, {"type": "ELLIPSE", "name": "B"}])

        assert all(r.success for r in replies)
        assert [n.name for n in session.nodes.nodes] == ["A", "B"]


class TestCharts:
    @pytest.mark.asyncio
    async def test_import_chart_sized_to_layout(self, wired):
        session = DashboardSession(
            wired.bridge, NodeRepository(), DashboardRepository(), LayoutEngine(), renderer=ChartRenderer()
        )
        await session.start()
        await session.create_node(DASHBOARD)

        reply = await session.import_chart("bar", {"data": [3, 5, 2], "labels": ["A", "B", "C"], "title": "Sales"})

        assert reply.success, reply.error
        visual = session.dashboards.visuals[0]
        assert (visual.name, visual.width, visual.height) == ("Sales", 386, 307)
        session.stop()

    @pytest.mark.asyncio
    async def test_import_chart_needs_renderer(self, session):
        with pytest.raises(RuntimeError):
            await session.import_chart("bar")
