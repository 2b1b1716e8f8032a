"""
Tests for HostController - command handling over an in-process bridge.
"""

import asyncio

import pytest

from bridge import UIBridge
from models.messages import HostMessageType, UIMessageType

FRAME = {"type": "FRAME", "name": "Sales", "width": 1200, "height": 768}


async def settle(wired):
    """Let the host finish in-flight commands and flush its outbox."""
    await wired.host_channel.join()
    for _ in range(5):
        await asyncio.sleep(0)


async def create_dashboard(bridge: UIBridge) -> str:
    reply = await bridge.request(UIMessageType.CREATE_NODE, FRAME, expect=HostMessageType.NODE_CREATED)
    assert reply.success, reply.error
    return reply.data["id"]


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_ui_ready_returns_snapshot(self, wired):
        reply = await wired.bridge.request(UIMessageType.UI_READY)

        assert reply.type == "nodes-data"
        assert reply.data["nodes"] == []
        assert reply.data["viewport"]["width"] == 1440

    @pytest.mark.asyncio
    async def test_mutation_is_followed_by_snapshot(self, wired):
        snapshots = []
        wired.bridge.on(HostMessageType.NODES_DATA, snapshots.append)

        reply = await wired.bridge.request(UIMessageType.CREATE_NODE, FRAME)
        await settle(wired)

        assert reply.type == "node-created"
        assert reply.data["type"] == "FRAME"
        assert snapshots[-1].request_id == reply.request_id
        assert snapshots[-1].data["dashboards"][0]["name"] == "Sales"


class TestCommands:
    @pytest.mark.asyncio
    async def test_create_visual_inside_dashboard(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(
            UIMessageType.CREATE_NODE,
            {
                "config": {"type": "RECTANGLE", "name": "KPI"},
                "dashboardId": dashboard_id,
                "x": 396,
                "y": 0,
                "width": 386,
                "height": 307,
            },
            expect=HostMessageType.NODES_DATA,
        )

        visuals = reply.data["visuals"]
        assert visuals[0]["dashboardId"] == dashboard_id
        assert visuals[0]["x"] == 396
        assert reply.data["dashboards"][0]["visualIds"] == [visuals[0]["id"]]

    @pytest.mark.asyncio
    async def test_missing_dashboard_reports_error(self, wired):
        reply = await wired.bridge.request(
            UIMessageType.CREATE_NODE,
            {"config": {"type": "RECTANGLE"}, "dashboardId": "1:404", "x": 0, "y": 0, "width": 10, "height": 10},
        )

        assert reply.success is False
        assert reply.error == "Dashboard not found: 1:404"

    @pytest.mark.asyncio
    async def test_unsupported_config_reports_error(self, wired):
        reply = await wired.bridge.request(UIMessageType.CREATE_NODE, {"type": "STAR"})

        assert reply.success is False
        assert reply.type == "error"

    @pytest.mark.asyncio
    async def test_import_svg(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(
            UIMessageType.IMPORT_SVG,
            {"svg": '<svg width="600" height="400"></svg>', "name": "Bar Chart", "dashboardId": dashboard_id,
             "x": 0, "y": 0, "width": 386, "height": 307},
        )

        assert reply.type == "node-created"
        assert reply.data["name"] == "Bar Chart"
        assert reply.data["type"] == "SVG"

    @pytest.mark.asyncio
    async def test_update_node(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(
            UIMessageType.UPDATE_NODE, {"id": dashboard_id, "properties": {"name": "Revenue"}}
        )

        assert reply.data == {"id": dashboard_id}
        assert wired.document.get_node_by_id(dashboard_id).name == "Revenue"

    @pytest.mark.asyncio
    async def test_delete_replies_then_snapshot(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(UIMessageType.DELETE_NODE, {"ids": [dashboard_id]})
        snapshot = await wired.bridge.request(UIMessageType.GET_NODES)

        assert reply.data == {"ids": [dashboard_id]}
        assert snapshot.data["dashboards"] == []

    @pytest.mark.asyncio
    async def test_select_node_includes_dashboard(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(UIMessageType.SELECT_NODE, {"id": dashboard_id})

        assert reply.data == {"id": dashboard_id, "dashboardId": dashboard_id}
        assert reply.channel == "reply"

    @pytest.mark.asyncio
    async def test_export_selection(self, wired):
        await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(UIMessageType.EXPORT_SELECTION, {"format": "SVG"})

        assert reply.data["exports"][0]["filename"] == "Sales.svg"

    @pytest.mark.asyncio
    async def test_export_unsupported_format(self, wired):
        await create_dashboard(wired.bridge)

        reply = await wired.bridge.request(UIMessageType.EXPORT_SELECTION, {"format": "PNG"})

        assert reply.success is False
        assert "not supported" in reply.error


class TestPushEvents:
    @pytest.mark.asyncio
    async def test_selection_made_in_document_is_pushed(self, wired):
        await create_dashboard(wired.bridge)
        await settle(wired)
        pushed = []
        wired.bridge.on(HostMessageType.SELECTION_CHANGED, pushed.append)

        wired.document.set_selection([])
        await settle(wired)

        assert pushed[-1].channel == "push"
        assert pushed[-1].data == {"id": ""}

    @pytest.mark.asyncio
    async def test_removal_in_document_is_pushed(self, wired):
        dashboard_id = await create_dashboard(wired.bridge)
        await settle(wired)
        pushed = []
        wired.bridge.on(HostMessageType.NODE_DELETED, pushed.append)

        wired.document.remove(wired.document.get_node_by_id(dashboard_id))
        await settle(wired)

        assert [m.data for m in pushed] == [{"ids": [dashboard_id]}]
        assert pushed[0].request_id is None

    @pytest.mark.asyncio
    async def test_dispose_stops_pushes(self, wired):
        wired.controller.dispose()
        pushed = []
        wired.bridge.on("*", pushed.append)

        wired.document.set_selection([])
        await settle(wired)

        assert pushed == []
