"""
Tests for DocumentAdapter - live reads, atomic creation, selection, export.
"""

import base64

import pytest

from document import DocumentAPIError, NodeNotFoundError
from document.tags import SOURCE_KEY
from models.messages import CreateVisualPayload, ImportSvgPayload, NodeProperties
from models.nodes import NodeKind, parse_node_config

CHART_SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400"><rect width="10" height="10"/></svg>'


async def make_dashboard(adapter, name="Sales"):
    return await adapter.create_node(
        parse_node_config({"type": "FRAME", "name": name, "width": 1200, "height": 768})
    )


def visual_payload(dashboard_id, config=None, **rect):
    return CreateVisualPayload(
        config=config or parse_node_config({"type": "RECTANGLE", "name": "Card"}),
        dashboard_id=dashboard_id,
        x=rect.get("x", 0),
        y=rect.get("y", 0),
        width=rect.get("width", 386),
        height=rect.get("height", 307),
    )


class TestReads:
    @pytest.mark.asyncio
    async def test_untagged_nodes_are_invisible(self, adapter, document):
        document.create_node(NodeKind.RECTANGLE)
        await make_dashboard(adapter)

        snapshot = adapter.snapshot()

        assert [n.name for n in snapshot.nodes] == ["Sales"]
        assert len(snapshot.dashboards) == 1

    @pytest.mark.asyncio
    async def test_snapshot_carries_viewport(self, adapter):
        await make_dashboard(adapter)

        viewport = adapter.snapshot().viewport

        assert (viewport.width, viewport.height) == (1200, 768)

    @pytest.mark.asyncio
    async def test_visual_ids_follow_child_membership(self, adapter, document):
        dashboard = await make_dashboard(adapter)
        visual = await adapter.create_visual(visual_payload(dashboard.id))

        assert adapter.get_dashboards()[0].visual_ids == (visual.id,)

        document.reparent(visual, None)

        assert adapter.get_dashboards()[0].visual_ids == ()
        assert adapter.get_visuals() == []

    def test_require_dashboard_rejects_plain_frame(self, adapter, document):
        frame = document.create_node(NodeKind.FRAME)

        with pytest.raises(NodeNotFoundError, match=f"Dashboard not found: {frame.id}"):
            adapter.require_dashboard(frame.id)


class TestCreate:
    @pytest.mark.asyncio
    async def test_frame_becomes_selected_dashboard(self, adapter, document, tags):
        dashboard = await make_dashboard(adapter)

        assert tags.is_dashboard(dashboard)
        assert document.get_selection() == [dashboard]

    @pytest.mark.asyncio
    async def test_child_of_non_container_stays_at_root(self, adapter, document):
        rect = await adapter.create_node(parse_node_config({"type": "RECTANGLE"}))

        ellipse = await adapter.create_node(parse_node_config({"type": "ELLIPSE", "parentId": rect.id}))

        assert ellipse.parent is None
        assert ellipse in document.page_children

    @pytest.mark.asyncio
    async def test_create_visual_applies_rect(self, adapter, tags):
        dashboard = await make_dashboard(adapter)

        node = await adapter.create_visual(visual_payload(dashboard.id, x=396, y=0))

        assert node.parent is dashboard
        assert (node.x, node.y, node.width, node.height) == (396, 0, 386, 307)
        assert tags.is_visual(node)
        assert adapter.get_visuals()[0].dashboard_id == dashboard.id

    @pytest.mark.asyncio
    async def test_create_visual_missing_dashboard(self, adapter, document):
        with pytest.raises(NodeNotFoundError, match="Dashboard not found: 9:9"):
            await adapter.create_visual(visual_payload("9:9"))

        assert document.node_count == 0

    @pytest.mark.asyncio
    async def test_create_visual_rolls_back_on_failure(self, adapter, document):
        dashboard = await make_dashboard(adapter)
        line = parse_node_config({"type": "LINE"})

        # A line cannot take a 307 high rectangle
        with pytest.raises(DocumentAPIError):
            await adapter.create_visual(visual_payload(dashboard.id, config=line))

        assert dashboard.children == []
        assert document.node_count == 1

    @pytest.mark.asyncio
    async def test_should_zoom_focuses_dashboard(self, adapter, document):
        dashboard = await make_dashboard(adapter)
        payload = visual_payload(dashboard.id).model_copy(update={"should_zoom": True})
        document.move(dashboard, 50, 60)

        await adapter.create_visual(payload)

        assert (document.get_viewport().x, document.get_viewport().y) == (50, 60)


class TestImportSvg:
    @pytest.mark.asyncio
    async def test_import_into_dashboard(self, adapter, document):
        dashboard = await make_dashboard(adapter)

        node = await adapter.import_svg(
            ImportSvgPayload(svg=CHART_SVG, name="Bar Chart", dashboard_id=dashboard.id, x=0, y=317, width=386, height=307)
        )

        assert node.parent is dashboard
        assert (node.name, node.y, node.width) == ("Bar Chart", 317, 386)
        assert document.get_tag(node, SOURCE_KEY) == "svg-import"
        assert [v.id for v in adapter.get_visuals()] == [node.id]

    @pytest.mark.asyncio
    async def test_import_without_dashboard_lands_on_page(self, adapter, document):
        node = await adapter.import_svg(ImportSvgPayload(svg=CHART_SVG, name="Loose", x=40, y=30))

        assert node.parent is None
        assert (node.x, node.y, node.width, node.height) == (40, 30, 600, 400)
        assert document.get_viewport().x == 40

    @pytest.mark.asyncio
    async def test_invalid_svg_leaves_no_node(self, adapter, document):
        dashboard = await make_dashboard(adapter)

        with pytest.raises(DocumentAPIError, match="Invalid SVG"):
            await adapter.import_svg(ImportSvgPayload(svg="<svg>", name="Broken", dashboard_id=dashboard.id))

        assert document.node_count == 1

    @pytest.mark.asyncio
    async def test_unknown_dashboard_creates_nothing(self, adapter, document):
        with pytest.raises(NodeNotFoundError):
            await adapter.import_svg(ImportSvgPayload(svg=CHART_SVG, name="Chart", dashboard_id="1:99"))

        assert document.node_count == 0


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_applies_only_set_fields(self, adapter):
        dashboard = await make_dashboard(adapter)

        await adapter.update_node(dashboard.id, NodeProperties(name="Renamed"))

        assert (dashboard.name, dashboard.width) == ("Renamed", 1200)

    @pytest.mark.asyncio
    async def test_update_missing_node(self, adapter):
        with pytest.raises(NodeNotFoundError, match="Node not found"):
            await adapter.update_node("1:404", NodeProperties(name="x"))

    @pytest.mark.asyncio
    async def test_delete_skips_missing_ids(self, adapter, document):
        dashboard = await make_dashboard(adapter)

        deleted = await adapter.delete_nodes((dashboard.id, "1:404"))

        assert deleted == (dashboard.id, "1:404")
        assert document.node_count == 0


class TestSelection:
    @pytest.mark.asyncio
    async def test_select_visual_resolves_dashboard(self, adapter):
        dashboard = await make_dashboard(adapter)
        visual = await adapter.create_visual(visual_payload(dashboard.id))

        selection = await adapter.select_node(visual.id)

        assert (selection.id, selection.dashboard_id) == (visual.id, dashboard.id)

    @pytest.mark.asyncio
    async def test_select_dashboard_resolves_itself(self, adapter):
        dashboard = await make_dashboard(adapter)

        selection = await adapter.select_node(dashboard.id)

        assert selection.dashboard_id == dashboard.id

    @pytest.mark.asyncio
    async def test_multiple_selection_resolves_empty(self, adapter, document):
        a = await make_dashboard(adapter, "A")
        b = await make_dashboard(adapter, "B")
        document.set_selection([a, b])

        selection = adapter.resolve_selection()

        assert selection.id == ""
        assert selection.dashboard_id is None

    @pytest.mark.asyncio
    async def test_select_missing_node(self, adapter):
        with pytest.raises(NodeNotFoundError):
            await adapter.select_node("1:404")


class TestExport:
    @pytest.mark.asyncio
    async def test_export_selection_as_svg(self, adapter):
        await make_dashboard(adapter, name="Q3 / Sales")

        result = await adapter.export_selection()

        exported = result.exports[0]
        assert exported.filename == "Q3_Sales.svg"
        assert base64.b64decode(exported.data).startswith(b"<?xml")

    @pytest.mark.asyncio
    async def test_export_without_selection(self, adapter):
        with pytest.raises(NodeNotFoundError, match="No selection"):
            await adapter.export_selection()
