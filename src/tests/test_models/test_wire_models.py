"""
Tests for wire models - camelCase serialization, node config union, envelopes.
"""

import pytest
from pydantic import ValidationError


class TestNodeConfigUnion:
    """NodeConfig is discriminated on `type`."""

    def test_parses_frame(self):
        from models.nodes import FrameConfig, parse_node_config

        config = parse_node_config({"type": "FRAME", "name": "Sales", "width": 1200, "height": 768})

        assert isinstance(config, FrameConfig)
        assert config.width == 1200

    def test_parses_text_with_camel_case_keys(self):
        from models.nodes import TextConfig, parse_node_config

        config = parse_node_config(
            {
                "type": "TEXT",
                "characters": "Hello",
                "fontName": {"family": "Inter", "style": "Bold"},
                "textAutoResize": "NONE",
            }
        )

        assert isinstance(config, TextConfig)
        assert config.font_name.style == "Bold"
        assert config.text_auto_resize == "NONE"

    def test_unknown_type_rejected(self):
        from models.nodes import parse_node_config

        with pytest.raises(ValidationError):
            parse_node_config({"type": "STAR"})

    def test_negative_size_rejected(self):
        from models.nodes import parse_node_config

        with pytest.raises(ValidationError):
            parse_node_config({"type": "RECTANGLE", "width": -1})

    def test_config_model_passes_through(self):
        from models.nodes import EllipseConfig, parse_node_config

        config = EllipseConfig(name="dot")

        assert parse_node_config(config) is config


class TestEntities:
    def test_dashboard_serializes_visual_ids_camel_case(self):
        from models.entities import DashboardFrame

        frame = DashboardFrame(id="1:1", name="D", x=0, y=0, width=10, height=10, visual_ids=("1:2",))

        assert frame.to_wire()["visualIds"] == ["1:2"]

    def test_visual_round_trips_dashboard_id(self):
        from models.entities import Visual

        visual = Visual.from_raw(
            {"id": "1:2", "name": "v", "type": "SVG", "dashboardId": "1:1", "x": 0, "y": 0, "width": 1, "height": 1}
        )

        assert visual.dashboard_id == "1:1"

    def test_entities_are_frozen(self):
        from models.entities import NodeData

        node = NodeData(id="1", name="n", type="FRAME", x=0, y=0, width=1, height=1)

        with pytest.raises(ValidationError):
            node.name = "changed"

    def test_snapshot_defaults_empty(self):
        from models.entities import Snapshot

        snapshot = Snapshot.from_raw(None)

        assert snapshot.nodes == ()
        assert snapshot.viewport is None


class TestEnvelopes:
    def test_failure_envelope_shape(self):
        from models.messages import HostMessage

        wire = HostMessage.failure("boom", request_id="r1").to_wire()

        assert wire["type"] == "error"
        assert wire["success"] is False
        assert wire["error"] == "boom"
        assert wire["requestId"] == "r1"
        assert isinstance(wire["timestamp"], int)
        assert "data" not in wire

    def test_empty_error_message_becomes_unknown(self):
        from models.messages import HostMessage

        assert HostMessage.failure("").error == "Unknown error"

    def test_ok_serializes_model_data(self):
        from models.messages import HostMessage, HostMessageType, NodeUpdatedPayload

        message = HostMessage.ok(HostMessageType.NODE_UPDATED, NodeUpdatedPayload(id="1:4"))

        assert message.data == {"id": "1:4"}
        assert message.channel == "reply"
        assert not message.is_push

    def test_parse_create_payload_dispatches_on_dashboard_id(self):
        from models.messages import CreateVisualPayload, parse_create_payload
        from models.nodes import RectangleConfig

        visual = parse_create_payload(
            {
                "config": {"type": "RECTANGLE"},
                "dashboardId": "1:1",
                "x": 0,
                "y": 0,
                "width": 10,
                "height": 10,
            }
        )
        plain = parse_create_payload({"type": "RECTANGLE"})

        assert isinstance(visual, CreateVisualPayload)
        assert isinstance(plain, RectangleConfig)

    def test_parse_ui_payload_rejects_unknown_type(self):
        from models.messages import parse_ui_payload

        with pytest.raises(ValueError):
            parse_ui_payload("explode", {})

    def test_payloadless_commands_parse_to_none(self):
        from models.messages import parse_ui_payload

        assert parse_ui_payload("get-nodes", {"ignored": True}) is None
        assert parse_ui_payload("ui-ready", None) is None

    def test_parse_host_data_returns_typed_snapshot(self):
        from models.entities import Snapshot
        from models.messages import HostMessage, HostMessageType, parse_host_data

        message = HostMessage.ok(HostMessageType.NODES_DATA, Snapshot())

        assert isinstance(parse_host_data(message), Snapshot)
