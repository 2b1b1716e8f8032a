"""
Wire protocol between the UI process and the host process.

Envelopes are immutable once built. UI -> host envelopes carry a command
type and an optional payload; host -> UI envelopes always carry
`success` and `timestamp`, plus `data` on success or `error` on failure.
"""

import time
from enum import StrEnum
from typing import Any

from pydantic import Field

from models.base import WireModel
from models.entities import Snapshot
from models.nodes import BaseNodeConfig, NodeConfig, parse_node_config


class UIMessageType(StrEnum):
    """Commands sent from the UI process to the host."""

    CREATE_NODE = "create-node"
    IMPORT_SVG = "import-svg"
    UPDATE_NODE = "update-node"
    DELETE_NODE = "delete-node"
    GET_NODES = "get-nodes"
    SELECT_NODE = "select-node"
    EXPORT_SELECTION = "export-selection"
    UI_READY = "ui-ready"


class HostMessageType(StrEnum):
    """Responses and events sent from the host to the UI process."""

    NODE_CREATED = "node-created"
    NODE_UPDATED = "node-updated"
    NODE_DELETED = "node-deleted"
    NODES_DATA = "nodes-data"
    SELECTION_CHANGED = "selection-changed"
    EXPORT_COMPLETE = "export-complete"
    ERROR = "error"


class MessageChannel(StrEnum):
    """Whether a host envelope answers a command or was raised by the host itself."""

    REPLY = "reply"
    PUSH = "push"


class ExportFormat(StrEnum):
    PNG = "PNG"
    JPG = "JPG"
    SVG = "SVG"
    PDF = "PDF"


def now_ms() -> int:
    """Envelope timestamp (epoch milliseconds)."""
    return int(time.time() * 1000)


# =============================================================================
# Envelopes
# =============================================================================


class UIMessage(WireModel):
    """UI -> host envelope."""

    type: UIMessageType
    payload: Any = None
    request_id: str | None = None
    timestamp: int | None = None


class HostMessage(WireModel):
    """Host -> UI envelope."""

    type: HostMessageType
    success: bool
    data: Any = None
    error: str | None = None
    timestamp: int = Field(default_factory=now_ms)
    request_id: str | None = None
    channel: MessageChannel = MessageChannel.REPLY

    @classmethod
    def ok(
        cls,
        type: HostMessageType,
        data: Any = None,
        request_id: str | None = None,
        channel: MessageChannel = MessageChannel.REPLY,
    ) -> "HostMessage":
        if isinstance(data, WireModel):
            data = data.to_wire()
        return cls(type=type, success=True, data=data, request_id=request_id, channel=channel)

    @classmethod
    def failure(cls, error: str, request_id: str | None = None) -> "HostMessage":
        return cls(
            type=HostMessageType.ERROR,
            success=False,
            error=error or "Unknown error",
            request_id=request_id,
        )

    @property
    def is_push(self) -> bool:
        return self.channel == MessageChannel.PUSH


# =============================================================================
# UI -> host payloads
# =============================================================================


class CreateVisualPayload(WireModel):
    """create-node variant that places the node inside a dashboard at a computed rect."""

    config: NodeConfig
    dashboard_id: str
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    should_zoom: bool = False


class ImportSvgPayload(WireModel):
    """
    import-svg payload.

    With dashboard_id set the imported node is attached to that dashboard and
    the x/y/width/height rect is applied; otherwise only x/y (if given) are.
    """

    svg: str
    name: str
    x: float | None = None
    y: float | None = None
    dashboard_id: str | None = None
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    should_zoom: bool = False


class NodeProperties(WireModel):
    """Partial patch: only fields that are set are applied."""

    name: str | None = None
    x: float | None = None
    y: float | None = None
    visible: bool | None = None
    locked: bool | None = None


class UpdateNodePayload(WireModel):
    id: str
    properties: NodeProperties = NodeProperties()


class DeleteNodePayload(WireModel):
    ids: tuple[str, ...]


class SelectNodePayload(WireModel):
    id: str


class ExportPayload(WireModel):
    format: ExportFormat = ExportFormat.SVG


# =============================================================================
# Host -> UI payloads
# =============================================================================


class NodeCreatedPayload(WireModel):
    id: str
    name: str
    type: str


class NodeUpdatedPayload(WireModel):
    id: str


class NodeDeletedPayload(WireModel):
    ids: tuple[str, ...]


class SelectionChangedPayload(WireModel):
    """Empty id means nothing (or more than one node) is selected."""

    id: str = ""
    dashboard_id: str | None = None


class ExportedFile(WireModel):
    id: str
    name: str
    format: ExportFormat
    filename: str
    data: str  # base64


class ExportCompletePayload(WireModel):
    exports: tuple[ExportedFile, ...] = ()


# =============================================================================
# Payload registries
# =============================================================================


def parse_create_payload(raw: Any) -> BaseNodeConfig | CreateVisualPayload:
    """create-node carries either a bare node config or a visual placement."""
    if isinstance(raw, (BaseNodeConfig, CreateVisualPayload)):
        return raw
    raw = raw or {}
    if "dashboardId" in raw or "dashboard_id" in raw:
        return CreateVisualPayload.from_raw(raw)
    return parse_node_config(raw)


UI_PAYLOAD_MODELS = {
    UIMessageType.CREATE_NODE: parse_create_payload,
    UIMessageType.IMPORT_SVG: ImportSvgPayload.from_raw,
    UIMessageType.UPDATE_NODE: UpdateNodePayload.from_raw,
    UIMessageType.DELETE_NODE: DeleteNodePayload.from_raw,
    UIMessageType.SELECT_NODE: SelectNodePayload.from_raw,
    UIMessageType.EXPORT_SELECTION: ExportPayload.from_raw,
    UIMessageType.GET_NODES: None,
    UIMessageType.UI_READY: None,
}

HOST_PAYLOAD_MODELS = {
    HostMessageType.NODE_CREATED: NodeCreatedPayload,
    HostMessageType.NODE_UPDATED: NodeUpdatedPayload,
    HostMessageType.NODE_DELETED: NodeDeletedPayload,
    HostMessageType.NODES_DATA: Snapshot,
    HostMessageType.SELECTION_CHANGED: SelectionChangedPayload,
    HostMessageType.EXPORT_COMPLETE: ExportCompletePayload,
}


def parse_ui_payload(message_type: str, raw: Any):
    """
    Validate a command payload into its typed model.

    Returns None for payload-less commands. Raises ValueError for an
    unknown type and pydantic.ValidationError for a malformed payload.
    """
    parser = UI_PAYLOAD_MODELS[UIMessageType(message_type)]
    if parser is None:
        return None
    return parser(raw)


def parse_host_data(message: HostMessage):
    """Typed view of a successful host envelope's data (None for error/empty)."""
    model = HOST_PAYLOAD_MODELS.get(message.type)
    if model is None or message.data is None:
        return None
    return model.from_raw(message.data)
