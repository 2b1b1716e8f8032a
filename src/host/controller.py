"""
Host Controller - turns inbound UI commands into document adapter calls.

Registers exactly one handler per command type on the HostChannel and
forwards document-originated events (selection changes, deletions made
outside the command protocol) to the UI as push envelopes.

Every mutating command replies with its own event followed by a full
`nodes-data` snapshot, so the UI cache is always replaced, never patched.
"""

import logging

from bridge.host_channel import HostChannel
from document.adapter import DocumentAdapter
from document.api import DocumentAPI, DocumentChange
from models.messages import (
    CreateVisualPayload,
    DeleteNodePayload,
    ExportPayload,
    HostMessageType,
    ImportSvgPayload,
    NodeCreatedPayload,
    NodeDeletedPayload,
    NodeUpdatedPayload,
    SelectNodePayload,
    UIMessage,
    UIMessageType,
    UpdateNodePayload,
)

logger = logging.getLogger(__name__)


class HostController:
    """
    Wires one HostChannel to one document.

    Usage:
        controller = HostController(channel, adapter, document)
        controller.initialize()
        await channel.start()
    """

    def __init__(self, channel: HostChannel, adapter: DocumentAdapter, document: DocumentAPI):
        self.channel = channel
        self.adapter = adapter
        self.document = document
        self._unsubscribers = []

    def initialize(self) -> None:
        handlers = {
            UIMessageType.CREATE_NODE: self._on_create_node,
            UIMessageType.IMPORT_SVG: self._on_import_svg,
            UIMessageType.UPDATE_NODE: self._on_update_node,
            UIMessageType.DELETE_NODE: self._on_delete_node,
            UIMessageType.GET_NODES: self._on_get_nodes,
            UIMessageType.SELECT_NODE: self._on_select_node,
            UIMessageType.EXPORT_SELECTION: self._on_export_selection,
            UIMessageType.UI_READY: self._on_get_nodes,
        }
        for message_type, handler in handlers.items():
            self.channel.on(message_type, handler)

        self._unsubscribers = [
            self.document.on_selection_change(self._on_selection_change),
            self.document.on_document_change(self._on_document_change),
        ]
        logger.info(f"Host controller ready ({len(handlers)} command handlers)")

    def dispose(self) -> None:
        """Detach from document events."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ========== Command handlers ==========

    async def _on_create_node(self, message: UIMessage, payload) -> None:
        if isinstance(payload, CreateVisualPayload):
            node = await self.adapter.create_visual(payload)
        else:
            node = await self.adapter.create_node(payload)
        self._reply_created(message, node)

    async def _on_import_svg(self, message: UIMessage, payload: ImportSvgPayload) -> None:
        node = await self.adapter.import_svg(payload)
        self._reply_created(message, node)

    async def _on_update_node(self, message: UIMessage, payload: UpdateNodePayload) -> None:
        node = await self.adapter.update_node(payload.id, payload.properties)
        self.channel.send_success(
            HostMessageType.NODE_UPDATED, NodeUpdatedPayload(id=node.id), message.request_id
        )
        self._send_snapshot(message.request_id)

    async def _on_delete_node(self, message: UIMessage, payload: DeleteNodePayload) -> None:
        ids = await self.adapter.delete_nodes(payload.ids)
        self.channel.send_success(
            HostMessageType.NODE_DELETED, NodeDeletedPayload(ids=ids), message.request_id
        )
        self._send_snapshot(message.request_id)

    async def _on_get_nodes(self, message: UIMessage, payload=None) -> None:
        self._send_snapshot(message.request_id)

    async def _on_select_node(self, message: UIMessage, payload: SelectNodePayload) -> None:
        selection = await self.adapter.select_node(payload.id)
        self.channel.send_success(HostMessageType.SELECTION_CHANGED, selection, message.request_id)

    async def _on_export_selection(self, message: UIMessage, payload: ExportPayload) -> None:
        result = await self.adapter.export_selection(payload.format)
        self.channel.send_success(HostMessageType.EXPORT_COMPLETE, result, message.request_id)

    def _reply_created(self, message: UIMessage, node) -> None:
        created = NodeCreatedPayload(id=node.id, name=node.name, type=str(node.type))
        self.channel.send_success(HostMessageType.NODE_CREATED, created, message.request_id)
        self._send_snapshot(message.request_id)

    def _send_snapshot(self, request_id: str | None = None) -> None:
        self.channel.send_success(HostMessageType.NODES_DATA, self.adapter.snapshot(), request_id)

    # ========== Document events ==========

    def _on_selection_change(self) -> None:
        self.channel.push(HostMessageType.SELECTION_CHANGED, self.adapter.resolve_selection())

    def _on_document_change(self, changes: list[DocumentChange]) -> None:
        for change in changes:
            if change.type == "DELETE":
                self.channel.push(HostMessageType.NODE_DELETED, NodeDeletedPayload(ids=(change.id,)))
