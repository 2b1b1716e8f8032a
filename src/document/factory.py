"""
NodeFactory - builds document nodes from typed node configs.

Dispatch is a registry of kind -> async builder, so a new kind is added by
registering a builder rather than editing a switch.
"""

import logging
from collections.abc import Awaitable, Callable

from document.api import DocumentAPI, SceneNode
from document.errors import UnsupportedOperationError
from models.nodes import BaseNodeConfig, FontName, LineConfig, NodeKind, TextConfig

logger = logging.getLogger(__name__)

Builder = Callable[[BaseNodeConfig], Awaitable[SceneNode]]

# Config fields that are not plain node properties
_STRUCTURAL_FIELDS = {"type", "parent_id", "width", "height"}


class NodeFactory:
    """Registry of node builders bound to one document."""

    def __init__(self, document: DocumentAPI):
        self.document = document
        self._builders: dict[str, Builder] = {}

        for kind in (NodeKind.FRAME, NodeKind.RECTANGLE, NodeKind.ELLIPSE):
            self.register(kind, self._build_shape)
        self.register(NodeKind.TEXT, self._build_text)
        self.register(NodeKind.LINE, self._build_line)

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(self._builders)

    def register(self, kind: str, builder: Builder) -> None:
        self._builders[str(kind)] = builder

    async def create(self, config: BaseNodeConfig) -> SceneNode:
        """
        Construct a node at the page root from its config.

        Raises:
            UnsupportedOperationError: No builder for config.type
            DocumentAPIError: The document rejected a property or size
        """
        kind = getattr(config, "type", None)
        builder = self._builders.get(str(kind))
        if builder is None:
            raise UnsupportedOperationError(f"Unsupported node type: {kind}")
        node = await builder(config)
        logger.debug(f"Built {kind} node {node.id}")
        return node

    async def _build_shape(self, config: BaseNodeConfig) -> SceneNode:
        node = self.document.create_node(NodeKind(config.type))
        self._apply(node, config)
        if config.width and config.height:
            self.document.resize(node, config.width, config.height)
        return node

    async def _build_text(self, config: TextConfig) -> SceneNode:
        font = config.font_name or FontName()
        # Text content cannot be set before its font is available
        await self.document.load_font(font.family, font.style)

        node = self.document.create_node(NodeKind.TEXT)
        self.document.set_properties(node, font_name=(font.family, font.style))
        self._apply(node, config, exclude={"font_name"})
        if config.width and config.text_auto_resize == "NONE":
            self.document.resize(node, config.width, node.height)
        return node

    async def _build_line(self, config: LineConfig) -> SceneNode:
        # Lines have no height; only the length is taken from the config
        node = self.document.create_node(NodeKind.LINE)
        self._apply(node, config)
        if config.width:
            self.document.resize(node, config.width, 0)
        return node

    def _apply(self, node: SceneNode, config: BaseNodeConfig, exclude: set[str] = frozenset()) -> None:
        properties = config.model_dump(exclude_none=True, exclude=_STRUCTURAL_FIELDS | set(exclude))
        if properties:
            self.document.set_properties(node, **properties)
