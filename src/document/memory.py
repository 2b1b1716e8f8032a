"""
InMemoryDocument - reference scene graph for the host process.

Used by the CLI demo and the tests. Mirrors the behaviour the adapter relies
on from a real design document:
- host-assigned opaque ids ("1:<n>"), stable for the node's lifetime
- per-node string tags; an absent tag reads as ""
- only FRAME nodes accept children; x/y are relative to the parent
- LINE nodes have zero height and refuse any other
- removing a node removes its subtree and reports one DELETE per node
- text content can only change once its font has been loaded
"""

import itertools
import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from document.api import ChangeListener, DocumentChange, SelectionListener
from document.errors import DocumentAPIError, UnsupportedOperationError
from models.geometry import Rect
from models.nodes import CONTAINER_KINDS, NodeKind

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

DEFAULT_FONT = ("Inter", "Regular")
AVAILABLE_FONTS = frozenset(
    (family, style)
    for family in ("Inter", "Roboto")
    for style in ("Regular", "Medium", "Bold")
)

# Properties each kind accepts through set_properties (beyond name/visible/locked/x/y)
KIND_PROPERTIES: dict[NodeKind, frozenset[str]] = {
    NodeKind.FRAME: frozenset({"fills", "corner_radius", "clips_content"}),
    NodeKind.RECTANGLE: frozenset({"fills", "corner_radius"}),
    NodeKind.ELLIPSE: frozenset({"fills"}),
    NodeKind.TEXT: frozenset({"fills", "characters", "font_name", "font_size", "text_auto_resize"}),
    NodeKind.LINE: frozenset({"fills", "stroke_weight"}),
    NodeKind.SVG: frozenset(),
}
COMMON_PROPERTIES = frozenset({"name", "visible", "locked", "x", "y"})

DEFAULT_SIZES: dict[NodeKind, tuple[float, float]] = {
    NodeKind.FRAME: (100, 100),
    NodeKind.RECTANGLE: (100, 100),
    NodeKind.ELLIPSE: (100, 100),
    NodeKind.TEXT: (0, 0),
    NodeKind.LINE: (100, 0),
    NodeKind.SVG: (100, 100),
}


@dataclass(eq=False)
class MemoryNode:
    """A node of the in-memory scene graph."""

    id: str
    type: NodeKind
    name: str
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    visible: bool = True
    locked: bool = False
    parent: "MemoryNode | None" = None
    children: list["MemoryNode"] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    removed: bool = False

    # Kind-specific appearance
    fills: list[dict] | None = None
    corner_radius: float = 0
    clips_content: bool = True
    characters: str = ""
    font_name: tuple[str, str] = DEFAULT_FONT
    font_size: float = 12
    text_auto_resize: str = "WIDTH_AND_HEIGHT"
    stroke_weight: float = 1
    markup: str | None = None  # source markup of imported SVG nodes

    def __repr__(self) -> str:
        return f"MemoryNode({self.id!r}, {self.type}, {self.name!r})"

    def walk(self):
        """Yield this node and every descendant, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


class InMemoryDocument:
    """
    Single-page document held entirely in memory.

    All callbacks fire synchronously from the mutating call.
    """

    def __init__(self, viewport: Rect | None = None, fonts: Iterable[tuple[str, str]] = AVAILABLE_FONTS):
        self._ids = itertools.count(1)
        self._nodes: dict[str, MemoryNode] = {}
        self._page: list[MemoryNode] = []
        self._selection: list[MemoryNode] = []
        self._viewport = viewport or Rect(x=0, y=0, width=1440, height=900)
        self._available_fonts = frozenset(fonts)
        self._loaded_fonts: set[tuple[str, str]] = set()

        self._selection_listeners: list[SelectionListener] = []
        self._change_listeners: list[ChangeListener] = []

    @property
    def page_children(self) -> tuple[MemoryNode, ...]:
        return tuple(self._page)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    # ========== Queries ==========

    def find_nodes_matching(self, predicate: Callable[[MemoryNode], bool]) -> list[MemoryNode]:
        return [node for root in self._page for node in root.walk() if predicate(node)]

    def get_node_by_id(self, node_id: str) -> MemoryNode | None:
        return self._nodes.get(node_id)

    def get_tag(self, node: MemoryNode, key: str) -> str:
        return node.tags.get(key, "")

    def absolute_bounds(self, node: MemoryNode) -> Rect:
        x, y = node.x, node.y
        parent = node.parent
        while parent is not None:
            x += parent.x
            y += parent.y
            parent = parent.parent
        return Rect(x=x, y=y, width=node.width, height=node.height)

    # ========== Construction ==========

    def create_node(self, kind: NodeKind) -> MemoryNode:
        """Create a default-sized node of the given kind at the page root."""
        kind = NodeKind(kind)
        width, height = DEFAULT_SIZES[kind]
        node = MemoryNode(
            id=self._next_id(),
            type=kind,
            name=kind.value.title(),
            width=width,
            height=height,
        )
        if kind == NodeKind.FRAME:
            node.fills = [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}]
        self._attach(node, None)
        self._nodes[node.id] = node
        self._changed([DocumentChange("CREATE", node.id)])
        return node

    def create_node_from_svg(self, svg: str) -> MemoryNode:
        """
        Parse SVG markup into a single SVG node at the page root.

        Size comes from the width/height attributes, else the viewBox, else
        the default. Raises DocumentAPIError when the markup is not SVG.
        """
        try:
            root = ET.fromstring(svg)
        except ET.ParseError as e:
            raise DocumentAPIError(f"Invalid SVG: {e}") from e
        if root.tag not in ("svg", f"{{{SVG_NS}}}svg"):
            raise DocumentAPIError(f"Invalid SVG: root element is <{root.tag}>")

        width, height = _svg_size(root)
        node = MemoryNode(
            id=self._next_id(),
            type=NodeKind.SVG,
            name="SVG",
            width=width,
            height=height,
            markup=svg,
        )
        self._attach(node, None)
        self._nodes[node.id] = node
        self._changed([DocumentChange("CREATE", node.id)])
        return node

    # ========== Mutation ==========

    def set_tag(self, node: MemoryNode, key: str, value: str) -> None:
        self._require_live(node)
        node.tags[key] = str(value)

    def set_properties(self, node: MemoryNode, **properties) -> None:
        """Assign properties; raises DocumentAPIError for ones the kind lacks."""
        self._require_live(node)
        allowed = COMMON_PROPERTIES | KIND_PROPERTIES[node.type]
        unknown = sorted(set(properties) - allowed)
        if unknown:
            raise DocumentAPIError(f"{node.type} node has no property {', '.join(unknown)}")

        if "font_name" in properties:
            font = tuple(properties["font_name"])
            if font not in self._loaded_fonts:
                raise DocumentAPIError(f"Font {font[0]} {font[1]} is not loaded")
            properties["font_name"] = font
        if "characters" in properties:
            font = properties.get("font_name", node.font_name)
            if font not in self._loaded_fonts:
                raise DocumentAPIError(f"Cannot set characters: font {font[0]} {font[1]} is not loaded")

        for key, value in properties.items():
            setattr(node, key, value)

        if node.type == NodeKind.TEXT:
            self._autosize_text(node)
        self._changed([DocumentChange("PROPERTY_CHANGE", node.id, tuple(properties))])

    def resize(self, node: MemoryNode, width: float, height: float) -> None:
        self._require_live(node)
        if width < 0 or height < 0:
            raise DocumentAPIError(f"Cannot resize {node.type} to {width}x{height}")
        if node.type == NodeKind.LINE and height != 0:
            raise DocumentAPIError("Cannot resize LINE: height must be 0")
        node.width = width
        node.height = height
        if node.type == NodeKind.TEXT:
            node.text_auto_resize = "NONE"
        self._changed([DocumentChange("PROPERTY_CHANGE", node.id, ("width", "height"))])

    def move(self, node: MemoryNode, x: float, y: float) -> None:
        self._require_live(node)
        node.x = x
        node.y = y
        self._changed([DocumentChange("PROPERTY_CHANGE", node.id, ("x", "y"))])

    def reparent(self, node: MemoryNode, parent: MemoryNode | None) -> None:
        """Move node under parent (None = page root), keeping its relative x/y."""
        self._require_live(node)
        if parent is not None:
            self._require_live(parent)
            if parent.type not in CONTAINER_KINDS:
                raise DocumentAPIError(f"{parent.type} node cannot have children")
            if any(n is parent for n in node.walk()):
                raise DocumentAPIError("Cannot move a node inside itself")
        self._detach(node)
        self._attach(node, parent)
        self._changed([DocumentChange("PROPERTY_CHANGE", node.id, ("parent",))])

    def remove(self, node: MemoryNode) -> None:
        """Remove node and its subtree; one DELETE change per removed node."""
        if node.removed:
            return
        self._detach(node)
        removed = list(node.walk())
        for item in removed:
            item.removed = True
            self._nodes.pop(item.id, None)

        selection_changed = any(n.removed for n in self._selection)
        self._selection = [n for n in self._selection if not n.removed]

        self._changed([DocumentChange("DELETE", item.id) for item in removed])
        if selection_changed:
            self._selection_changed()

    # ========== Selection & viewport ==========

    def get_selection(self) -> list[MemoryNode]:
        return list(self._selection)

    def set_selection(self, nodes: Iterable[MemoryNode]) -> None:
        self._selection = [n for n in nodes if not n.removed]
        self._selection_changed()

    def get_viewport(self) -> Rect:
        return self._viewport

    def focus_viewport(self, nodes: Iterable[MemoryNode]) -> None:
        """Fit the viewport to the union of the nodes' absolute bounds."""
        bounds = [self.absolute_bounds(n) for n in nodes if not n.removed]
        if not bounds:
            return
        left = min(b.x for b in bounds)
        top = min(b.y for b in bounds)
        right = max(b.right for b in bounds)
        bottom = max(b.bottom for b in bounds)
        self._viewport = Rect(x=left, y=top, width=right - left, height=bottom - top)
        logger.debug(f"Viewport focused on {len(bounds)} node(s): {self._viewport}")

    # ========== Listeners ==========

    def on_selection_change(self, callback: SelectionListener) -> Callable[[], None]:
        return _subscribe(self._selection_listeners, callback)

    def on_document_change(self, callback: ChangeListener) -> Callable[[], None]:
        return _subscribe(self._change_listeners, callback)

    # ========== Resources ==========

    async def load_font(self, family: str, style: str) -> None:
        font = (family, style)
        if font not in self._available_fonts:
            raise DocumentAPIError(f"Font {family} {style} is not available")
        self._loaded_fonts.add(font)

    async def export_node(self, node: MemoryNode, format: str) -> bytes:
        """Serialize a node subtree. Only SVG output is supported."""
        self._require_live(node)
        if str(format).upper() != "SVG":
            raise UnsupportedOperationError(f"Export format {format} is not supported")

        root = ET.Element(
            f"{{{SVG_NS}}}svg",
            {
                "width": _num(node.width),
                "height": _num(node.height),
                "viewBox": f"0 0 {_num(node.width)} {_num(node.height)}",
            },
        )
        root.append(_render(node, origin=True))
        return ET.tostring(root, encoding="utf-8")

    # ========== Internals ==========

    def _next_id(self) -> str:
        return f"1:{next(self._ids)}"

    def _require_live(self, node: MemoryNode) -> None:
        if node.removed:
            raise DocumentAPIError(f"Node {node.id} has been removed")

    def _attach(self, node: MemoryNode, parent: MemoryNode | None) -> None:
        node.parent = parent
        (parent.children if parent is not None else self._page).append(node)

    def _detach(self, node: MemoryNode) -> None:
        siblings = node.parent.children if node.parent is not None else self._page
        if node in siblings:
            siblings.remove(node)
        node.parent = None

    def _autosize_text(self, node: MemoryNode) -> None:
        if node.text_auto_resize == "NONE":
            return
        lines = node.characters.split("\n") if node.characters else []
        line_height = node.font_size * 1.2
        node.height = round(line_height * len(lines), 2)
        if node.text_auto_resize == "WIDTH_AND_HEIGHT":
            longest = max((len(line) for line in lines), default=0)
            node.width = round(longest * node.font_size * 0.6, 2)

    def _selection_changed(self) -> None:
        for callback in list(self._selection_listeners):
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in selection listener: {e}")

    def _changed(self, changes: list[DocumentChange]) -> None:
        for callback in list(self._change_listeners):
            try:
                callback(changes)
            except Exception as e:
                logger.error(f"Error in document change listener: {e}")


def _svg_size(root: ET.Element) -> tuple[float, float]:
    width = _parse_length(root.get("width"))
    height = _parse_length(root.get("height"))
    if width is not None and height is not None:
        return width, height

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            try:
                return float(parts[2]), float(parts[3])
            except ValueError:
                pass
    return DEFAULT_SIZES[NodeKind.SVG]


def _parse_length(value: str | None) -> float | None:
    if not value:
        return None
    value = value.strip().removesuffix("px").removesuffix("pt")
    try:
        return float(value)
    except ValueError:
        # Percentages and other units have no intrinsic size
        return None


def _num(value: float) -> str:
    return f"{value:g}"


def _color(fills: list[dict] | None) -> str:
    if not fills:
        return "none"
    color = fills[0].get("color", {})
    r, g, b = (round(float(color.get(c, 0)) * 255) for c in ("r", "g", "b"))
    return f"#{r:02x}{g:02x}{b:02x}"


def _render(node: MemoryNode, origin: bool = False) -> ET.Element:
    """SVG element for a node; `origin` renders it at (0, 0)."""
    x, y = (0, 0) if origin else (node.x, node.y)
    group = ET.Element(f"{{{SVG_NS}}}g", {"id": node.id, "transform": f"translate({_num(x)} {_num(y)})"})
    if not node.visible:
        group.set("visibility", "hidden")

    size = {"width": _num(node.width), "height": _num(node.height)}
    if node.type in (NodeKind.FRAME, NodeKind.RECTANGLE):
        attrs = {**size, "fill": _color(node.fills)}
        if node.corner_radius:
            attrs["rx"] = _num(node.corner_radius)
        ET.SubElement(group, f"{{{SVG_NS}}}rect", attrs)
    elif node.type == NodeKind.ELLIPSE:
        ET.SubElement(
            group,
            f"{{{SVG_NS}}}ellipse",
            {
                "cx": _num(node.width / 2),
                "cy": _num(node.height / 2),
                "rx": _num(node.width / 2),
                "ry": _num(node.height / 2),
                "fill": _color(node.fills),
            },
        )
    elif node.type == NodeKind.TEXT:
        text = ET.SubElement(
            group,
            f"{{{SVG_NS}}}text",
            {
                "y": _num(node.font_size),
                "font-family": node.font_name[0],
                "font-size": _num(node.font_size),
                "fill": _color(node.fills) if node.fills else "#000000",
            },
        )
        text.text = node.characters
    elif node.type == NodeKind.LINE:
        ET.SubElement(
            group,
            f"{{{SVG_NS}}}line",
            {"x2": _num(node.width), "stroke": "#000000", "stroke-width": _num(node.stroke_weight)},
        )
    elif node.type == NodeKind.SVG and node.markup:
        embedded = ET.fromstring(node.markup)
        embedded.set("width", _num(node.width))
        embedded.set("height", _num(node.height))
        group.append(embedded)

    for child in node.children:
        group.append(_render(child))
    return group


def _subscribe(listeners: list, callback) -> Callable[[], None]:
    listeners.append(callback)

    def unsubscribe():
        if callback in listeners:
            listeners.remove(callback)

    return unsubscribe
