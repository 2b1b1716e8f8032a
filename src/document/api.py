"""
Interface of the host document the adapter drives.

Any scene-graph backend that satisfies DocumentAPI can sit behind the
host controller; InMemoryDocument is the one shipped here. Geometry on a
node (x, y) is relative to its parent; width/height are its own size.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from models.geometry import Rect
from models.nodes import NodeKind

ChangeType = Literal["CREATE", "DELETE", "PROPERTY_CHANGE"]


@dataclass(frozen=True)
class DocumentChange:
    """One entry of a document-change notification."""

    type: ChangeType
    id: str
    properties: tuple[str, ...] = ()


@runtime_checkable
class SceneNode(Protocol):
    id: str
    type: NodeKind
    name: str
    x: float
    y: float
    visible: bool
    locked: bool

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...

    @property
    def parent(self) -> "SceneNode | None": ...

    @property
    def children(self) -> Sequence["SceneNode"]: ...

    @property
    def removed(self) -> bool: ...


SelectionListener = Callable[[], None]
ChangeListener = Callable[[list[DocumentChange]], None]


class DocumentAPI(Protocol):
    """Operations the host side needs from the document."""

    def find_nodes_matching(self, predicate: Callable[[SceneNode], bool]) -> list[SceneNode]: ...

    def create_node(self, kind: NodeKind) -> SceneNode: ...

    def create_node_from_svg(self, svg: str) -> SceneNode: ...

    def get_node_by_id(self, node_id: str) -> SceneNode | None: ...

    def set_tag(self, node: SceneNode, key: str, value: str) -> None: ...

    def get_tag(self, node: SceneNode, key: str) -> str: ...

    def resize(self, node: SceneNode, width: float, height: float) -> None: ...

    def move(self, node: SceneNode, x: float, y: float) -> None: ...

    def remove(self, node: SceneNode) -> None: ...

    def reparent(self, node: SceneNode, parent: SceneNode | None) -> None: ...

    def set_properties(self, node: SceneNode, **properties) -> None: ...

    def on_selection_change(self, callback: SelectionListener) -> Callable[[], None]: ...

    def on_document_change(self, callback: ChangeListener) -> Callable[[], None]: ...

    def focus_viewport(self, nodes: Iterable[SceneNode]) -> None: ...

    def get_viewport(self) -> Rect: ...

    def get_selection(self) -> list[SceneNode]: ...

    def set_selection(self, nodes: Iterable[SceneNode]) -> None: ...

    def absolute_bounds(self, node: SceneNode) -> Rect: ...

    async def load_font(self, family: str, style: str) -> None: ...

    async def export_node(self, node: SceneNode, format: str) -> bytes: ...
