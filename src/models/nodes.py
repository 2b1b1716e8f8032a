"""
Node kinds and the typed construction configs the host can build from.

NodeConfig is a union discriminated on `type`; a config whose type is not
one of the constructible kinds fails validation before reaching the host
document.
"""

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from models.base import WireModel


class NodeKind(StrEnum):
    """Discriminator over the visual kinds the document supports."""

    FRAME = "FRAME"
    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    TEXT = "TEXT"
    LINE = "LINE"
    SVG = "SVG"  # produced only by vector-image import


# Kinds that can hold children (only frames in this document model)
CONTAINER_KINDS = frozenset({NodeKind.FRAME})


class RGB(WireModel):
    r: float = Field(ge=0, le=1)
    g: float = Field(ge=0, le=1)
    b: float = Field(ge=0, le=1)


class Paint(WireModel):
    """Solid fill paint."""

    type: Literal["SOLID"] = "SOLID"
    color: RGB
    opacity: float = Field(default=1.0, ge=0, le=1)


class FontName(WireModel):
    family: str = "Inter"
    style: str = "Regular"


class BaseNodeConfig(WireModel):
    """Fields shared by every constructible node kind."""

    name: str | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    visible: bool | None = None
    locked: bool | None = None
    parent_id: str | None = None
    fills: list[Paint] | None = None


class FrameConfig(BaseNodeConfig):
    type: Literal["FRAME"] = "FRAME"
    corner_radius: float | None = Field(default=None, ge=0)
    clips_content: bool | None = None


class RectangleConfig(BaseNodeConfig):
    type: Literal["RECTANGLE"] = "RECTANGLE"
    corner_radius: float | None = Field(default=None, ge=0)


class EllipseConfig(BaseNodeConfig):
    type: Literal["ELLIPSE"] = "ELLIPSE"


class TextConfig(BaseNodeConfig):
    type: Literal["TEXT"] = "TEXT"
    characters: str = ""
    font_name: FontName | None = None
    font_size: float | None = Field(default=None, gt=0)
    # "NONE" keeps the configured width; anything else lets text size itself
    text_auto_resize: Literal["NONE", "WIDTH_AND_HEIGHT", "HEIGHT"] | None = None


class LineConfig(BaseNodeConfig):
    type: Literal["LINE"] = "LINE"
    stroke_weight: float | None = Field(default=None, ge=0)


NodeConfig = Annotated[
    Union[FrameConfig, RectangleConfig, EllipseConfig, TextConfig, LineConfig],
    Field(discriminator="type"),
]

_node_config_adapter: TypeAdapter = TypeAdapter(NodeConfig)


def parse_node_config(raw: dict | BaseNodeConfig) -> BaseNodeConfig:
    """Validate a raw config dict into the concrete config class for its type."""
    if isinstance(raw, BaseNodeConfig):
        return raw
    return _node_config_adapter.validate_python(raw)
