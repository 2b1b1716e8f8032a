"""
Geometry value types shared by the layout engine, repositories and the host.

Rectangles here are transient: they are never persisted on a node.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Top-left origin of a rectangle, relative to its container."""

    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Dimensions:
    """Width and height of a rectangle."""

    width: float
    height: float

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle used for collision and containment checks."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def overlaps(self, other: "Rect") -> bool:
        """
        True if the rectangles intersect on both axes.

        Strict inequalities: rectangles that only share an edge do not overlap.
        """
        return (
            self.x < other.right
            and self.right > other.x
            and self.y < other.bottom
            and self.bottom > other.y
        )

    def contains(self, other: "Rect") -> bool:
        """True if `other` lies fully inside this rectangle (edges inclusive)."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(
            x=data.get("x", 0),
            y=data.get("y", 0),
            width=data.get("width", 0),
            height=data.get("height", 0),
        )

    @classmethod
    def of(cls, item) -> "Rect":
        """Build a Rect from any object exposing x, y, width and height."""
        return cls(x=item.x, y=item.y, width=item.width, height=item.height)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class LayoutResult:
    """Output of the layout engine for one new visual."""

    position: Position
    dimensions: Dimensions
    should_zoom: bool

    @property
    def rect(self) -> Rect:
        return Rect(
            x=self.position.x,
            y=self.position.y,
            width=self.dimensions.width,
            height=self.dimensions.height,
        )

    def to_dict(self) -> dict:
        return {
            "position": self.position.to_dict(),
            "dimensions": self.dimensions.to_dict(),
            "shouldZoom": self.should_zoom,
        }
