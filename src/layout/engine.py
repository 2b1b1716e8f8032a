"""
Layout Engine - deterministic, collision-free placement of new visuals.

Given a dashboard rectangle, the rectangles of the visuals already inside it
and (optionally) the visible viewport, decide where the next visual goes,
how large it is, and whether the viewport should re-center on the dashboard.

Policies:
- Columns: 1 below 800 units wide, 2 from 800, 3 from 1200.
- Width:   floor((dashboard_width - spacing * (cols + 1)) / cols)
- Height:  floor(dashboard_height * 0.4), independent of the column count.
- Placement: first free slot scanning rows top-down, left to right, from
  (0, 0). A full dashboard falls back to (spacing, spacing), which may
  overlap an existing visual.
- Zoom: only when a viewport is given and does not fully contain the dashboard.

The engine holds no state between calls.
"""

import logging
import math
from collections.abc import Iterable

from config import LAYOUT
from models.geometry import Dimensions, LayoutResult, Position, Rect

logger = logging.getLogger(__name__)


class LayoutEngine:
    """Pure layout computation; construct once per process and pass it around."""

    def __init__(
        self,
        spacing: int = LAYOUT["spacing"],
        height_ratio: float = LAYOUT["height_ratio"],
        column_breakpoints: tuple[tuple[int, int], ...] = LAYOUT["column_breakpoints"],
        min_columns: int = LAYOUT["min_columns"],
    ):
        self.spacing = spacing
        self.height_ratio = height_ratio
        # Widest breakpoint must be checked first
        self.column_breakpoints = tuple(sorted(column_breakpoints, reverse=True))
        self.min_columns = min_columns

    def compute_layout(
        self,
        dashboard: Rect,
        existing_visuals: Iterable[Rect],
        viewport: Rect | None = None,
    ) -> LayoutResult:
        """
        Compute position, dimensions and zoom flag for a new visual.

        Args:
            dashboard: Dashboard frame geometry
            existing_visuals: Rectangles of visuals already in the dashboard,
                in the dashboard's coordinate space
            viewport: Visible document region, if known

        Returns:
            LayoutResult (position is relative to the dashboard)
        """
        occupied = [Rect.of(v) for v in existing_visuals]
        dimensions = self.compute_dimensions(dashboard.width, dashboard.height)
        position = self.find_next_position(dashboard, occupied, dimensions)
        should_zoom = viewport is not None and not viewport.contains(dashboard)

        logger.debug(
            f"Layout for {dashboard.width}x{dashboard.height} dashboard "
            f"({len(occupied)} visuals): {dimensions.width}x{dimensions.height} "
            f"at ({position.x}, {position.y}), zoom={should_zoom}"
        )
        return LayoutResult(position=position, dimensions=dimensions, should_zoom=should_zoom)

    def column_count(self, dashboard_width: float) -> int:
        """Step function of dashboard width."""
        for min_width, columns in self.column_breakpoints:
            if dashboard_width >= min_width:
                return columns
        return self.min_columns

    def compute_dimensions(self, dashboard_width: float, dashboard_height: float) -> Dimensions:
        cols = self.column_count(dashboard_width)
        width = math.floor((dashboard_width - self.spacing * (cols + 1)) / cols)
        height = math.floor(dashboard_height * self.height_ratio)
        return Dimensions(width=width, height=height)

    def find_next_position(
        self, dashboard: Rect, occupied: list[Rect], dimensions: Dimensions
    ) -> Position:
        """First non-overlapping candidate in row-major order, else the fallback corner."""
        step_x = dimensions.width + self.spacing
        step_y = dimensions.height + self.spacing
        max_x = dashboard.width - dimensions.width
        max_y = dashboard.height - dimensions.height

        # Non-positive steps would never advance; only the origin is a candidate then
        y = 0
        while y <= max_y:
            x = 0
            while x <= max_x:
                candidate = Rect(x=x, y=y, width=dimensions.width, height=dimensions.height)
                if not any(candidate.overlaps(rect) for rect in occupied):
                    return Position(x=x, y=y)
                if step_x <= 0:
                    break
                x += step_x
            if step_y <= 0:
                break
            y += step_y

        logger.debug("Dashboard full, falling back to corner position")
        return Position(x=self.spacing, y=self.spacing)
