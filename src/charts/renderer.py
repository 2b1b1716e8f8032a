"""
Chart Renderer - turns a chart config into SVG markup using matplotlib.

Uses the object-oriented Figure API (no pyplot state), so render() can be
called from a worker thread. Output sizes map 1:1 to SVG user units: the
figure is created at 72 dpi, so a 600x400 config yields viewBox 0 0 600 400.
"""

import io
import logging
from collections.abc import Callable

import matplotlib
import numpy as np
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

from charts.types import NESTED_DATA_TYPES, ChartConfig, ChartType
from document.errors import UnsupportedOperationError

logger = logging.getLogger(__name__)

DPI = 72
PALETTE = ["#4C78A8", "#F58518", "#54A24B", "#E45756", "#72B7B2", "#EECA3B", "#B279A2", "#FF9DA6"]
POSITIVE = "#54A24B"
NEGATIVE = "#E45756"

Builder = Callable[[object, ChartConfig], None]


class ChartRenderer:
    """Registry of per-type builders drawing onto a matplotlib Axes."""

    def __init__(self):
        self._builders: dict[ChartType, Builder] = {
            ChartType.BAR: self._bar,
            ChartType.LINE: self._line,
            ChartType.PIE: self._pie,
            ChartType.DONUT: self._donut,
            ChartType.AREA: self._area,
            ChartType.SCATTER: self._scatter,
            ChartType.BUBBLE: self._bubble,
            ChartType.HISTOGRAM: self._histogram,
            ChartType.BOX_PLOT: self._boxplot,
            ChartType.FUNNEL: self._funnel,
            ChartType.WATERFALL: self._waterfall,
            ChartType.TREEMAP: self._treemap,
        }

    @property
    def supported_types(self) -> tuple[ChartType, ...]:
        return tuple(self._builders)

    def register(self, chart_type: ChartType, builder: Builder) -> None:
        self._builders[chart_type] = builder

    def render(self, chart_type: ChartType | str, config: ChartConfig | dict) -> str:
        """
        Render a chart to an SVG document string.

        Raises:
            UnsupportedOperationError: Unknown chart type
            ValueError: Data shape does not fit the chart type
        """
        try:
            chart_type = ChartType(chart_type)
        except ValueError:
            raise UnsupportedOperationError(f"Unsupported chart type: {chart_type}") from None
        builder = self._builders.get(chart_type)
        if builder is None:
            raise UnsupportedOperationError(f"Unsupported chart type: {chart_type}")

        if not isinstance(config, ChartConfig):
            config = ChartConfig.from_raw(config)
        _check_shape(chart_type, config)

        fig = Figure(figsize=(config.width / DPI, config.height / DPI), dpi=DPI)
        ax = fig.add_subplot()
        builder(ax, config)
        if config.title:
            fig.suptitle(config.title, fontsize=14, fontweight="bold")
        if config.subtitle:
            ax.set_title(config.subtitle, fontsize=10, color="#666666")

        buffer = io.StringIO()
        with matplotlib.rc_context({"svg.fonttype": "none", "svg.hashsalt": "smartbi"}):
            fig.savefig(buffer, format="svg", metadata={"Date": None})
        svg = buffer.getvalue()
        logger.debug(f"Rendered {chart_type} chart ({len(svg)} bytes)")
        return svg

    # ========== Builders ==========

    def _bar(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        ax.bar(_labels(config, len(values)), values, color=PALETTE[0])

    def _line(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        ax.plot(_labels(config, len(values)), values, marker="o", color=PALETTE[0])

    def _area(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        x = np.arange(len(values))
        ax.fill_between(x, values, alpha=0.4, color=PALETTE[0])
        ax.plot(x, values, color=PALETTE[0])
        ax.set_xticks(x, _labels(config, len(values)))

    def _pie(self, ax, config: ChartConfig, hole: float | None = None) -> None:
        values = np.asarray(config.data, dtype=float)
        wedgeprops = {"width": 1 - hole} if hole else None
        ax.pie(
            values,
            labels=_labels(config, len(values)),
            colors=PALETTE[: len(values)],
            autopct="%1.0f%%",
            wedgeprops=wedgeprops,
        )
        ax.set_aspect("equal")

    def _donut(self, ax, config: ChartConfig) -> None:
        self._pie(ax, config, hole=0.55)

    def _scatter(self, ax, config: ChartConfig) -> None:
        points = np.asarray(config.data, dtype=float)
        ax.scatter(points[:, 0], points[:, 1], color=PALETTE[0])

    def _bubble(self, ax, config: ChartConfig) -> None:
        points = np.asarray(config.data, dtype=float)
        sizes = points[:, 2]
        # Scale the third dimension into a readable marker area range
        span = np.ptp(sizes) or 1.0
        areas = 100 + 900 * (sizes - sizes.min()) / span
        ax.scatter(points[:, 0], points[:, 1], s=areas, alpha=0.6, color=PALETTE[1])

    def _histogram(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        if config.labels:
            # Pre-binned frequencies
            ax.bar(_labels(config, len(values)), values, width=1.0, edgecolor="white", color=PALETTE[0])
        else:
            ax.hist(values, bins="auto", edgecolor="white", color=PALETTE[0])

    def _boxplot(self, ax, config: ChartConfig) -> None:
        groups = [np.asarray(group, dtype=float) for group in config.data]
        ax.boxplot(groups)
        ax.set_xticks(np.arange(1, len(groups) + 1), _labels(config, len(groups)))

    def _funnel(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        y = np.arange(len(values))
        ax.barh(y, values, left=(values.max() - values) / 2, color=PALETTE[: len(values)])
        ax.set_yticks(y, _labels(config, len(values)))
        ax.invert_yaxis()
        ax.set_xticks([])

    def _waterfall(self, ax, config: ChartConfig) -> None:
        deltas = np.asarray(config.data, dtype=float)
        bottoms = np.concatenate([[0.0], np.cumsum(deltas)[:-1]])
        colors = [POSITIVE if d >= 0 else NEGATIVE for d in deltas]
        ax.bar(_labels(config, len(deltas)), deltas, bottom=bottoms, color=colors)
        ax.axhline(0, color="#999999", linewidth=0.8)

    def _treemap(self, ax, config: ChartConfig) -> None:
        values = np.asarray(config.data, dtype=float)
        labels = _labels(config, len(values))
        order = np.argsort(values)[::-1]
        rects = squarify_split([float(values[i]) for i in order], 0.0, 0.0, 1.0, 1.0)
        for rank, (index, (x, y, w, h)) in enumerate(zip(order, rects)):
            ax.add_patch(Rectangle((x, y), w, h, facecolor=PALETTE[rank % len(PALETTE)], edgecolor="white"))
            ax.text(x + w / 2, y + h / 2, labels[index], ha="center", va="center", fontsize=9, color="white")
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.set_axis_off()


def squarify_split(values: list[float], x: float, y: float, w: float, h: float) -> list[tuple]:
    """
    Binary split treemap layout.

    Splits the (descending) values into two groups of roughly equal total and
    divides the rectangle along its longer side, recursively. Returns one
    (x, y, w, h) per value, in input order.
    """
    if not values:
        return []
    if len(values) == 1:
        return [(x, y, w, h)]

    total = sum(values)
    if total <= 0:
        # Degenerate input: equal strips
        values = [1.0] * len(values)
        total = float(len(values))

    running = 0.0
    split = 1
    for i, value in enumerate(values[:-1], start=1):
        running += value
        split = i
        if running >= total / 2:
            break
    first, second = values[:split], values[split:]
    ratio = sum(first) / total

    if w >= h:
        return squarify_split(first, x, y, w * ratio, h) + squarify_split(
            second, x + w * ratio, y, w * (1 - ratio), h
        )
    return squarify_split(first, x, y, w, h * ratio) + squarify_split(
        second, x, y + h * ratio, w, h * (1 - ratio)
    )


def _labels(config: ChartConfig, count: int) -> list[str]:
    labels = list(config.labels or [])
    return [labels[i] if i < len(labels) else str(i + 1) for i in range(count)]


def _check_shape(chart_type: ChartType, config: ChartConfig) -> None:
    nested = isinstance(config.data[0], list)
    if chart_type in NESTED_DATA_TYPES and not nested:
        raise ValueError(f"{chart_type} charts need a list of lists as data")
    if chart_type not in NESTED_DATA_TYPES and nested:
        raise ValueError(f"{chart_type} charts need a flat list of numbers as data")
    if chart_type == ChartType.SCATTER and any(len(p) < 2 for p in config.data):
        raise ValueError("scatter points need [x, y]")
    if chart_type == ChartType.BUBBLE and any(len(p) < 3 for p in config.data):
        raise ValueError("bubble points need [x, y, size]")
