"""Chart catalogue and SVG rendering."""

from .defaults import default_chart_config
from .renderer import ChartRenderer
from .types import CHART_METADATA, ChartCategory, ChartConfig, ChartType

__all__ = [
    "CHART_METADATA",
    "ChartCategory",
    "ChartConfig",
    "ChartRenderer",
    "ChartType",
    "default_chart_config",
]
