"""Chart kinds, their catalogue metadata, and the render config."""

from enum import StrEnum

from pydantic import Field

from models.base import WireModel


class ChartType(StrEnum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DONUT = "donut"
    AREA = "area"
    SCATTER = "scatter"
    BUBBLE = "bubble"
    HISTOGRAM = "histogram"
    BOX_PLOT = "boxplot"
    FUNNEL = "funnel"
    WATERFALL = "waterfall"
    TREEMAP = "treemap"


class ChartCategory(StrEnum):
    BASIC = "basic"
    STATISTICAL = "statistical"
    SPECIALIZED = "specialized"


# Chart kinds whose data is a list of points/groups rather than a flat series
NESTED_DATA_TYPES = frozenset({ChartType.SCATTER, ChartType.BUBBLE, ChartType.BOX_PLOT})


class ChartConfig(WireModel):
    """Input to the chart renderer."""

    data: list[float] | list[list[float]] = Field(min_length=1)
    labels: list[str] | None = None
    title: str | None = None
    subtitle: str | None = None
    width: float = Field(default=600, gt=0)
    height: float = Field(default=400, gt=0)


class ChartMetadata(WireModel):
    type: ChartType
    name: str
    description: str
    category: ChartCategory


def _meta(chart_type: ChartType, name: str, description: str, category: ChartCategory):
    return chart_type, ChartMetadata(type=chart_type, name=name, description=description, category=category)


CHART_METADATA: dict[ChartType, ChartMetadata] = dict(
    [
        _meta(ChartType.BAR, "Bar Chart", "Compare values across categories", ChartCategory.BASIC),
        _meta(ChartType.LINE, "Line Chart", "Show trends over time", ChartCategory.BASIC),
        _meta(ChartType.PIE, "Pie Chart", "Display proportional data", ChartCategory.BASIC),
        _meta(ChartType.DONUT, "Donut Chart", "Pie chart with center space", ChartCategory.BASIC),
        _meta(ChartType.AREA, "Area Chart", "Filled line chart for volume", ChartCategory.BASIC),
        _meta(ChartType.SCATTER, "Scatter Plot", "Show correlation between variables", ChartCategory.STATISTICAL),
        _meta(ChartType.BUBBLE, "Bubble Chart", "Multi-dimensional scatter plot", ChartCategory.STATISTICAL),
        _meta(ChartType.HISTOGRAM, "Histogram", "Frequency distribution", ChartCategory.STATISTICAL),
        _meta(ChartType.BOX_PLOT, "Box Plot", "Statistical data distribution", ChartCategory.STATISTICAL),
        _meta(ChartType.FUNNEL, "Funnel Chart", "Conversion or process stages", ChartCategory.SPECIALIZED),
        _meta(ChartType.WATERFALL, "Waterfall Chart", "Sequential value changes", ChartCategory.SPECIALIZED),
        _meta(ChartType.TREEMAP, "Treemap", "Hierarchical data visualization", ChartCategory.SPECIALIZED),
    ]
)

CHART_CATEGORIES = (
    (ChartCategory.BASIC, "Basic Charts"),
    (ChartCategory.STATISTICAL, "Statistical"),
    (ChartCategory.SPECIALIZED, "Specialized"),
)


def charts_in_category(category: ChartCategory) -> list[ChartMetadata]:
    return [meta for meta in CHART_METADATA.values() if meta.category == category]
