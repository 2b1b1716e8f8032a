"""Sample configs used when a chart is inserted without data."""

from charts.types import ChartConfig, ChartType

QUARTERS = ["Q1", "Q2", "Q3", "Q4", "Q5"]
PRODUCTS = ["Product A", "Product B", "Product C", "Product D", "Product E"]
SAMPLE_SERIES = [45, 78, 92, 65, 88]

DEFAULT_CHART_CONFIGS: dict[ChartType, dict] = {
    ChartType.BAR: {
        "data": SAMPLE_SERIES,
        "labels": QUARTERS,
        "title": "Quarterly Revenue",
        "subtitle": "Sales performance",
    },
    ChartType.LINE: {
        "data": SAMPLE_SERIES,
        "labels": QUARTERS,
        "title": "Revenue Trend",
        "subtitle": "Growth over time",
    },
    ChartType.PIE: {
        "data": SAMPLE_SERIES,
        "labels": PRODUCTS,
        "title": "Market Share",
        "subtitle": "By product",
    },
    ChartType.DONUT: {
        "data": SAMPLE_SERIES,
        "labels": PRODUCTS,
        "title": "Sales Distribution",
        "subtitle": "By category",
    },
    ChartType.AREA: {
        "data": SAMPLE_SERIES,
        "labels": QUARTERS,
        "title": "Growth Area",
        "subtitle": "Cumulative growth",
    },
    ChartType.SCATTER: {
        "data": [[10, 20], [30, 40], [50, 60], [70, 80], [90, 100]],
        "title": "Correlation Analysis",
        "subtitle": "X vs Y",
    },
    ChartType.BUBBLE: {
        "data": [[10, 20, 30], [30, 40, 50], [50, 60, 70], [70, 80, 90]],
        "title": "Bubble Analysis",
        "subtitle": "Multi-dimensional data",
    },
    ChartType.HISTOGRAM: {
        "data": [5, 12, 18, 25, 20, 15, 8],
        "labels": ["0-10", "10-20", "20-30", "30-40", "40-50", "50-60", "60-70"],
        "title": "Distribution",
        "subtitle": "Frequency analysis",
    },
    ChartType.BOX_PLOT: {
        "data": [[5, 10, 15, 20, 25], [8, 12, 18, 22, 28], [6, 11, 16, 21, 26]],
        "labels": ["Group A", "Group B", "Group C"],
        "title": "Statistical Analysis",
        "subtitle": "Distribution comparison",
    },
    ChartType.FUNNEL: {
        "data": [1000, 800, 600, 400, 200],
        "labels": ["Awareness", "Interest", "Consideration", "Intent", "Purchase"],
        "title": "Sales Funnel",
        "subtitle": "Conversion stages",
    },
    ChartType.WATERFALL: {
        "data": [100, 50, -30, 40, -20, 60],
        "labels": ["Start", "Revenue", "Costs", "Profit", "Tax", "Net"],
        "title": "Financial Waterfall",
        "subtitle": "Cash flow analysis",
    },
    ChartType.TREEMAP: {
        "data": [100, 80, 60, 40, 20],
        "labels": ["Region A", "Region B", "Region C", "Region D", "Region E"],
        "title": "Regional Performance",
        "subtitle": "Market size",
    },
}


def default_chart_config(chart_type: ChartType | str) -> ChartConfig:
    """Sample 600x400 config for a chart type."""
    return ChartConfig.from_raw(DEFAULT_CHART_CONFIGS[ChartType(chart_type)])
