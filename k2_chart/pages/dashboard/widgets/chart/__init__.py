# Facade package for the chart widget and its engine.
# Consumers should import: from k2_chart.pages.dashboard.widgets.chart import StockChartWidget
from k2_chart.pages.dashboard.widgets.chart.chart_widget import StockChartWidget
from k2_chart.pages.dashboard.widgets.chart.drawings import (AnnotationStore, DraftGesture, DrawingEngine,
                                                             FibRetracement, HorizontalLine, Point,
                                                             PointMarker, ToolId, TrendLine)
from k2_chart.pages.dashboard.widgets.chart.models import Candle, CandleSeries, ChartMode, TIMEFRAMES
from k2_chart.pages.dashboard.widgets.chart.scheduler import RenderPass
from k2_chart.pages.dashboard.widgets.chart.transform import ViewTransform

__all__ = [
    "StockChartWidget",
    "AnnotationStore",
    "DraftGesture",
    "DrawingEngine",
    "FibRetracement",
    "HorizontalLine",
    "Point",
    "PointMarker",
    "ToolId",
    "TrendLine",
    "Candle",
    "CandleSeries",
    "ChartMode",
    "TIMEFRAMES",
    "RenderPass",
    "ViewTransform",
]
