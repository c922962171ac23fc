"""
Chart context and layer handles.

The static pass builds one ChartContext per data/timeframe/size change. Every
other pass only reads it and draws into the layer it owns.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pyqtgraph as pg
from PyQt6.QtCore import Qt, QPointF, QRectF
from PyQt6.QtGui import QColor, QFont, QFontMetricsF, QPen
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsRectItem, QGraphicsSimpleTextItem

from .models import CandleSeries
from .scales import ChartScales


CHART_COLORS = {
    'background': '#0a0a0a',
    'bullish': (34, 197, 94),
    'bearish': (239, 68, 68),
    'volume_bullish': (34, 197, 94, 77),
    'volume_bearish': (239, 68, 68, 77),
    'line': (59, 130, 246),
    'grid': (255, 255, 255, 26),
    'axis': '#999999',
    'axis_border': (42, 42, 42),
    'label_box': (0, 0, 0, 128),
    'trendline': (255, 255, 255),
    'horizontal': (255, 255, 0),
    'fib': (147, 197, 253, 204),
    'point_fill': (255, 255, 255, 204),
    'point_stroke': (255, 255, 255),
    'text': (255, 255, 255),
}

# z-order, lowest first
LAYER_ORDER = ('grid', 'volume', 'candles', 'line', 'drawings', 'preview', 'annotations')


@dataclass(frozen=True)
class Margin:
    top: float = 20
    right: float = 30
    bottom: float = 30
    left: float = 60


CHART_MARGIN = Margin()


def make_text_item(text: str, color, x: float, y: float, font_size: float = 10,
                   anchor: str = 'start', bold: bool = False) -> QGraphicsSimpleTextItem:
    """Text positioned by its baseline, like an SVG text element"""
    item = QGraphicsSimpleTextItem(text)
    font = QFont('Arial')
    font.setPixelSize(int(font_size))
    font.setBold(bold)
    item.setFont(font)
    item.setBrush(pg.mkBrush(color))

    metrics = QFontMetricsF(font)
    text_width = metrics.horizontalAdvance(text)
    if anchor == 'middle':
        left = x - text_width / 2
    elif anchor == 'end':
        left = x - text_width
    else:
        left = x
    item.setPos(left, y - metrics.ascent())
    return item


def remove_graphics_item(item):
    scene = item.scene()
    if scene is not None:
        scene.removeItem(item)
    else:
        item.setParentItem(None)


class ChartLayer:
    """One z-ordered group of graphics items, cleared as a unit"""

    def __init__(self, name: str, parent, z_value: float):
        self.name = name
        self.group = pg.ItemGroup()
        self.group.setParentItem(parent)
        self.group.setZValue(z_value)
        self._items: Dict[str, List] = {}

    def add(self, item, role: str = 'item'):
        item.setParentItem(self.group)
        self._items.setdefault(role, []).append(item)
        return item

    def items(self, role: str) -> List:
        return list(self._items.get(role, []))

    def roles(self) -> List[str]:
        return [role for role, items in self._items.items() if items]

    def clear(self):
        for items in self._items.values():
            for item in items:
                remove_graphics_item(item)
        self._items.clear()

    def __len__(self):
        return sum(len(items) for items in self._items.values())

    def __repr__(self):
        return f"ChartLayer({self.name!r}, items={len(self)})"


class AxisItem(pg.GraphicsObject):
    """Painted axis drawn outside the plot clip"""

    TICK_SIZE = 6

    def __init__(self, orientation: str, length: float, thickness: float, parent=None):
        super().__init__(parent)
        self.orientation = orientation
        self.length = float(length)
        self.thickness = float(thickness)
        self.labels: List[Tuple[str, float]] = []

        self.font = QFont('Arial')
        self.font.setPixelSize(10)
        self.text_pen = QPen(QColor(CHART_COLORS['axis']))
        self.line_pen = QPen(QColor(*CHART_COLORS['axis_border']), 1)

    def boundingRect(self):
        if self.orientation == 'left':
            return QRectF(-self.thickness, 0, self.thickness, self.length)
        return QRectF(0, 0, self.length, self.thickness)

    def setLabels(self, labels: List[Tuple[str, float]]):
        if labels != self.labels:
            self.labels = labels
            self.update()

    def paint(self, painter, option, widget=None):
        painter.setPen(self.line_pen)
        if self.orientation == 'left':
            painter.drawLine(QPointF(0, 0), QPointF(0, self.length))
        else:
            painter.drawLine(QPointF(0, 0), QPointF(self.length, 0))

        if not self.labels:
            return

        painter.setFont(self.font)
        for label, pos in self.labels:
            painter.setPen(self.line_pen)
            if self.orientation == 'left':
                painter.drawLine(QPointF(-self.TICK_SIZE, pos), QPointF(0, pos))
                painter.setPen(self.text_pen)
                text_rect = QRectF(-self.thickness, pos - 10, self.thickness - self.TICK_SIZE - 3, 20)
                painter.drawText(text_rect, Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter, label)
            else:
                painter.drawLine(QPointF(pos, 0), QPointF(pos, self.TICK_SIZE))
                painter.setPen(self.text_pen)
                text_rect = QRectF(pos - 40, self.TICK_SIZE + 2, 80, self.thickness - self.TICK_SIZE - 2)
                painter.drawText(text_rect, Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop, label)


@dataclass(frozen=True)
class ChartLayers:
    plot: QGraphicsRectItem
    x_axis: AxisItem
    y_axis: AxisItem
    grid: ChartLayer
    volume: ChartLayer
    candles: ChartLayer
    line: ChartLayer
    drawings: ChartLayer
    preview: ChartLayer
    annotations: ChartLayer


@dataclass(frozen=True)
class ChartContext:
    """Everything a render pass needs, rebuilt only by the static pass"""
    root: pg.ItemGroup
    layers: ChartLayers
    scales: ChartScales
    candles: CandleSeries
    timeframe: str
    margin: Margin
    width: float
    height: float

    def to_plot(self, x: float, y: float) -> Tuple[float, float]:
        """Container coordinates to plot coordinates"""
        return x - self.margin.left, y - self.margin.top


def plot_size(container_size: Tuple[float, float], margin: Margin = CHART_MARGIN) -> Tuple[float, float]:
    container_width, container_height = container_size
    return (container_width - margin.left - margin.right,
            container_height - margin.top - margin.bottom)


def create_layers(root, width: float, height: float, margin: Margin) -> ChartLayers:
    """Plot clip region, axes outside it, and the z-ordered layers inside it"""
    plot = QGraphicsRectItem(0, 0, width, height)
    plot.setParentItem(root)
    plot.setPos(margin.left, margin.top)
    plot.setPen(pg.mkPen(None))
    plot.setFlag(QGraphicsItem.GraphicsItemFlag.ItemClipsChildrenToShape, True)

    y_axis = AxisItem('left', height, margin.left)
    y_axis.setParentItem(root)
    y_axis.setPos(margin.left, margin.top)

    x_axis = AxisItem('bottom', width, margin.bottom)
    x_axis.setParentItem(root)
    x_axis.setPos(margin.left, margin.top + height)

    named = {name: ChartLayer(name, plot, z) for z, name in enumerate(LAYER_ORDER)}
    return ChartLayers(plot=plot, x_axis=x_axis, y_axis=y_axis, **named)


def dispose_context(context: Optional[ChartContext]):
    if context is None:
        return
    for name in LAYER_ORDER:
        getattr(context.layers, name).clear()
    remove_graphics_item(context.root)
