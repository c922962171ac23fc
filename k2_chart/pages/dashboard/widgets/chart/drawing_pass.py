"""
Drawing Render Pass

Committed drawings and the transient gesture preview live in separate layers;
each render fully clears and redraws only its own layer.
"""

from typing import Iterable, Optional

import pyqtgraph as pg
from PyQt6.QtCore import QRectF
from PyQt6.QtWidgets import QGraphicsEllipseItem, QGraphicsLineItem

from k2_chart.utilities.logger import k2_logger

from .drawings import (Drawing, FibRetracement, HorizontalLine, PointMarker, TrendLine,
                       fib_label, fib_level_positions)
from .layers import CHART_COLORS, ChartContext, ChartLayer, make_text_item
from .transform import IDENTITY, ViewTransform


POINT_RADIUS = 5


def render_drawings(context: ChartContext, drawings: Iterable[Drawing],
                    transform: ViewTransform = IDENTITY) -> int:
    layer = context.layers.drawings
    layer.clear()
    for drawing in drawings:
        draw_drawing(layer, context, drawing, transform)
    k2_logger.render_pass("drawings", len(layer))
    return len(layer)


def render_preview(context: ChartContext, drawing: Optional[Drawing],
                   transform: ViewTransform = IDENTITY) -> int:
    layer = context.layers.preview
    layer.clear()
    if drawing is not None:
        draw_drawing(layer, context, drawing, transform)
    return len(layer)


def draw_drawing(layer: ChartLayer, context: ChartContext, drawing: Drawing, transform: ViewTransform):
    if isinstance(drawing, TrendLine):
        _draw_trendline(layer, drawing, transform)
    elif isinstance(drawing, HorizontalLine):
        _draw_horizontal(layer, context, drawing)
    elif isinstance(drawing, FibRetracement):
        _draw_fib(layer, context, drawing)
    elif isinstance(drawing, PointMarker):
        _draw_point(layer, drawing, transform)
    else:
        raise TypeError(f"Unknown drawing type: {type(drawing).__name__}")


def _draw_trendline(layer: ChartLayer, drawing: TrendLine, transform: ViewTransform):
    line = QGraphicsLineItem(transform.apply_x(drawing.start.x), drawing.start.y,
                             transform.apply_x(drawing.end.x), drawing.end.y)
    # dash lengths are in pen widths: 5px on, 5px off
    line.setPen(pg.mkPen(CHART_COLORS['trendline'], width=2, dash=[2.5, 2.5]))
    layer.add(line, 'trendline')


def _draw_horizontal(layer: ChartLayer, context: ChartContext, drawing: HorizontalLine):
    line = QGraphicsLineItem(0, drawing.y, context.width, drawing.y)
    line.setPen(pg.mkPen(CHART_COLORS['horizontal'], width=2))
    layer.add(line, 'horizontal')


def _draw_fib(layer: ChartLayer, context: ChartContext, drawing: FibRetracement):
    pen = pg.mkPen(CHART_COLORS['fib'], width=1, dash=[3, 3])
    for level, y in fib_level_positions(drawing.start.y, drawing.end.y):
        guide = QGraphicsLineItem(0, y, context.width, y)
        guide.setPen(pen)
        layer.add(guide, 'fib_guide')
        layer.add(make_text_item(fib_label(level), CHART_COLORS['text'], x=context.width - 5, y=y - 5,
                                 font_size=10, anchor='end'), 'fib_label')


def _draw_point(layer: ChartLayer, drawing: PointMarker, transform: ViewTransform):
    x = transform.apply_x(drawing.x)
    y = drawing.y
    circle = QGraphicsEllipseItem(QRectF(x - POINT_RADIUS, y - POINT_RADIUS, 2 * POINT_RADIUS, 2 * POINT_RADIUS))
    circle.setPen(pg.mkPen(CHART_COLORS['point_stroke'], width=1))
    circle.setBrush(pg.mkBrush(CHART_COLORS['point_fill']))
    layer.add(circle, 'point')
    layer.add(make_text_item(drawing.label, CHART_COLORS['text'], x=x + 8, y=y - 8, font_size=10),
              'point_label')
