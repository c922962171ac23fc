"""
Mode Render Pass

Draws price as candlesticks or as a line with point markers. Only ever touches
the candles and line layers.
"""

import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import QLineF, QRectF
from PyQt6.QtGui import QPainterPath
from PyQt6.QtWidgets import QGraphicsEllipseItem, QGraphicsLineItem, QGraphicsPathItem, QGraphicsRectItem

from k2_chart.utilities.logger import k2_logger

from .layers import CHART_COLORS, ChartContext
from .models import ChartMode
from .scales import LinearScale


DOT_RADIUS = 2
LINE_WIDTH = 1.5


def render_mode(context: ChartContext, mode: ChartMode, x_scale: LinearScale, band_width: float) -> int:
    """Clear this pass's layers and redraw price in the requested mode"""
    layers = context.layers
    layers.candles.clear()
    layers.line.clear()

    if mode == ChartMode.CANDLE:
        _draw_candles(context, x_scale, band_width)
    elif mode == ChartMode.LINE:
        _draw_line(context, x_scale)

    count = len(layers.candles) + len(layers.line)
    k2_logger.render_pass(f"mode:{mode.value}", count)
    return count


def _draw_candles(context: ChartContext, x_scale: LinearScale, band_width: float):
    candles = context.candles
    y = context.scales.y
    xs = np.atleast_1d(x_scale(candles.timestamps))
    y_open = y(candles.open)
    y_close = y(candles.close)
    y_high = y(candles.high)
    y_low = y(candles.low)

    no_pen = pg.mkPen(None)
    brushes = {False: pg.mkBrush(CHART_COLORS['bullish']), True: pg.mkBrush(CHART_COLORS['bearish'])}
    pens = {False: pg.mkPen(CHART_COLORS['bullish'], width=1), True: pg.mkPen(CHART_COLORS['bearish'], width=1)}

    for i, is_bearish in enumerate(candles.bearish):
        is_bearish = bool(is_bearish)
        x = float(xs[i])
        top = float(min(y_open[i], y_close[i]))
        body_height = float(abs(y_open[i] - y_close[i]))

        body = QGraphicsRectItem(QRectF(x - band_width / 2, top, band_width, body_height))
        body.setPen(no_pen)
        body.setBrush(brushes[is_bearish])
        context.layers.candles.add(body, 'body')

        wick = QGraphicsLineItem(x, float(y_high[i]), x, float(y_low[i]))
        wick.setPen(pens[is_bearish])
        context.layers.candles.add(wick, 'wick')


def _line_path(xs, ys) -> QPainterPath:
    path = QPainterPath()
    for i, (x, y) in enumerate(zip(xs, ys)):
        if i == 0:
            path.moveTo(float(x), float(y))
        else:
            path.lineTo(float(x), float(y))
    return path


def _draw_line(context: ChartContext, x_scale: LinearScale):
    candles = context.candles
    xs = np.atleast_1d(x_scale(candles.timestamps))
    ys = context.scales.y(candles.close)

    path_item = QGraphicsPathItem(_line_path(xs, ys))
    path_item.setPen(pg.mkPen(CHART_COLORS['line'], width=LINE_WIDTH))
    path_item.setBrush(pg.mkBrush(None))
    context.layers.line.add(path_item, 'path')

    no_pen = pg.mkPen(None)
    brush = pg.mkBrush(CHART_COLORS['line'])
    for x, y in zip(xs, ys):
        dot = QGraphicsEllipseItem(QRectF(float(x) - DOT_RADIUS, float(y) - DOT_RADIUS,
                                          2 * DOT_RADIUS, 2 * DOT_RADIUS))
        dot.setPen(no_pen)
        dot.setBrush(brush)
        context.layers.line.add(dot, 'dot')


def reposition_mode(context: ChartContext, x_scale: LinearScale, band_width: float):
    """Move price items to a rescaled time axis; y coordinates stay fixed"""
    layers = context.layers
    xs = np.atleast_1d(x_scale(context.candles.timestamps))

    for body, x in zip(layers.candles.items('body'), xs):
        rect = body.rect()
        body.setRect(QRectF(float(x) - band_width / 2, rect.y(), band_width, rect.height()))

    for wick, x in zip(layers.candles.items('wick'), xs):
        line = wick.line()
        wick.setLine(QLineF(float(x), line.y1(), float(x), line.y2()))

    for path_item in layers.line.items('path'):
        path_item.setPath(_line_path(xs, context.scales.y(context.candles.close)))

    for dot, x in zip(layers.line.items('dot'), xs):
        rect = dot.rect()
        dot.setRect(QRectF(float(x) - DOT_RADIUS, rect.y(), rect.width(), rect.height()))
