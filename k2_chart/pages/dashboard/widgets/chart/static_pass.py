"""
Static Render Pass

Builds the chart's structural layout (margins, clip region, axes, layers) and
draws the grid, volume bars and last-price label. Replaces the whole visual
tree on every data, timeframe or container size change.
"""

from typing import List, Optional, Tuple

import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import QRectF
from PyQt6.QtGui import QPainterPath
from PyQt6.QtWidgets import QGraphicsLineItem, QGraphicsPathItem, QGraphicsRectItem

from k2_chart.utilities.logger import k2_logger, log_performance

from .layers import (CHART_COLORS, CHART_MARGIN, ChartContext, Margin, create_layers,
                     dispose_context, make_text_item, plot_size)
from .models import CandleSeries
from .scales import DEFAULT_TICK_COUNT, LinearScale, compute_scales, format_price, format_time_tick


LAST_PRICE_BOX = {'width': 70, 'height': 24, 'top': 10, 'radius': 4}


def time_axis_labels(x_scale: LinearScale, timeframe: str, width: float,
                     count: int = DEFAULT_TICK_COUNT) -> List[Tuple[str, float]]:
    labels = []
    for tick in x_scale.ticks(count):
        pos = float(x_scale(tick))
        if 0 <= pos <= width:
            labels.append((format_time_tick(tick, timeframe), pos))
    return labels


def price_axis_labels(y_scale: LinearScale, count: int = DEFAULT_TICK_COUNT) -> List[Tuple[str, float]]:
    return [(format_price(tick), float(y_scale(tick))) for tick in y_scale.ticks(count)]


@log_performance
def build_chart_context(scene, candles: CandleSeries, timeframe: str,
                        container_size: Tuple[float, float],
                        previous: Optional[ChartContext] = None,
                        margin: Margin = CHART_MARGIN) -> Optional[ChartContext]:
    """Tear down the previous visual tree and build a new one.

    Returns None, leaving the scene empty, when there are no candles or the
    container is too small to hold a plot.
    """
    dispose_context(previous)

    width, height = plot_size(container_size, margin)
    scales = compute_scales(candles, width, height)
    if scales is None:
        k2_logger.debug(f"Static pass skipped: {len(candles)} candles, plot {width}x{height}", "CHART")
        return None

    root = pg.ItemGroup()
    if scene is not None:
        scene.addItem(root)

    layers = create_layers(root, width, height, margin)
    context = ChartContext(
        root=root,
        layers=layers,
        scales=scales,
        candles=candles,
        timeframe=timeframe,
        margin=margin,
        width=width,
        height=height,
    )

    layers.x_axis.setLabels(time_axis_labels(scales.x, timeframe, width))
    layers.y_axis.setLabels(price_axis_labels(scales.y))
    _draw_grid(context)
    _draw_volume(context)
    _draw_last_price(context)

    k2_logger.render_pass("static", len(layers.grid) + len(layers.volume) + len(layers.annotations))
    return context


def _draw_grid(context: ChartContext):
    pen = pg.mkPen(CHART_COLORS['grid'], width=1)
    for tick in context.scales.y.ticks(DEFAULT_TICK_COUNT):
        y = float(context.scales.y(tick))
        line = QGraphicsLineItem(0, y, context.width, y)
        line.setPen(pen)
        context.layers.grid.add(line, 'grid_line')


def _draw_volume(context: ChartContext):
    scales = context.scales
    candles = context.candles
    band = scales.band_width
    xs = scales.x(candles.timestamps) - band / 2
    ys = scales.volume(candles.volume)
    heights = scales.height - ys

    no_pen = pg.mkPen(None)
    bullish = pg.mkBrush(CHART_COLORS['volume_bullish'])
    bearish = pg.mkBrush(CHART_COLORS['volume_bearish'])
    for x, y, h, is_bearish in zip(xs, ys, heights, candles.bearish):
        bar = QGraphicsRectItem(QRectF(float(x), float(y), band, float(h)))
        bar.setPen(no_pen)
        bar.setBrush(bearish if is_bearish else bullish)
        context.layers.volume.add(bar, 'bar')


def _draw_last_price(context: ChartContext):
    last = context.candles.last
    if last is None:
        return

    box = LAST_PRICE_BOX
    left = context.width - box['width']
    path = QPainterPath()
    path.addRoundedRect(QRectF(left, box['top'], box['width'], box['height']), box['radius'], box['radius'])
    background = QGraphicsPathItem(path)
    background.setPen(pg.mkPen(None))
    background.setBrush(pg.mkBrush(CHART_COLORS['label_box']))
    context.layers.annotations.add(background, 'last_price_box')

    color = CHART_COLORS['bullish'] if last.close > last.open else CHART_COLORS['bearish']
    label = make_text_item(format_price(last.close), color,
                           x=context.width - box['width'] / 2, y=box['top'] + 16,
                           font_size=12, anchor='middle', bold=True)
    context.layers.annotations.add(label, 'last_price_text')


def reposition_static(context: ChartContext, x_scale: LinearScale, band_width: float):
    """Re-apply a rescaled time axis: x-axis ticks and volume bar x/width only"""
    context.layers.x_axis.setLabels(time_axis_labels(x_scale, context.timeframe, context.width))

    xs = x_scale(context.candles.timestamps) - band_width / 2
    for bar, x in zip(context.layers.volume.items('bar'), np.atleast_1d(xs)):
        rect = bar.rect()
        bar.setRect(QRectF(float(x), rect.y(), band_width, rect.height()))
