"""Tests for the static, mode and drawing render passes and their scheduling."""

import pytest

from k2_chart.pages.dashboard.widgets.chart.drawing_pass import render_drawings, render_preview
from k2_chart.pages.dashboard.widgets.chart.drawings import FibRetracement, HorizontalLine, Point, ToolId, TrendLine
from k2_chart.pages.dashboard.widgets.chart.layers import CHART_COLORS
from k2_chart.pages.dashboard.widgets.chart.models import ChartMode
from k2_chart.pages.dashboard.widgets.chart.scheduler import RenderPass, RenderScheduler


def static_snapshot(context):
    """Everything the static pass draws, as plain values."""
    layers = context.layers
    return {
        'x_labels': list(layers.x_axis.labels),
        'y_labels': list(layers.y_axis.labels),
        'grid': [(line.line().y1(), line.line().x2()) for line in layers.grid.items('grid_line')],
        'volume': [(r.x(), r.y(), r.width(), r.height())
                   for r in (bar.rect() for bar in layers.volume.items('bar'))],
    }


def draw(chart, tool, start, end):
    """Drive a full gesture through the widget in container coordinates."""
    margin = chart.margin
    chart.select_tool(tool)
    chart.handle_pointer_down(start[0] + margin.left, start[1] + margin.top)
    chart.handle_pointer_move(end[0] + margin.left, end[1] + margin.top)
    return chart.handle_pointer_up(end[0] + margin.left, end[1] + margin.top)


class TestStaticPass:
    """Layout, axes, grid, volume and last price label."""

    def test_plot_size_from_margins(self, chart):
        assert chart.context.width == 800 - 60 - 30
        assert chart.context.height == 500 - 20 - 30

    def test_one_volume_bar_per_candle(self, chart):
        bars = chart.context.layers.volume.items('bar')
        assert len(bars) == 100

    def test_volume_bar_geometry(self, chart, candles):
        scales = chart.context.scales
        bar = chart.context.layers.volume.items('bar')[10].rect()

        assert bar.x() == pytest.approx(scales.x(candles[10].timestamp) - scales.band_width / 2)
        assert bar.width() == pytest.approx(scales.band_width)
        assert bar.y() + bar.height() == pytest.approx(scales.height)

    def test_volume_colour_follows_direction(self, chart):
        bars = chart.context.layers.volume.items('bar')

        assert bars[0].brush().color().getRgb() == CHART_COLORS['volume_bullish']
        assert bars[1].brush().color().getRgb() == CHART_COLORS['volume_bearish']

    def test_axis_labels(self, chart):
        layers = chart.context.layers

        assert layers.y_axis.labels
        assert all(text.startswith("$") for text, _ in layers.y_axis.labels)
        assert layers.x_axis.labels
        assert all(0 <= pos <= chart.context.width for _, pos in layers.x_axis.labels)

    def test_grid_lines_at_price_ticks(self, chart):
        lines = chart.context.layers.grid.items('grid_line')
        assert len(lines) == len(chart.context.layers.y_axis.labels)

    def test_last_price_label(self, chart, candles):
        text = chart.context.layers.annotations.items('last_price_text')[0]
        assert text.text() == f"${candles[-1].close:.2f}"

    def test_layer_z_order(self, chart):
        layers = chart.context.layers
        order = [layers.grid, layers.volume, layers.candles, layers.line,
                 layers.drawings, layers.preview, layers.annotations]
        z_values = [layer.group.zValue() for layer in order]

        assert z_values == sorted(z_values)

    def test_empty_data_renders_nothing(self, chart):
        chart.set_data([])

        assert chart.context is None
        chart.set_chart_mode('line')
        chart.zoom_in()
        assert chart.context is None


class TestModePass:
    """Candlestick and line rendering."""

    def test_candle_mode(self, chart, candles):
        candles_layer = chart.context.layers.candles

        assert len(candles_layer.items('body')) == 100
        assert len(candles_layer.items('wick')) == 100
        assert len(chart.context.layers.line) == 0

        scales = chart.context.scales
        body = candles_layer.items('body')[1].rect()
        assert body.y() == pytest.approx(min(scales.y(candles[1].open), scales.y(candles[1].close)))
        assert body.height() == pytest.approx(abs(scales.y(candles[1].open) - scales.y(candles[1].close)))

    def test_body_colour_follows_direction(self, chart):
        bodies = chart.context.layers.candles.items('body')

        assert bodies[0].brush().color().getRgb()[:3] == CHART_COLORS['bullish']
        assert bodies[1].brush().color().getRgb()[:3] == CHART_COLORS['bearish']

    def test_wick_spans_high_low(self, chart, candles):
        scales = chart.context.scales
        wick = chart.context.layers.candles.items('wick')[3].line()

        assert wick.y1() == pytest.approx(scales.y(candles[3].high))
        assert wick.y2() == pytest.approx(scales.y(candles[3].low))

    def test_line_mode(self, chart):
        chart.set_chart_mode('line')
        line_layer = chart.context.layers.line

        assert len(line_layer.items('path')) == 1
        assert len(line_layer.items('dot')) == 100
        assert len(chart.context.layers.candles) == 0

    def test_mode_switch_leaves_static_layers_identical(self, chart):
        before = static_snapshot(chart.context)

        chart.set_chart_mode(ChartMode.LINE)
        chart.set_chart_mode(ChartMode.CANDLE)

        assert static_snapshot(chart.context) == before

    def test_mode_switch_leaves_drawings_alone(self, chart):
        draw(chart, ToolId.HORIZONTAL_LINE, (10, 40), (10, 40))
        drawing_item = chart.context.layers.drawings.items('horizontal')[0]

        chart.set_chart_mode('line')

        assert chart.context.layers.drawings.items('horizontal') == [drawing_item]


class TestDrawingPass:
    """Persisted drawings layer and transient preview layer."""

    def test_trendline(self, chart):
        draw(chart, ToolId.TRENDLINE, (10, 20), (200, 150))
        line = chart.context.layers.drawings.items('trendline')[0].line()

        assert (line.x1(), line.y1(), line.x2(), line.y2()) == pytest.approx((10, 20, 200, 150))

    def test_horizontal_line_spans_plot(self, chart):
        draw(chart, ToolId.HORIZONTAL_LINE, (120, 80), (300, 200))
        line = chart.context.layers.drawings.items('horizontal')[0].line()

        assert (line.x1(), line.x2()) == (0, chart.context.width)
        assert line.y1() == line.y2() == 80

    @pytest.mark.parametrize("start_y, end_y", [(300, 100), (100, 300)])
    def test_fib_guides_sorted(self, chart, start_y, end_y):
        draw(chart, ToolId.FIB_RETRACEMENT, (50, start_y), (200, end_y))
        layer = chart.context.layers.drawings
        guides = [item.line().y1() for item in layer.items('fib_guide')]
        labels = [item.text() for item in layer.items('fib_label')]

        assert len(guides) == 7
        assert guides[0] == pytest.approx(100)
        assert guides[-1] == pytest.approx(300)
        assert labels[0] == "0.0%"
        assert labels[-1] == "100.0%"

    def test_fib_labels_are_white(self, chart):
        draw(chart, ToolId.FIB_RETRACEMENT, (50, 300), (200, 100))
        labels = chart.context.layers.drawings.items('fib_label')

        assert all(item.brush().color().getRgb()[:3] == CHART_COLORS['text'] for item in labels)
        assert all(item.font().pixelSize() == 10 for item in labels)

    def test_point_marker(self, chart, candles):
        x = 5 * chart.context.width / 99
        drawing = draw(chart, ToolId.PENCIL, (x, 100), (x + 50, 150))
        layer = chart.context.layers.drawings

        assert drawing.data_index == 5
        assert drawing.timestamp == candles[5].timestamp
        assert len(layer.items('point')) == 1
        assert layer.items('point_label')[0].text() == drawing.label
        assert layer.items('point_label')[0].font().pixelSize() == 10

    def test_clear_all_empties_store_and_layer(self, chart):
        draw(chart, ToolId.TRENDLINE, (10, 20), (200, 150))
        draw(chart, ToolId.HORIZONTAL_LINE, (10, 60), (10, 60))
        assert len(chart.context.layers.drawings) == 2

        chart.clear_drawings()

        assert chart.drawings == ()
        assert len(chart.context.layers.drawings) == 0

    def test_preview_replaces_instead_of_accumulating(self, chart):
        margin = chart.margin
        chart.select_tool(ToolId.TRENDLINE)
        chart.handle_pointer_down(margin.left + 10, margin.top + 10)
        for x in range(20, 200, 20):
            chart.handle_pointer_move(margin.left + x, margin.top + 50)
            assert len(chart.context.layers.preview) == 1

        assert len(chart.context.layers.drawings) == 0
        chart.handle_pointer_up()
        assert len(chart.context.layers.preview) == 0
        assert len(chart.context.layers.drawings) == 1

    def test_drawings_follow_zoom(self, chart):
        draw(chart, ToolId.TRENDLINE, (100, 20), (200, 150))
        chart.zoom_in()

        transform = chart.transform.transform
        line = chart.context.layers.drawings.items('trendline')[0].line()
        assert line.x1() == pytest.approx(transform.apply_x(100))
        assert line.x2() == pytest.approx(transform.apply_x(200))
        assert chart.drawings[0] == TrendLine(start=Point(100, 20), end=Point(200, 150))

    def test_render_functions_directly(self, chart):
        context = chart.context
        count = render_drawings(context, [HorizontalLine(y=10), FibRetracement(Point(0, 0), Point(1, 70))])
        assert count == 1 + 14

        assert render_preview(context, None) == 0
        assert render_drawings(context, []) == 0

    def test_unknown_drawing_type_raises(self, chart):
        with pytest.raises(TypeError):
            render_drawings(chart.context, [object()])


class TestRenderIndependence:
    """Each change re-runs only its own pass."""

    def counts(self, chart):
        return dict(chart.scheduler.render_counts)

    def test_mode_change_only_runs_mode_pass(self, chart):
        before = self.counts(chart)
        chart.set_chart_mode('line')
        after = self.counts(chart)

        assert after[RenderPass.MODE] == before[RenderPass.MODE] + 1
        assert after[RenderPass.DATA] == before[RenderPass.DATA]
        assert after[RenderPass.DRAWINGS] == before[RenderPass.DRAWINGS]

    def test_gesture_moves_only_run_preview_pass(self, chart):
        margin = chart.margin
        chart.select_tool(ToolId.TRENDLINE)
        chart.handle_pointer_down(margin.left + 10, margin.top + 10)
        before = self.counts(chart)

        for x in range(20, 120, 10):
            chart.handle_pointer_move(margin.left + x, margin.top + 40)
        after = self.counts(chart)

        assert after[RenderPass.GESTURE] == before[RenderPass.GESTURE] + 10
        assert after[RenderPass.DATA] == before[RenderPass.DATA]
        assert after[RenderPass.MODE] == before[RenderPass.MODE]
        assert after[RenderPass.DRAWINGS] == before[RenderPass.DRAWINGS]

    def test_commit_runs_drawings_pass_not_static(self, chart):
        before = self.counts(chart)
        draw(chart, ToolId.HORIZONTAL_LINE, (10, 60), (10, 60))
        after = self.counts(chart)

        assert after[RenderPass.DRAWINGS] == before[RenderPass.DRAWINGS] + 1
        assert after[RenderPass.DATA] == before[RenderPass.DATA]
        assert after[RenderPass.MODE] == before[RenderPass.MODE]

    def test_data_change_runs_every_pass_once(self, chart, make_candles):
        before = self.counts(chart)
        chart.set_data(make_candles(50))
        after = self.counts(chart)

        assert all(after[p] == before[p] + 1 for p in RenderPass)


class TestRenderScheduler:
    """Dirty flag bookkeeping."""

    def make(self, calls, failing=()):
        def renderer(render_pass):
            def run():
                calls.append(render_pass)
                if render_pass in failing:
                    raise RuntimeError("boom")
            return run
        return RenderScheduler({p: renderer(p) for p in RenderPass})

    def test_data_marks_everything_in_order(self):
        calls = []
        scheduler = self.make(calls)
        scheduler.mark_dirty(RenderPass.DATA)

        assert calls == [RenderPass.DATA, RenderPass.MODE, RenderPass.DRAWINGS, RenderPass.GESTURE]

    def test_other_passes_do_not_cascade(self):
        calls = []
        scheduler = self.make(calls)
        scheduler.mark_dirty(RenderPass.DRAWINGS)
        scheduler.mark_dirty(RenderPass.MODE)

        assert calls == [RenderPass.DRAWINGS, RenderPass.MODE]

    def test_batch_coalesces(self):
        calls = []
        scheduler = self.make(calls)
        with scheduler.batch():
            scheduler.mark_dirty(RenderPass.GESTURE)
            scheduler.mark_dirty(RenderPass.GESTURE)
            scheduler.mark_dirty(RenderPass.MODE)
            assert calls == []
            assert scheduler.is_dirty(RenderPass.MODE)

        assert calls == [RenderPass.MODE, RenderPass.GESTURE]
        assert scheduler.render_counts[RenderPass.GESTURE] == 1

    def test_failing_pass_does_not_stop_others(self):
        calls = []
        scheduler = self.make(calls, failing=(RenderPass.MODE,))
        ran = scheduler.flush()
        assert ran == []

        scheduler.mark_dirty(RenderPass.DATA)

        assert calls == [RenderPass.DATA, RenderPass.MODE, RenderPass.DRAWINGS, RenderPass.GESTURE]
        assert not any(scheduler.is_dirty(p) for p in RenderPass)
