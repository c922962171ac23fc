"""Tests for the view transform and the transform controller."""

import pytest

from k2_chart.pages.dashboard.widgets.chart.transform import (IDENTITY, WHEEL_ZOOM_STEP, ZOOM_SCALE_EXTENT,
                                                              TransformController, ViewTransform)
from k2_chart.pages.dashboard.widgets.chart.scales import LinearScale
from k2_chart.pages.dashboard.widgets.chart.scheduler import RenderPass


class TestViewTransform:
    """Pure transform arithmetic."""

    def test_identity_rescale_returns_base_scale(self):
        base = LinearScale((0, 1000), (0, 500))
        assert IDENTITY.rescale_x(base) is base

    def test_rescale_matches_apply(self):
        base = LinearScale((0, 1000), (0, 500))
        transform = ViewTransform(x=-40.0, k=2.0)
        rescaled = transform.rescale_x(base)

        for value in (0, 250, 600, 1000):
            assert rescaled(value) == pytest.approx(transform.apply_x(base(value)))
        assert base.domain == (0.0, 1000.0)

    def test_scale_by_keeps_anchor_fixed(self):
        transform = ViewTransform(x=10.0, k=1.5).scale_by(2.0, anchor=200.0)
        previous = ViewTransform(x=10.0, k=1.5)

        assert transform.k == pytest.approx(3.0)
        assert transform.apply_x(previous.invert_x(200.0)) == pytest.approx(200.0)

    def test_scale_by_clamps_silently(self):
        assert IDENTITY.scale_by(100, anchor=0).k == ZOOM_SCALE_EXTENT[1]
        assert IDENTITY.scale_by(0.01, anchor=0).k == ZOOM_SCALE_EXTENT[0]

    def test_scale_by_at_bound_returns_same_transform(self):
        at_max = ViewTransform(x=-50.0, k=10.0)
        assert at_max.scale_by(1.2, anchor=300) is at_max

    def test_invert_is_inverse_of_apply(self):
        transform = ViewTransform(x=33.0, k=4.0)
        assert transform.invert_x(transform.apply_x(17.5)) == pytest.approx(17.5)

    def test_translate_by(self):
        assert ViewTransform(x=5.0, k=2.0).translate_by(10) == ViewTransform(x=15.0, k=2.0)


class TestTransformController:
    """Zoom commands, clamping and reset on a live chart."""

    def test_zoom_in_and_out_factors(self, chart):
        chart.zoom_in()
        assert chart.transform.transform.k == pytest.approx(1.2)

        chart.zoom_out()
        assert chart.transform.transform.k == pytest.approx(0.96)

    def test_zoom_is_anchored_at_plot_centre(self, chart):
        centre = chart.context.width / 2
        chart.zoom_in()
        assert chart.transform.transform.apply_x(centre) == pytest.approx(centre)

    def test_repeated_zoom_in_never_exceeds_ten(self, chart):
        for _ in range(50):
            chart.zoom_in()
            assert chart.transform.transform.k <= 10
        assert chart.transform.transform.k == 10

    def test_repeated_zoom_out_never_drops_below_half(self, chart):
        for _ in range(50):
            chart.zoom_out()
            assert chart.transform.transform.k >= 0.5
        assert chart.transform.transform.k == 0.5

    def test_reset_restores_exact_base_scale(self, chart):
        for action in (chart.zoom_in, chart.zoom_in, chart.zoom_out, chart.zoom_in) * 5:
            action()
        chart.transform.begin_pan(100)
        chart.transform.pan_to(180)
        chart.transform.end_pan()

        chart.reset_zoom()

        assert chart.transform.transform == IDENTITY
        assert chart.transform.effective_x_scale() is chart.context.scales.x

    def test_reset_restores_volume_bar_positions(self, chart):
        bars = chart.context.layers.volume.items('bar')

        def geometry():
            return [b.rect().x() for b in bars] + [b.rect().width() for b in bars]

        before = geometry()
        chart.zoom_in()
        chart.zoom_in()
        moved = geometry()
        chart.reset_zoom()
        after = geometry()

        assert moved != before
        assert after == pytest.approx(before)

    def test_zoom_scales_band_width_and_keeps_y(self, chart):
        band = chart.context.scales.band_width
        bodies = chart.context.layers.candles.items('body')
        ys = [(b.rect().y(), b.rect().height()) for b in bodies]

        chart.zoom_in()

        assert chart.transform.effective_band_width() == pytest.approx(band * 1.2)
        assert all(b.rect().width() == pytest.approx(band * 1.2) for b in bodies)
        assert [(b.rect().y(), b.rect().height()) for b in bodies] == ys

    def test_zoom_never_reruns_scale_engine(self, chart):
        scales = chart.context.scales
        data_runs = chart.scheduler.render_counts[RenderPass.DATA]

        chart.zoom_in()
        chart.zoom_out()

        assert chart.context.scales is scales
        assert chart.scheduler.render_counts[RenderPass.DATA] == data_runs

    def test_wheel_zoom_uses_pointer_anchor(self, chart):
        margin_left = chart.margin.left
        chart.handle_wheel(120, margin_left + 100)

        transform = chart.transform.transform
        assert transform.k == pytest.approx(2 ** WHEEL_ZOOM_STEP)
        assert transform.apply_x(100) == pytest.approx(100)

    def test_transform_survives_data_rebuild(self, chart, make_candles):
        chart.zoom_in()
        chart.set_data(make_candles(60))

        assert chart.transform.transform.k == pytest.approx(1.2)
        band = chart.context.scales.band_width
        bars = chart.context.layers.volume.items('bar')
        assert all(b.rect().width() == pytest.approx(band * 1.2) for b in bars)

    def test_transform_changed_signal(self, qapp):
        controller = TransformController()
        seen = []
        controller.transform_changed.connect(seen.append)

        controller.zoom_in()
        controller.reset()
        controller.reset()

        assert len(seen) == 2
        assert seen[-1] == IDENTITY
