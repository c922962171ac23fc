"""Tests for the scale engine."""

from datetime import datetime

import numpy as np
import pytest

from k2_chart.pages.dashboard.widgets.chart.models import HOUR_MS, CandleSeries
from k2_chart.pages.dashboard.widgets.chart.scales import (LinearScale, TimeScale, compute_scales,
                                                           nice_tick_step)


class TestComputeScales:
    """Domains, ranges and band width derived from a candle window."""

    def test_price_domain_padding(self, series):
        """Price domain is [0.999 * min(low), 1.001 * max(high)] mapped to an inverted range."""
        scales = compute_scales(series, 710, 450)

        low, high = scales.y.domain
        assert low == pytest.approx(0.999 * series.low.min())
        assert high == pytest.approx(1.001 * series.high.max())
        assert scales.y.range == (450.0, 0.0)

        min_px = scales.y(series.low.min())
        max_px = scales.y(series.high.max())
        assert 0 <= min_px <= 450
        assert 0 <= max_px <= 450
        assert max_px < min_px

    def test_time_domain_padding(self, series):
        scales = compute_scales(series, 710, 450)
        ts_min, ts_max = series.timestamps.min(), series.timestamps.max()
        span = ts_max - ts_min

        assert scales.x.domain == pytest.approx((ts_min - 0.1 * span, ts_max + 0.1 * span))
        assert scales.x.range == (0.0, 710.0)

    def test_volume_scale_and_band_width(self, series):
        scales = compute_scales(series, 710, 450)

        assert scales.volume.domain == pytest.approx((0.0, 1.1 * series.volume.max()))
        assert scales.volume.range == pytest.approx((450.0, 405.0))
        assert scales.band_width == pytest.approx(0.8 * 710 / 100)
        assert scales.count == 100

    def test_empty_series_yields_nothing(self):
        assert compute_scales(CandleSeries.empty(), 710, 450) is None

    @pytest.mark.parametrize("width, height", [(0, 450), (710, 0), (-10, 450)])
    def test_non_positive_plot_yields_nothing(self, series, width, height):
        assert compute_scales(series, width, height) is None

    def test_recompute_is_idempotent(self, series):
        first = compute_scales(series, 710, 450)
        second = compute_scales(series, 710, 450)

        assert first.x == second.x
        assert first.y == second.y
        assert first.volume == second.volume
        assert first.band_width == second.band_width

    def test_single_candle(self, make_candles):
        scales = compute_scales(CandleSeries.from_candles(make_candles(1)), 710, 450)

        assert scales.band_width == pytest.approx(0.8 * 710)
        # zero time span collapses onto the middle of the plot
        assert scales.x(scales.x.domain[0]) == pytest.approx(355.0)


class TestLinearScale:
    """Continuous invertible mapping."""

    def test_maps_scalars_and_arrays(self):
        scale = LinearScale((0, 100), (0, 500))

        assert scale(50) == pytest.approx(250.0)
        assert isinstance(scale(50), float)
        np.testing.assert_allclose(scale(np.array([0, 100])), [0.0, 500.0])

    def test_invert(self):
        scale = LinearScale((10, 20), (300, 0))

        assert scale.invert(150) == pytest.approx(15.0)
        assert scale.invert(scale(12.5)) == pytest.approx(12.5)

    def test_degenerate_domain_maps_to_midpoint(self):
        scale = LinearScale((5, 5), (0, 100))

        assert scale(5) == 50.0
        np.testing.assert_allclose(scale(np.array([1, 2, 3])), [50.0, 50.0, 50.0])

    def test_with_domain_keeps_range(self):
        scale = LinearScale((0, 1), (0, 100))
        other = scale.with_domain((0, 2))

        assert other.range == scale.range
        assert other.domain == (0.0, 2.0)
        assert scale.domain == (0.0, 1.0)

    def test_nice_ticks(self):
        assert LinearScale((0, 100), (0, 1)).ticks(10) == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert LinearScale((0.3, 1.1), (0, 1)).ticks(4) == [0.4, 0.6, 0.8, 1.0]

    def test_nice_tick_step(self):
        assert nice_tick_step(0, 100, 10) == 10
        assert nice_tick_step(0, 1, 5) == 0.2
        assert nice_tick_step(0, 0, 10) == 0.0


class TestTimeScale:
    """Calendar aware ticks."""

    def test_daily_window_ticks_inside_domain(self, series):
        scale = compute_scales(series, 710, 450).x
        ticks = scale.ticks(10)
        lo, hi = scale.domain

        assert ticks
        assert ticks == sorted(ticks)
        assert all(lo <= t <= hi for t in ticks)

    def test_hourly_ticks_are_an_hour_apart(self):
        start = datetime(2024, 1, 15, 9, 20).timestamp() * 1000
        scale = TimeScale((start, start + 10 * HOUR_MS), (0, 800))
        ticks = scale.ticks(10)

        assert len(ticks) >= 9
        assert all(b - a == pytest.approx(HOUR_MS) for a, b in zip(ticks, ticks[1:]))
        assert datetime.fromtimestamp(ticks[0] / 1000).minute == 0

    def test_degenerate_domain(self):
        assert TimeScale((1000, 1000), (0, 100)).ticks(10) == [1000]
