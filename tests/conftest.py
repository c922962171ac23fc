"""Shared fixtures: offscreen Qt, deterministic candles and a ready chart."""

import os

# must be set before Qt or the k2_chart logger are imported
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ["K2_CHART_LOG_TO_FILE"] = "0"
os.environ["K2_CHART_SHOW_BANNER"] = "0"

import pyqtgraph as pg
import pytest

from k2_chart.pages.dashboard.widgets.chart.models import DAY_MS, Candle, CandleSeries


START_TS = 1_700_000_000_000


def build_candles(count=100, start=START_TS, interval=DAY_MS, base=100.0):
    """Zig-zag series: even candles bullish, odd candles bearish."""
    candles = []
    for i in range(count):
        open_ = base + i * 0.5
        close = open_ + 1.0 if i % 2 == 0 else open_ - 1.0
        candles.append(Candle(
            timestamp=start + i * interval,
            open=open_,
            high=max(open_, close) + 0.5,
            low=min(open_, close) - 0.5,
            close=close,
            volume=1000.0 + 10 * i,
        ))
    return candles


@pytest.fixture(scope="session")
def qapp():
    return pg.mkQApp()


@pytest.fixture
def make_candles():
    return build_candles


@pytest.fixture
def candles():
    return build_candles()


@pytest.fixture
def series(candles):
    return CandleSeries.from_candles(candles)


@pytest.fixture
def chart(qapp, candles):
    """StockChartWidget at the default 800x500 container with 100 daily candles."""
    from k2_chart.pages.dashboard.widgets.chart import StockChartWidget

    widget = StockChartWidget()
    widget.set_data(candles, symbol="TEST", timeframe="1D")
    yield widget
    widget.cleanup()
    widget.deleteLater()
