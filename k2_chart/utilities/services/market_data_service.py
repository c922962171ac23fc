"""
Market Data Service

Simulated OHLCV source for the dashboard: a seeded mock history generator and
a timer driven live feed that keeps updating the most recent candle, and a
synthetic order book around the last price.
"""

import math
import time
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np
from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from k2_chart.pages.dashboard.widgets.chart.models import Candle, timeframe_interval_ms
from k2_chart.utilities.config import chart_config
from k2_chart.utilities.logger import k2_logger, log_performance


@dataclass(frozen=True)
class SymbolProfile:
    base_price: float
    volatility: float
    trend: float


SYMBOL_PROFILES = {
    'AAPL': SymbolProfile(180, 0.015, 0.001),
    'MSFT': SymbolProfile(350, 0.018, 0.002),
    'GOOGL': SymbolProfile(140, 0.02, 0.0005),
    'AMZN': SymbolProfile(170, 0.025, 0.001),
    'META': SymbolProfile(450, 0.03, -0.0005),
    'TSLA': SymbolProfile(220, 0.04, 0.001),
    'NVDA': SymbolProfile(800, 0.035, 0.003),
    'JPM': SymbolProfile(180, 0.012, 0.0008),
}
DEFAULT_PROFILE = SymbolProfile(150, 0.02, 0.0)
SYMBOLS = tuple(SYMBOL_PROFILES.keys())

TICK_VOLATILITY = 0.005
ORDER_BOOK_STEP = 0.1


def symbol_profile(symbol: str) -> SymbolProfile:
    return SYMBOL_PROFILES.get(symbol, DEFAULT_PROFILE)


def _now_ms() -> int:
    return int(time.time() * 1000)


@log_performance
def generate_mock_data(symbol: str, timeframe: str, count: int = 100,
                       rng: Optional[np.random.Generator] = None,
                       now_ms: Optional[int] = None) -> List[Candle]:
    """Random walk with alternating trend cycles, one candle per interval ending at now"""
    if count <= 0:
        return []

    rng = rng if rng is not None else np.random.default_rng()
    now_ms = now_ms if now_ms is not None else _now_ms()
    interval = timeframe_interval_ms(timeframe)
    profile = symbol_profile(symbol)

    cycles = int(rng.integers(2, 5))
    cycle_length = max(1, count // cycles)

    candles = []
    last_close = float(profile.base_price)
    for i in range(count - 1, -1, -1):
        cycle_position = (i // cycle_length) % cycles
        cycle_trend = profile.trend if cycle_position % 2 == 0 else -profile.trend

        change_pct = rng.uniform(-1, 1) * profile.volatility + cycle_trend
        open_ = last_close
        close = open_ * (1 + change_pct)

        high_low_range = open_ * profile.volatility * rng.uniform(0.5, 1.0)
        high = max(open_, close) + rng.uniform(0, 1) * high_low_range
        low = min(open_, close) - rng.uniform(0, 1) * high_low_range

        price_change = abs(close - open_) / open_
        volume = math.floor(int(rng.integers(5000, 10000)) * (1 + price_change * 10))

        candles.append(Candle(timestamp=now_ms - i * interval, open=open_, high=high,
                              low=low, close=close, volume=float(volume)))
        last_close = close

    k2_logger.data_processing(f"Generated mock data for {symbol} {timeframe}", len(candles))
    return candles


def next_tick(candles: List[Candle], timeframe: str,
              rng: Optional[np.random.Generator] = None,
              new_candle_probability: float = 0.1) -> List[Candle]:
    """Return a new list with the last candle updated, or one candle appended"""
    if not candles:
        return []

    rng = rng if rng is not None else np.random.default_rng()
    last = candles[-1]

    change_pct = rng.uniform(-0.5, 0.5) * TICK_VOLATILITY
    open_ = last.close
    close = open_ * (1 + change_pct)
    high_low_range = open_ * TICK_VOLATILITY
    high = max(open_, close) + rng.uniform(0, 1) * high_low_range
    low = min(open_, close) - rng.uniform(0, 1) * high_low_range

    if rng.uniform(0, 1) < new_candle_probability:
        volume = float(rng.integers(500, 5500))
        fresh = Candle(timestamp=last.timestamp + timeframe_interval_ms(timeframe),
                       open=open_, high=high, low=low, close=close, volume=volume)
        return list(candles) + [fresh]

    updated = replace(
        last,
        close=close,
        high=max(last.high, high),
        low=min(last.low, low),
        volume=last.volume + float(rng.integers(10, 500)),
    )
    return list(candles[:-1]) + [updated]


@dataclass(frozen=True)
class OrderBookLevel:
    price: float
    size: int


@dataclass(frozen=True)
class OrderBook:
    asks: Tuple[OrderBookLevel, ...]  # ascending, all above last price
    bids: Tuple[OrderBookLevel, ...]  # descending, all below last price

    @property
    def spread(self) -> float:
        if not self.asks or not self.bids:
            return 0.0
        return self.asks[0].price - self.bids[0].price


def generate_order_book(last_price: float, depth: int = 5,
                        rng: Optional[np.random.Generator] = None) -> OrderBook:
    """Synthetic depth around last_price, level i sits between i and i+1 steps away"""
    if depth <= 0:
        return OrderBook(asks=(), bids=())

    rng = rng if rng is not None else np.random.default_rng()

    def side(sign: int) -> List[OrderBookLevel]:
        levels = []
        for i in range(depth):
            offset = (rng.uniform(0, 1) + i) * ORDER_BOOK_STEP
            # strictly off the last price
            offset = max(offset, 1e-6)
            levels.append(OrderBookLevel(price=last_price + sign * offset, size=int(rng.integers(100, 600))))
        return levels

    asks = sorted(side(1), key=lambda level: level.price)
    bids = sorted(side(-1), key=lambda level: level.price, reverse=True)
    return OrderBook(asks=tuple(asks), bids=tuple(bids))


class LiveFeed(QObject):
    """Pushes a replacement candle list on every timer tick"""

    candles_updated = pyqtSignal(list)
    connection_changed = pyqtSignal(bool)

    def __init__(self, interval_ms: Optional[int] = None, count: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None, parent=None):
        super().__init__(parent)
        self.count = count if count is not None else chart_config.candle_count
        self.rng = rng if rng is not None else np.random.default_rng()
        self.symbol = None
        self.timeframe = None
        self.candles: List[Candle] = []

        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms if interval_ms is not None else chart_config.feed_interval_ms)
        self.timer.timeout.connect(self.tick)

    @property
    def is_running(self) -> bool:
        return self.timer.isActive()

    def start(self, symbol: str, timeframe: str) -> List[Candle]:
        """Generate a fresh history for symbol/timeframe and start streaming"""
        self.symbol = symbol
        self.timeframe = timeframe
        self.candles = generate_mock_data(symbol, timeframe, self.count, rng=self.rng)
        self.candles_updated.emit(list(self.candles))
        if not self.timer.isActive():
            self.timer.start()
            self.connection_changed.emit(True)
            k2_logger.info(f"Live feed started for {symbol} {timeframe}", "FEED")
        return self.candles

    def stop(self):
        if self.timer.isActive():
            self.timer.stop()
            self.connection_changed.emit(False)
            k2_logger.info("Live feed stopped", "FEED")

    def tick(self):
        try:
            if not self.candles:
                return
            self.candles = next_tick(self.candles, self.timeframe, rng=self.rng)
            self.candles_updated.emit(list(self.candles))
        except Exception as e:
            k2_logger.error(f"Live feed tick failed: {str(e)}", "FEED")
