"""
Scale Engine

Derives the time->pixel, price->pixel and volume->pixel mappings and the candle
band width from the current candle window and plot size.
"""

import math
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .models import CandleSeries, MINUTE_MS, HOUR_MS, DAY_MS


TIME_PADDING = 0.1
PRICE_PADDING_LOW = 0.999
PRICE_PADDING_HIGH = 1.001
VOLUME_HEADROOM = 1.1
VOLUME_HEIGHT_RATIO = 0.1
BAND_FILL_RATIO = 0.8
DEFAULT_TICK_COUNT = 10

SECOND_MS = 1000
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30 * DAY_MS
YEAR_MS = 365 * DAY_MS

# (approximate duration, pandas frequency) sorted by duration
TIME_TICK_INTERVALS = [
    (SECOND_MS, '1s'),
    (5 * SECOND_MS, '5s'),
    (15 * SECOND_MS, '15s'),
    (30 * SECOND_MS, '30s'),
    (MINUTE_MS, '1min'),
    (5 * MINUTE_MS, '5min'),
    (15 * MINUTE_MS, '15min'),
    (30 * MINUTE_MS, '30min'),
    (HOUR_MS, '1h'),
    (3 * HOUR_MS, '3h'),
    (6 * HOUR_MS, '6h'),
    (12 * HOUR_MS, '12h'),
    (DAY_MS, '1D'),
    (2 * DAY_MS, '2D'),
    (WEEK_MS, 'W-SUN'),
    (MONTH_MS, 'MS'),
    (3 * MONTH_MS, 'QS'),
    (YEAR_MS, 'YS'),
]
ANCHORED_FREQUENCIES = frozenset(['W-SUN', 'MS', 'QS'])
_INTERVAL_DURATIONS = [duration for duration, _ in TIME_TICK_INTERVALS]

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def nice_tick_step(start: float, stop: float, count: int) -> float:
    """1, 2 or 5 times a power of ten, close to (stop - start) / count"""
    span = abs(stop - start)
    if count <= 0 or span == 0 or not math.isfinite(span):
        return 0.0
    raw_step = span / count
    power = math.floor(math.log10(raw_step))
    error = raw_step / (10 ** power)
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    return factor * (10 ** power)


class LinearScale:
    """Continuous, invertible mapping between a data domain and a pixel range"""

    def __init__(self, domain: Sequence[float], range_: Sequence[float]):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, value):
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            mid = (r0 + r1) / 2
            if np.ndim(value):
                return np.full(np.shape(value), mid, dtype=np.float64)
            return mid
        t = (np.asarray(value, dtype=np.float64) - d0) / (d1 - d0)
        result = r0 + t * (r1 - r0)
        if np.ndim(result) == 0:
            return float(result)
        return result

    def invert(self, pixel):
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            if np.ndim(pixel):
                return np.full(np.shape(pixel), d0, dtype=np.float64)
            return d0
        t = (np.asarray(pixel, dtype=np.float64) - r0) / (r1 - r0)
        result = d0 + t * (d1 - d0)
        if np.ndim(result) == 0:
            return float(result)
        return result

    def with_domain(self, domain: Sequence[float]) -> 'LinearScale':
        return type(self)(domain, self.range)

    def copy(self) -> 'LinearScale':
        return type(self)(self.domain, self.range)

    def ticks(self, count: int = DEFAULT_TICK_COUNT) -> List[float]:
        lo, hi = sorted(self.domain)
        step = nice_tick_step(lo, hi, count)
        if step == 0:
            return [lo] if lo == hi else []
        decimals = max(0, -int(math.floor(math.log10(step))))
        first = math.ceil(lo / step)
        last = math.floor(hi / step)
        return [round(i * step, decimals) for i in range(first, last + 1)]

    def __eq__(self, other):
        return type(self) is type(other) and self.domain == other.domain and self.range == other.range

    def __repr__(self):
        return f"{type(self).__name__}(domain={self.domain}, range={self.range})"


class TimeScale(LinearScale):
    """Linear scale over epoch milliseconds with calendar aware ticks"""

    def ticks(self, count: int = DEFAULT_TICK_COUNT) -> List[float]:
        lo, hi = sorted(self.domain)
        if hi == lo or count <= 0:
            return [lo] if hi == lo else []

        target = (hi - lo) / count
        if target < SECOND_MS:
            return super().ticks(count)

        if target > YEAR_MS:
            years = max(1, int(nice_tick_step(0, (hi - lo) / YEAR_MS, count)))
            freq = f'{years}YS'
        else:
            i = bisect_right(_INTERVAL_DURATIONS, target)
            if i >= len(TIME_TICK_INTERVALS):
                freq = TIME_TICK_INTERVALS[-1][1]
            elif i == 0:
                freq = TIME_TICK_INTERVALS[0][1]
            else:
                below, above = TIME_TICK_INTERVALS[i - 1], TIME_TICK_INTERVALS[i]
                freq = below[1] if target / below[0] < above[0] / target else above[1]

        return self._calendar_ticks(lo, hi, freq)

    @staticmethod
    def _calendar_ticks(lo: float, hi: float, freq: str) -> List[float]:
        try:
            start = pd.Timestamp(datetime.fromtimestamp(lo / 1000))
            end = pd.Timestamp(datetime.fromtimestamp(hi / 1000))
            if freq in ANCHORED_FREQUENCIES or freq.endswith('YS'):
                stamps = pd.date_range(start=start, end=end, freq=freq, normalize=True)
            else:
                stamps = pd.date_range(start=start.ceil(freq), end=end, freq=freq)
        except (ValueError, OverflowError, OSError):
            return []
        ticks = [ts.to_pydatetime().timestamp() * 1000 for ts in stamps]
        return [t for t in ticks if lo <= t <= hi]


@dataclass(frozen=True)
class ChartScales:
    """Scale pair plus volume scale and candle band width"""
    x: TimeScale
    y: LinearScale
    volume: LinearScale
    band_width: float
    width: float
    height: float
    count: int


def time_domain(timestamps: np.ndarray) -> Tuple[float, float]:
    ts_min = float(np.min(timestamps))
    ts_max = float(np.max(timestamps))
    padding = (ts_max - ts_min) * TIME_PADDING
    return ts_min - padding, ts_max + padding


def price_domain(low: np.ndarray, high: np.ndarray) -> Tuple[float, float]:
    return float(np.min(low)) * PRICE_PADDING_LOW, float(np.max(high)) * PRICE_PADDING_HIGH


def compute_scales(candles: CandleSeries, width: float, height: float) -> Optional[ChartScales]:
    """Recompute every scale from scratch; None when there is nothing to map"""
    count = len(candles)
    if count == 0 or width <= 0 or height <= 0:
        return None

    x = TimeScale(time_domain(candles.timestamps), (0.0, width))
    y = LinearScale(price_domain(candles.low, candles.high), (height, 0.0))

    max_volume = float(np.max(candles.volume))
    volume = LinearScale(
        (0.0, max_volume * VOLUME_HEADROOM),
        (height, height - height * VOLUME_HEIGHT_RATIO),
    )

    band_width = BAND_FILL_RATIO * width / count

    return ChartScales(x=x, y=y, volume=volume, band_width=band_width,
                       width=float(width), height=float(height), count=count)


def format_time_tick(timestamp_ms: float, timeframe: str) -> str:
    """Axis label for a tick, granularity chosen by timeframe"""
    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000)
    except (ValueError, OverflowError, OSError):
        return ""

    if timeframe in ('1m', '5m', '15m', '30m'):
        return f"{dt.hour:02d}:{dt.minute:02d}"
    if timeframe in ('1H', '4H'):
        return f"{dt.month}/{dt.day} {dt.hour:02d}:00"
    if timeframe == '1D':
        return f"{dt.month}/{dt.day}"
    if timeframe == '1W':
        return f"{dt.month}/{dt.day}/{dt.year % 100:02d}"
    return dt.strftime('%x')


def format_price(price: float) -> str:
    return f"${price:.2f}"
