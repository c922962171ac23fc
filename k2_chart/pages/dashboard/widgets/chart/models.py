"""
Chart data model: candles, candle series, chart modes and timeframes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd


MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

TIMEFRAME_CONFIG = {
    '1m': {'interval_ms': MINUTE_MS, 'label': '1 Minute'},
    '5m': {'interval_ms': 5 * MINUTE_MS, 'label': '5 Minutes'},
    '15m': {'interval_ms': 15 * MINUTE_MS, 'label': '15 Minutes'},
    '30m': {'interval_ms': 30 * MINUTE_MS, 'label': '30 Minutes'},
    '1H': {'interval_ms': HOUR_MS, 'label': '1 Hour'},
    '4H': {'interval_ms': 4 * HOUR_MS, 'label': '4 Hours'},
    '1D': {'interval_ms': DAY_MS, 'label': '1 Day'},
    '1W': {'interval_ms': 7 * DAY_MS, 'label': '1 Week'},
}

TIMEFRAMES = tuple(TIMEFRAME_CONFIG.keys())
DEFAULT_INTERVAL_MS = DAY_MS

OHLCV_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


def timeframe_interval_ms(timeframe: str) -> int:
    """Candle interval for a timeframe tag, one day when unrecognised"""
    config = TIMEFRAME_CONFIG.get(timeframe)
    if config is None:
        return DEFAULT_INTERVAL_MS
    return config['interval_ms']


class ChartMode(Enum):
    CANDLE = "candle"
    LINE = "line"

    @classmethod
    def parse(cls, value) -> Optional['ChartMode']:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Candle:
    """One OHLCV bucket"""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class CandleSeries:
    """Read-only, numpy backed candle sequence.

    The chart never mutates a series; a feed update produces a new one.
    """

    __slots__ = ('timestamps', 'open', 'high', 'low', 'close', 'volume')

    def __init__(self, timestamps, open_, high, low, close, volume):
        self.timestamps = np.asarray(timestamps, dtype=np.int64)
        self.open = np.asarray(open_, dtype=np.float64)
        self.high = np.asarray(high, dtype=np.float64)
        self.low = np.asarray(low, dtype=np.float64)
        self.close = np.asarray(close, dtype=np.float64)
        self.volume = np.asarray(volume, dtype=np.float64)
        for arr in (self.timestamps, self.open, self.high, self.low, self.close, self.volume):
            arr.setflags(write=False)

    @classmethod
    def empty(cls) -> 'CandleSeries':
        return cls([], [], [], [], [], [])

    @classmethod
    def from_candles(cls, candles: Iterable[Candle]) -> 'CandleSeries':
        candles = list(candles)
        return cls(
            [c.timestamp for c in candles],
            [c.open for c in candles],
            [c.high for c in candles],
            [c.low for c in candles],
            [c.close for c in candles],
            [c.volume for c in candles],
        )

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> 'CandleSeries':
        """Build from [timestamp, open, high, low, close, volume] rows"""
        if len(rows) == 0:
            return cls.empty()
        arr = np.asarray(rows, dtype=np.float64)
        return cls(arr[:, 0].astype(np.int64), arr[:, 1], arr[:, 2], arr[:, 3], arr[:, 4], arr[:, 5])

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> 'CandleSeries':
        if df is None or df.empty:
            return cls.empty()
        return cls(
            df['timestamp'].to_numpy(dtype=np.int64),
            df['open'].to_numpy(),
            df['high'].to_numpy(),
            df['low'].to_numpy(),
            df['close'].to_numpy(),
            df['volume'].to_numpy(),
        )

    @classmethod
    def coerce(cls, data) -> 'CandleSeries':
        """Accept a series, a DataFrame, Candle records or raw rows"""
        if data is None:
            return cls.empty()
        if isinstance(data, cls):
            return data
        if isinstance(data, pd.DataFrame):
            return cls.from_frame(data)
        data = list(data)
        if data and isinstance(data[0], Candle):
            return cls.from_candles(data)
        return cls.from_rows(data)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'timestamp': self.timestamps,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
        }, columns=OHLCV_COLUMNS)

    def to_candles(self) -> List[Candle]:
        return [self[i] for i in range(len(self))]

    @property
    def bearish(self) -> np.ndarray:
        return self.close < self.open

    @property
    def last(self) -> Optional[Candle]:
        if len(self) == 0:
            return None
        return self[len(self) - 1]

    def __len__(self):
        return int(self.timestamps.shape[0])

    def __getitem__(self, index: int) -> Candle:
        return Candle(
            timestamp=int(self.timestamps[index]),
            open=float(self.open[index]),
            high=float(self.high[index]),
            low=float(self.low[index]),
            close=float(self.close[index]),
            volume=float(self.volume[index]),
        )

    def __repr__(self):
        return f"CandleSeries(len={len(self)})"
