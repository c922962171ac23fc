"""
K2 Chart Configuration Management (self-contained)
"""

import os
from typing import Dict, Any
from pathlib import Path


TRUE_VALUES = frozenset(['1', 'true', 'yes', 'on'])


class ChartConfig:
    """Environment driven configuration for the chart application"""

    def __init__(self, env_file: str = '.env'):
        self.env_file = env_file
        self.load_environment()

    def load_environment(self):
        """Load environment variables from .env file if it exists"""
        env_path = Path(self.env_file)
        if env_path.exists():
            with open(env_path, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        os.environ.setdefault(key.strip(), value.strip())

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    @property
    def log_level(self) -> str:
        return os.getenv('K2_CHART_LOG_LEVEL', 'INFO').upper()

    @property
    def log_dir(self) -> Path:
        return Path(os.getenv('K2_CHART_LOG_DIR', 'logs'))

    @property
    def log_to_file(self) -> bool:
        return self._get_bool('K2_CHART_LOG_TO_FILE', True)

    @property
    def show_banner(self) -> bool:
        return self._get_bool('K2_CHART_SHOW_BANNER', True)

    @property
    def default_symbol(self) -> str:
        return os.getenv('K2_CHART_DEFAULT_SYMBOL', 'AAPL')

    @property
    def default_timeframe(self) -> str:
        return os.getenv('K2_CHART_DEFAULT_TIMEFRAME', '1D')

    @property
    def candle_count(self) -> int:
        return max(1, self._get_int('K2_CHART_CANDLE_COUNT', 100))

    @property
    def feed_interval_ms(self) -> int:
        return max(50, self._get_int('K2_CHART_FEED_INTERVAL_MS', 1000))

    @property
    def live_feed_enabled(self) -> bool:
        return self._get_bool('K2_CHART_LIVE_FEED', True)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'log_level': self.log_level,
            'log_dir': str(self.log_dir),
            'log_to_file': self.log_to_file,
            'show_banner': self.show_banner,
            'default_symbol': self.default_symbol,
            'default_timeframe': self.default_timeframe,
            'candle_count': self.candle_count,
            'feed_interval_ms': self.feed_interval_ms,
            'live_feed_enabled': self.live_feed_enabled,
        }


chart_config = ChartConfig()
