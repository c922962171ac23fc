"""K2 Chart configuration"""

from .chart_config import ChartConfig, chart_config

__all__ = ['ChartConfig', 'chart_config']
