"""K2 Chart - interactive price chart with drawing tools"""

__version__ = "0.1.0"
