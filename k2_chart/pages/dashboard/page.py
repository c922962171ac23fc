"""
K2 Chart Trading Dashboard Page

Shell around the chart: symbol and timeframe selectors, connection status, the
drawing toolbar, the market side panels and the live feed. The chart and the toolbar share one
ChartCommandChannel and never reference each other.
"""

from functools import partial
from typing import Optional

from PyQt6.QtWidgets import QButtonGroup, QComboBox, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from k2_chart.components.drawing_toolbar import DrawingToolbarWidget
from k2_chart.components.market_panels import MarketOverviewPanel, OrderBookPanel
from k2_chart.pages.dashboard.widgets.chart import StockChartWidget
from k2_chart.pages.dashboard.widgets.chart.models import TIMEFRAMES
from k2_chart.utilities.commands import ChartCommandChannel
from k2_chart.utilities.config import chart_config
from k2_chart.utilities.logger import k2_logger
from k2_chart.utilities.services.market_data_service import SYMBOLS, LiveFeed, generate_mock_data


class TradingDashboardWidget(QWidget):
    """Dashboard page: selectors on top, chart and toolbar left, market panels right"""

    def __init__(self, live_feed: Optional[bool] = None, parent=None):
        super().__init__(parent)
        self.symbol = chart_config.default_symbol
        self.timeframe = chart_config.default_timeframe
        self.live_feed_enabled = chart_config.live_feed_enabled if live_feed is None else live_feed

        self.commands = ChartCommandChannel(self)
        self.feed = LiveFeed(parent=self)
        self.timeframe_buttons = {}

        self.init_ui()
        self.setup_styling()

        self.feed.candles_updated.connect(self.on_candles_updated)
        self.feed.connection_changed.connect(self.set_connected)
        self.load_data()

        k2_logger.info(f"Dashboard initialized ({self.symbol} {self.timeframe})", "DASHBOARD")

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        layout.addWidget(self._create_top_bar())

        body = QHBoxLayout()
        body.setContentsMargins(0, 0, 0, 0)
        body.setSpacing(8)
        layout.addLayout(body, stretch=1)

        chart_column = QVBoxLayout()
        chart_column.setSpacing(0)
        self.chart = StockChartWidget(self.commands)
        chart_column.addWidget(self.chart, stretch=1)
        self.toolbar = DrawingToolbarWidget(self.commands)
        chart_column.addWidget(self.toolbar)
        body.addLayout(chart_column, stretch=3)

        side_column = QVBoxLayout()
        side_column.setContentsMargins(0, 8, 8, 8)
        side_column.setSpacing(8)
        self.market_overview = MarketOverviewPanel()
        side_column.addWidget(self.market_overview)
        self.order_book = OrderBookPanel()
        side_column.addWidget(self.order_book)
        side_column.addStretch()
        body.addLayout(side_column, stretch=1)

    def _create_top_bar(self):
        bar = QWidget()
        bar.setObjectName("topBar")
        bar.setFixedHeight(48)

        layout = QHBoxLayout(bar)
        layout.setContentsMargins(12, 0, 12, 0)
        layout.setSpacing(8)

        title = QLabel("Trading Dashboard")
        title.setObjectName("title")
        layout.addWidget(title)
        layout.addStretch()

        self.symbol_combo = QComboBox()
        self.symbol_combo.addItems(SYMBOLS)
        if self.symbol not in SYMBOLS:
            self.symbol_combo.addItem(self.symbol)
        self.symbol_combo.setCurrentText(self.symbol)
        self.symbol_combo.currentTextChanged.connect(self.on_symbol_changed)
        layout.addWidget(self.symbol_combo)

        group = QButtonGroup(self)
        group.setExclusive(True)
        for tf in TIMEFRAMES:
            btn = QPushButton(tf)
            btn.setCheckable(True)
            btn.setChecked(tf == self.timeframe)
            btn.setFixedSize(36, 26)
            btn.clicked.connect(partial(self.on_timeframe_changed, tf))
            group.addButton(btn)
            layout.addWidget(btn)
            self.timeframe_buttons[tf] = btn

        self.status_dot = QLabel("●")
        self.status_dot.setToolTip("Feed disconnected")
        layout.addWidget(self.status_dot)
        self.set_connected(False)

        return bar

    def setup_styling(self):
        self.setStyleSheet("""
            QWidget#topBar {
                background-color: #0f0f0f;
                border-bottom: 1px solid #1a1a1a;
            }
            QLabel#title {
                color: #fff;
                font-size: 18px;
                font-weight: bold;
            }
            QComboBox {
                background-color: #1a1a1a;
                color: #fff;
                border: 1px solid #2a2a2a;
                padding: 4px 8px;
                min-width: 80px;
            }
            QPushButton {
                background-color: transparent;
                color: #666;
                border: 1px solid #2a2a2a;
                font-size: 11px;
            }
            QPushButton:hover {
                color: #999;
            }
            QPushButton:checked {
                background-color: #2a2a2a;
                color: #fff;
            }
        """)

    def load_data(self):
        """Fresh history for the current symbol/timeframe, streamed if the feed is on"""
        try:
            if self.live_feed_enabled:
                self.feed.start(self.symbol, self.timeframe)
            else:
                self.on_candles_updated(generate_mock_data(self.symbol, self.timeframe, chart_config.candle_count))
        except Exception as e:
            k2_logger.error(f"Failed to load data for {self.symbol}: {str(e)}", "DASHBOARD")

    def on_candles_updated(self, candles):
        try:
            self.chart.set_data(candles, symbol=self.symbol, timeframe=self.timeframe)
            if candles:
                self.order_book.update_from_price(candles[-1].close)
            else:
                self.order_book.clear()
        except Exception as e:
            k2_logger.error(f"Failed to apply feed update: {str(e)}", "DASHBOARD")

    def on_symbol_changed(self, symbol: str):
        if not symbol or symbol == self.symbol:
            return
        k2_logger.ui_operation("Symbol changed", symbol)
        self.symbol = symbol
        self.load_data()

    def on_timeframe_changed(self, timeframe: str, checked=False):
        if timeframe == self.timeframe:
            return
        k2_logger.ui_operation("Timeframe changed", timeframe)
        self.timeframe = timeframe
        self.timeframe_buttons[timeframe].setChecked(True)
        self.load_data()

    def set_connected(self, connected: bool):
        color = '#22c55e' if connected else '#ef4444'
        self.status_dot.setStyleSheet(f"color: {color}; font-size: 12px; border: none;")
        self.status_dot.setToolTip("Feed connected" if connected else "Feed disconnected")

    def cleanup(self):
        """Stop the feed and release chart resources"""
        self.feed.stop()
        self.chart.cleanup()
