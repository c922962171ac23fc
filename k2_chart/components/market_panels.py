"""
Market side panels for the dashboard

A static market overview card and an order book card that is refilled from
the last close every time the feed pushes new candles.
"""

from typing import List, Optional

import numpy as np
from PyQt6.QtWidgets import QFrame, QGridLayout, QLabel, QVBoxLayout

from k2_chart.utilities.services.market_data_service import OrderBook, generate_order_book


# index: daily change in percent
MARKET_OVERVIEW = (
    ('S&P 500', 1.2),
    ('NASDAQ', 0.8),
    ('DOW', -0.3),
)

ASK_COLOR = '#ef4444'
BID_COLOR = '#22c55e'

PANEL_STYLE = """
    QFrame#panel {
        background-color: #0f0f0f;
        border: 1px solid #1a1a1a;
        border-radius: 6px;
    }
    QLabel {
        border: none;
        color: #ccc;
        font-size: 12px;
    }
    QLabel#panelTitle {
        color: #fff;
        font-size: 14px;
        font-weight: bold;
    }
    QLabel#header {
        color: #666;
    }
"""


def _panel(title: str):
    frame = QFrame()
    frame.setObjectName("panel")
    layout = QVBoxLayout(frame)
    layout.setContentsMargins(12, 10, 12, 10)
    layout.setSpacing(6)

    label = QLabel(title)
    label.setObjectName("panelTitle")
    layout.addWidget(label)
    return frame, layout


class MarketOverviewPanel(QFrame):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.change_labels = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        frame, inner = _panel("Market Overview")
        layout.addWidget(frame)

        grid = QGridLayout()
        for row, (name, change) in enumerate(MARKET_OVERVIEW):
            grid.addWidget(QLabel(name), row, 0)
            value = QLabel(f"{change:+.1f}%")
            value.setStyleSheet(f"color: {BID_COLOR if change >= 0 else ASK_COLOR};")
            grid.addWidget(value, row, 1)
            self.change_labels[name] = value
        inner.addLayout(grid)

        self.setStyleSheet(PANEL_STYLE)


class OrderBookPanel(QFrame):
    """Asks above the spread line (highest first), bids below"""

    def __init__(self, depth: int = 5, rng: Optional[np.random.Generator] = None, parent=None):
        super().__init__(parent)
        self.depth = depth
        self.rng = rng
        self.book: Optional[OrderBook] = None
        self.ask_rows: List[tuple] = []
        self.bid_rows: List[tuple] = []

        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        frame, inner = _panel("Order Book")
        layout.addWidget(frame)

        grid = QGridLayout()
        grid.setVerticalSpacing(2)
        for col, text in enumerate(("Price", "Size")):
            header = QLabel(text)
            header.setObjectName("header")
            grid.addWidget(header, 0, col)

        row = 1
        for _ in range(self.depth):
            self.ask_rows.append(self._add_row(grid, row, ASK_COLOR))
            row += 1

        self.spread_label = QLabel("")
        self.spread_label.setObjectName("header")
        grid.addWidget(self.spread_label, row, 0, 1, 2)
        row += 1

        for _ in range(self.depth):
            self.bid_rows.append(self._add_row(grid, row, BID_COLOR))
            row += 1

        inner.addLayout(grid)
        self.setStyleSheet(PANEL_STYLE)

    @staticmethod
    def _add_row(grid, row, color):
        price = QLabel("")
        price.setStyleSheet(f"color: {color};")
        size = QLabel("")
        grid.addWidget(price, row, 0)
        grid.addWidget(size, row, 1)
        return price, size

    def update_from_price(self, last_price: float):
        self.set_book(generate_order_book(last_price, self.depth, rng=self.rng))

    def set_book(self, book: OrderBook):
        self.book = book
        # best ask sits next to the spread line
        self._fill(self.ask_rows, list(reversed(book.asks)))
        self._fill(self.bid_rows, list(book.bids))
        self.spread_label.setText(f"Spread ${book.spread:.2f}" if book.asks and book.bids else "")

    def clear(self):
        self.book = None
        self._fill(self.ask_rows, [])
        self._fill(self.bid_rows, [])
        self.spread_label.setText("")

    @staticmethod
    def _fill(rows, levels):
        for i, (price, size) in enumerate(rows):
            if i < len(levels):
                price.setText(f"${levels[i].price:.2f}")
                size.setText(str(levels[i].size))
            else:
                price.setText("")
                size.setText("")
