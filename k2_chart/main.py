#!/usr/bin/env python3
"""
K2 CHART - Main Application

Single window hosting the trading dashboard.
"""

import sys

from PyQt6.QtWidgets import QApplication, QMainWindow

from k2_chart.pages.dashboard.page import TradingDashboardWidget
from k2_chart.utilities.config import chart_config
from k2_chart.utilities.logger import k2_logger


class MainWindow(QMainWindow):
    """Main window holding the dashboard"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("K2 CHART - Interactive Price Chart")
        self.setGeometry(100, 100, 1400, 900)

        self.init_ui()
        self.setup_styling()

    def init_ui(self):
        self.dashboard = TradingDashboardWidget()
        self.setCentralWidget(self.dashboard)

    def setup_styling(self):
        """Apply window styling"""
        self.setStyleSheet("""
            QMainWindow {
                background-color: #0a0a0a;
            }
        """)

    def cleanup(self):
        """Clean up all components"""
        self.dashboard.cleanup()


def setup_global_styling(app):
    """Setup global application styling"""
    app.setStyleSheet("""
        /* Global styling for consistency */
        * { border-radius: 0px; }

        QToolTip {
            background-color: #1a1a1a;
            color: #ffffff;
            border: 1px solid #3a3a3a;
            padding: 4px;
        }
    """)


def main():
    """Main function to run the application"""
    k2_logger.info("K2 Chart application starting", "MAIN")
    k2_logger.debug(f"Configuration: {chart_config.as_dict()}", "MAIN")

    app = QApplication(sys.argv)
    k2_logger.ui_operation("PyQt6 application created", "QApplication initialized")

    setup_global_styling(app)

    window = MainWindow()
    app.aboutToQuit.connect(window.cleanup)
    window.show()

    k2_logger.info("Entering PyQt6 event loop", "MAIN")
    result = app.exec()
    k2_logger.info("Application ended", "MAIN")
    return result


if __name__ == "__main__":
    sys.exit(main())
