"""
K2 Chart Logging System

Category based logging for the charting engine, its render passes and the
surrounding dashboard.
"""

import logging
import sys
import time
from datetime import datetime
from functools import wraps

from k2_chart.utilities.config import chart_config


class K2ChartLogger:
    """Logging facade used across the chart application"""

    def __init__(self, log_level=logging.INFO, log_dir=None, log_to_file=True, show_banner=True,
                 name="K2Chart"):
        self.name = name
        self.log_file = None
        self.setup_logging(log_level, log_dir, log_to_file)
        if show_banner:
            self.setup_console_handler()

    def setup_logging(self, log_level, log_dir, log_to_file):
        """Setup file and console handlers"""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers = []
        self.logger.propagate = False

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)-12s | %(message)s',
            datefmt='%H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%H:%M:%S'
        )

        if log_to_file and log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / f"k2_chart_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setFormatter(detailed_formatter)
            file_handler.setLevel(logging.DEBUG)
            self.logger.addHandler(file_handler)

        self.console_handler = logging.StreamHandler(sys.stdout)
        self.console_handler.setFormatter(console_formatter)
        self.console_handler.setLevel(log_level)
        self.logger.addHandler(self.console_handler)

    def setup_console_handler(self):
        """Print the start-up banner"""
        print("\n" + "=" * 80)
        print("** K2 CHART - INTERACTIVE PRICE CHART & DRAWING ENGINE **")
        print("=" * 80)
        print("[INFO] Render pass logging active")
        if self.log_file is not None:
            print(f"[INFO] Detailed log: {self.log_file}")
        print("=" * 80 + "\n")

    def set_level(self, log_level):
        self.console_handler.setLevel(log_level)

    def info(self, message, component="SYSTEM"):
        self.logger.info(f"[{component}] {message}")

    def debug(self, message, component="DEBUG"):
        self.logger.debug(f"[{component}] {message}")

    def warning(self, message, component="WARNING"):
        self.logger.warning(f"[{component}] {message}")

    def error(self, message, component="ERROR"):
        self.logger.error(f"[{component}] {message}")

    def critical(self, message, component="CRITICAL"):
        self.logger.critical(f"[{component}] {message}")

    def performance_metric(self, metric, value, unit=""):
        self.debug(f"[PERF] {metric}: {value} {unit}", "PERFORMANCE")

    def data_processing(self, operation, count=None, time_taken=None):
        msg = f"[DATA] {operation}"
        if count is not None:
            msg += f" | Records: {count:,}"
        if time_taken is not None:
            msg += f" | Time: {time_taken:.2f}s"
        self.info(msg, "DATA")

    def render_pass(self, pass_name, items=None, time_taken=None):
        msg = f"[RENDER] {pass_name}"
        if items is not None:
            msg += f" | Items: {items:,}"
        if time_taken is not None:
            msg += f" | Time: {time_taken * 1000:.1f}ms"
        self.debug(msg, "CHART")

    def ui_operation(self, operation, details=""):
        self.info(f"[UI] {operation} {details}", "UI")


k2_logger = K2ChartLogger(
    log_level=getattr(logging, chart_config.log_level, logging.INFO),
    log_dir=chart_config.log_dir,
    log_to_file=chart_config.log_to_file,
    show_banner=chart_config.show_banner,
)


def log_exception(func):
    """Decorator to log exceptions"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            k2_logger.error(f"Exception in {func.__name__}: {str(e)}", "EXCEPTION")
            raise
    return wrapper


def log_performance(func):
    """Decorator to log function performance"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            execution_time = time.perf_counter() - start_time
            k2_logger.performance_metric(f"{func.__name__} execution", f"{execution_time * 1000:.2f}", "ms")
            return result
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            k2_logger.error(f"{func.__name__} failed after {execution_time:.2f}s: {str(e)}", "PERFORMANCE")
            raise
    return wrapper
