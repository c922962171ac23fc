"""
Chart Command Channel

Explicit signal hub shared by the drawing toolbar and the chart widget. Both
sides receive the same instance, so neither needs a reference to the other.
"""

from PyQt6.QtCore import QObject, pyqtSignal

from k2_chart.utilities.logger import k2_logger


class ChartCommandChannel(QObject):
    """Commands flowing toolbar -> chart, and tool state flowing back"""

    # toolbar -> chart
    tool_selected = pyqtSignal(object)  # ToolId or None
    clear_drawings_requested = pyqtSignal()
    chart_mode_requested = pyqtSignal(str)  # 'candle' | 'line'
    zoom_in_requested = pyqtSignal()
    zoom_out_requested = pyqtSignal()
    reset_zoom_requested = pyqtSignal()

    # chart -> toolbar
    active_tool_changed = pyqtSignal(object)  # ToolId or None

    def select_tool(self, tool):
        k2_logger.debug(f"Tool selected: {tool}", "COMMANDS")
        self.tool_selected.emit(tool)

    def clear_drawings(self):
        self.clear_drawings_requested.emit()

    def set_chart_mode(self, mode: str):
        self.chart_mode_requested.emit(mode)

    def zoom_in(self):
        self.zoom_in_requested.emit()

    def zoom_out(self):
        self.zoom_out_requested.emit()

    def reset_zoom(self):
        self.reset_zoom_requested.emit()

    def publish_active_tool(self, tool):
        self.active_tool_changed.emit(tool)
