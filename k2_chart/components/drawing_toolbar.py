"""
Drawing Toolbar Component for K2 Chart

Tool buttons plus zoom and clear actions. The toolbar never touches the chart
directly; it publishes commands on the shared ChartCommandChannel and mirrors
the chart's active tool back into its checked state.
"""

from functools import partial

from PyQt6.QtWidgets import QFrame, QHBoxLayout, QPushButton

from k2_chart.pages.dashboard.widgets.chart.drawings import ToolId
from k2_chart.utilities.commands import ChartCommandChannel
from k2_chart.utilities.logger import k2_logger


# tool: (icon, tooltip)
TOOL_BUTTONS = {
    ToolId.TRENDLINE: ('╱', 'Trend Line'),
    ToolId.HORIZONTAL_LINE: ('─', 'Horizontal Line'),
    ToolId.FIB_RETRACEMENT: ('≡', 'Fibonacci Retracement'),
    ToolId.PENCIL: ('•', 'Point Marker'),
}


class DrawingToolbarWidget(QFrame):
    """Horizontal drawing toolbar shown under the chart"""

    def __init__(self, commands: ChartCommandChannel, parent=None):
        super().__init__(parent)
        self.commands = commands
        self.active_tool = None
        self.tool_buttons = {}

        self.init_ui()
        self.commands.active_tool_changed.connect(self.set_active_tool)

    def init_ui(self):
        self.setFixedHeight(44)
        self.setStyleSheet("""
            QFrame {
                background-color: #0f0f0f;
                border-top: 1px solid #1a1a1a;
            }
            QPushButton {
                background-color: transparent;
                color: #666;
                border: none;
                padding: 4px;
                font-size: 16px;
            }
            QPushButton:hover {
                background-color: #1a1a1a;
                color: #999;
            }
            QPushButton:checked {
                background-color: #2a2a2a;
                color: #4a4;
            }
        """)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(2)

        for tool, (icon, tooltip) in TOOL_BUTTONS.items():
            btn = QPushButton(icon)
            btn.setCheckable(True)
            btn.setToolTip(tooltip)
            btn.setFixedSize(32, 32)
            btn.clicked.connect(partial(self.on_tool_clicked, tool))
            layout.addWidget(btn)
            self.tool_buttons[tool] = btn

        separator = QFrame()
        separator.setFrameShape(QFrame.Shape.VLine)
        separator.setStyleSheet("color: #2a2a2a;")
        layout.addWidget(separator)

        self.zoom_in_btn = self._action_button('+', 'Zoom In', self.commands.zoom_in)
        layout.addWidget(self.zoom_in_btn)
        self.zoom_out_btn = self._action_button('−', 'Zoom Out', self.commands.zoom_out)
        layout.addWidget(self.zoom_out_btn)
        self.reset_zoom_btn = self._action_button('⟲', 'Reset Zoom', self.commands.reset_zoom)
        layout.addWidget(self.reset_zoom_btn)

        layout.addStretch()

        self.clear_btn = self._action_button('×', 'Clear All Drawings', self.commands.clear_drawings)
        layout.addWidget(self.clear_btn)

    def _action_button(self, icon, tooltip, slot):
        btn = QPushButton(icon)
        btn.setToolTip(tooltip)
        btn.setFixedSize(32, 32)
        btn.clicked.connect(lambda checked=False: slot())
        return btn

    def on_tool_clicked(self, tool, checked=False):
        """Clicking the active tool deselects it"""
        selected = None if self.active_tool == tool else tool
        k2_logger.ui_operation("Drawing tool", selected.value if selected else "none")
        self.commands.select_tool(selected)
        # keep the button state in sync even if nobody answers on the channel
        self.set_active_tool(selected)

    def set_active_tool(self, tool):
        self.active_tool = tool
        for tool_id, btn in self.tool_buttons.items():
            btn.setChecked(tool_id == tool)
