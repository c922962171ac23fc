"""
Stock Chart Widget

Interactive candlestick/line chart with pan, zoom and drawing tools. The widget
only wires things together: scales, render passes, the transform controller
and the drawing engine each live in their own module, and every redraw goes
through the render scheduler.
"""

from typing import Optional, Tuple

import pyqtgraph as pg
from PyQt6.QtCore import Qt, QEvent, pyqtSignal
from PyQt6.QtWidgets import QButtonGroup, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from k2_chart.utilities.commands import ChartCommandChannel
from k2_chart.utilities.config import chart_config
from k2_chart.utilities.logger import k2_logger, log_exception

from .drawing_pass import render_drawings, render_preview
from .drawings import DraftGesture, DrawingEngine, Point, ToolId
from .layers import CHART_COLORS, CHART_MARGIN, ChartContext, Margin, dispose_context
from .mode_pass import render_mode
from .models import TIMEFRAME_CONFIG, CandleSeries, ChartMode
from .scheduler import RenderPass, RenderScheduler
from .static_pass import build_chart_context
from .transform import TransformController


DEFAULT_CONTAINER_SIZE = (800, 500)


class StockChartWidget(QWidget):
    """Price chart with drawing tools and horizontal pan/zoom"""

    # Signals
    drawing_added = pyqtSignal(object)
    drawings_cleared = pyqtSignal()
    chart_mode_changed = pyqtSignal(str)
    active_tool_changed = pyqtSignal(object)

    def __init__(self, commands: Optional[ChartCommandChannel] = None, parent=None):
        super().__init__(parent)
        self.commands = commands if commands is not None else ChartCommandChannel(self)

        self._candles = CandleSeries.empty()
        self._symbol = ""
        self._timeframe = chart_config.default_timeframe
        self._mode = ChartMode.CANDLE
        self._container_size: Tuple[float, float] = DEFAULT_CONTAINER_SIZE
        self._context: Optional[ChartContext] = None

        self.engine = DrawingEngine(parent=self)
        self.transform = TransformController(self)
        self.scheduler = RenderScheduler({
            RenderPass.DATA: self._render_data,
            RenderPass.MODE: self._render_mode,
            RenderPass.DRAWINGS: self._render_drawings,
            RenderPass.GESTURE: self._render_gesture,
        })

        self.init_ui()
        self._connect_signals()

    def init_ui(self):
        """Header bar above a pixel mapped graphics view"""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        layout.addWidget(self._create_header())

        self.view = pg.GraphicsView(background=CHART_COLORS['background'])
        self.view.setAntialiasing(True)
        self.view.setMouseTracking(True)
        self.view.viewport().installEventFilter(self)
        layout.addWidget(self.view, stretch=1)

    def _create_header(self):
        header = QWidget()
        header.setFixedHeight(40)
        header.setStyleSheet("""
            QWidget {
                background-color: #0f0f0f;
                border-bottom: 1px solid #1a1a1a;
            }
            QLabel {
                border: none;
                color: #999;
                font-size: 12px;
            }
        """)

        layout = QHBoxLayout(header)
        layout.setContentsMargins(10, 0, 10, 0)
        layout.setSpacing(12)

        self.symbol_label = QLabel("")
        self.symbol_label.setStyleSheet("color: #fff; font-size: 16px; font-weight: bold;")
        layout.addWidget(self.symbol_label)

        self.timeframe_label = QLabel("")
        layout.addWidget(self.timeframe_label)

        self.price_label = QLabel("")
        self.price_label.setStyleSheet("font-size: 14px; font-weight: bold;")
        layout.addWidget(self.price_label)

        layout.addStretch()

        self.mode_buttons = {}
        self.mode_group = QButtonGroup(self)
        self.mode_group.setExclusive(True)
        for mode, text in ((ChartMode.CANDLE, 'Candlestick'), (ChartMode.LINE, 'Line')):
            btn = QPushButton(text)
            btn.setCheckable(True)
            btn.setChecked(mode == self._mode)
            btn.setFixedHeight(26)
            btn.setStyleSheet("""
                QPushButton {
                    background-color: transparent;
                    color: #666;
                    border: 1px solid #2a2a2a;
                    padding: 2px 10px;
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
            btn.clicked.connect(lambda checked, m=mode: self.set_chart_mode(m))
            self.mode_group.addButton(btn)
            layout.addWidget(btn)
            self.mode_buttons[mode] = btn

        return header

    def _connect_signals(self):
        self.engine.store.changed.connect(lambda: self.scheduler.mark_dirty(RenderPass.DRAWINGS))
        self.engine.gesture_changed.connect(lambda _: self.scheduler.mark_dirty(RenderPass.GESTURE))
        self.engine.tool_changed.connect(self._on_tool_changed)
        self.transform.transform_changed.connect(self._on_transform_changed)

        self.commands.tool_selected.connect(self.select_tool)
        self.commands.clear_drawings_requested.connect(self.clear_drawings)
        self.commands.chart_mode_requested.connect(self.set_chart_mode)
        self.commands.zoom_in_requested.connect(self.zoom_in)
        self.commands.zoom_out_requested.connect(self.zoom_out)
        self.commands.reset_zoom_requested.connect(self.reset_zoom)

    # Read-only state
    @property
    def context(self) -> Optional[ChartContext]:
        return self._context

    @property
    def candles(self) -> CandleSeries:
        return self._candles

    @property
    def timeframe(self) -> str:
        return self._timeframe

    @property
    def chart_mode(self) -> ChartMode:
        return self._mode

    @property
    def active_tool(self) -> Optional[ToolId]:
        return self.engine.active_tool

    @property
    def drawings(self):
        return self.engine.store.snapshot()

    @property
    def gesture(self) -> DraftGesture:
        return self.engine.gesture

    @property
    def margin(self) -> Margin:
        return self._context.margin if self._context is not None else CHART_MARGIN

    # Data
    @log_exception
    def set_data(self, candles, symbol: Optional[str] = None, timeframe: Optional[str] = None):
        """Replace the candle series; the in-progress gesture is left untouched"""
        self._candles = CandleSeries.coerce(candles)
        if symbol is not None:
            self._symbol = symbol
        if timeframe is not None:
            self._check_timeframe(timeframe)
            self._timeframe = timeframe
        self._update_header()
        self.scheduler.mark_dirty(RenderPass.DATA)

    def set_timeframe(self, timeframe: str):
        if timeframe == self._timeframe:
            return
        self._check_timeframe(timeframe)
        self._timeframe = timeframe
        self._update_header()
        self.scheduler.mark_dirty(RenderPass.DATA)

    def _check_timeframe(self, timeframe: str):
        if timeframe not in TIMEFRAME_CONFIG:
            k2_logger.warning(f"Unknown timeframe '{timeframe}', using default tick formatting", "CHART")

    def set_container_size(self, width: float, height: float):
        size = (float(width), float(height))
        if size == self._container_size:
            return
        self._container_size = size
        self.scheduler.mark_dirty(RenderPass.DATA)

    # Commands
    def set_chart_mode(self, mode):
        parsed = ChartMode.parse(mode)
        if parsed is None:
            k2_logger.warning(f"Ignoring unknown chart mode: {mode!r}", "CHART")
            return
        if parsed == self._mode:
            return

        self._mode = parsed
        self.mode_buttons[parsed].setChecked(True)
        k2_logger.ui_operation("Chart mode", parsed.value)
        self.chart_mode_changed.emit(parsed.value)
        self.scheduler.mark_dirty(RenderPass.MODE)

    def select_tool(self, tool):
        if tool is None:
            self.engine.select_tool(None)
            return
        parsed = ToolId.parse(tool)
        if parsed is None:
            k2_logger.warning(f"Ignoring unknown drawing tool: {tool!r}", "CHART")
            return
        self.engine.select_tool(parsed)

    def clear_drawings(self):
        self.engine.clear_all()
        self.drawings_cleared.emit()

    def zoom_in(self):
        self.transform.zoom_in()

    def zoom_out(self):
        self.transform.zoom_out()

    def reset_zoom(self):
        self.transform.reset()

    # Pointer input, container coordinates
    def _to_plot_point(self, x: float, y: float) -> Point:
        margin = self.margin
        return Point(self.transform.transform.invert_x(x - margin.left), y - margin.top)

    def handle_pointer_down(self, x: float, y: float) -> bool:
        if self.engine.active_tool is not None:
            self.engine.pointer_down(self._to_plot_point(x, y))
            return True
        self.transform.begin_pan(x)
        return True

    def handle_pointer_move(self, x: float, y: float) -> bool:
        if self.engine.gesture.is_active:
            self.engine.pointer_move(self._to_plot_point(x, y))
            return True
        if self.transform.is_panning:
            self.transform.pan_to(x)
            return True
        return False

    def handle_pointer_up(self, x: Optional[float] = None, y: Optional[float] = None):
        if self.engine.gesture.is_active:
            drawing = self.engine.pointer_up(self._context)
            if drawing is not None:
                self.drawing_added.emit(drawing)
            return drawing
        if self.transform.is_panning:
            self.transform.end_pan()
        return None

    def handle_wheel(self, angle_delta: float, x: float):
        self.transform.wheel_zoom(angle_delta, x - self.margin.left)

    def eventFilter(self, source, event):
        """Route viewport mouse and wheel events into the chart"""
        if source is not self.view.viewport():
            return super().eventFilter(source, event)

        event_type = event.type()
        if event_type == QEvent.Type.MouseButtonPress:
            if event.button() == Qt.MouseButton.LeftButton:
                pos = event.position()
                return self.handle_pointer_down(pos.x(), pos.y())
        elif event_type == QEvent.Type.MouseMove:
            pos = event.position()
            return self.handle_pointer_move(pos.x(), pos.y())
        elif event_type == QEvent.Type.MouseButtonRelease:
            if event.button() == Qt.MouseButton.LeftButton:
                pos = event.position()
                self.handle_pointer_up(pos.x(), pos.y())
                return True
        elif event_type == QEvent.Type.Wheel:
            self.handle_wheel(event.angleDelta().y(), event.position().x())
            return True
        elif event_type == QEvent.Type.Resize:
            size = event.size()
            if size.width() > 0 and size.height() > 0:
                self.set_container_size(size.width(), size.height())

        return super().eventFilter(source, event)

    # Signal handlers
    def _on_tool_changed(self, tool):
        self.active_tool_changed.emit(tool)
        self.commands.publish_active_tool(tool)

    def _on_transform_changed(self, _transform):
        with self.scheduler.batch():
            self.scheduler.mark_dirty(RenderPass.DRAWINGS, RenderPass.GESTURE)

    # Render passes
    def _render_data(self):
        previous, self._context = self._context, None
        try:
            self._context = build_chart_context(self.view.scene(), self._candles, self._timeframe,
                                                self._container_size, previous=previous)
        finally:
            self.transform.bind(self._context)

    def _render_mode(self):
        if self._context is None:
            return
        render_mode(self._context, self._mode, self.transform.effective_x_scale(),
                    self.transform.effective_band_width())

    def _render_drawings(self):
        if self._context is None:
            return
        render_drawings(self._context, self.engine.store.snapshot(), self.transform.transform)

    def _render_gesture(self):
        if self._context is None:
            return
        render_preview(self._context, self.engine.preview_drawing(self._context), self.transform.transform)

    def _update_header(self):
        self.symbol_label.setText(self._symbol)
        config = TIMEFRAME_CONFIG.get(self._timeframe)
        self.timeframe_label.setText(config['label'] if config else self._timeframe)

        last = self._candles.last
        if last is None:
            self.price_label.setText("")
            return
        color = '#22c55e' if last.close > last.open else '#ef4444'
        self.price_label.setText(f"${last.close:.2f}")
        self.price_label.setStyleSheet(f"color: {color}; font-size: 14px; font-weight: bold;")

    def cleanup(self):
        """Release graphics items and stop routing viewport events"""
        self.view.viewport().removeEventFilter(self)
        dispose_context(self._context)
        self._context = None
        self.transform.end_pan()
        self.transform.bind(None)
