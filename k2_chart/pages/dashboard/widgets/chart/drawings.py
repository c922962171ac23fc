"""
Drawing Engine and Annotation Store

Turns pointer gestures into typed drawing records. Every point handled here is
in plot space before the view transform, so committed drawings follow the
chart through pan and zoom.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from PyQt6.QtCore import QObject, pyqtSignal

from k2_chart.utilities.logger import k2_logger

from .layers import ChartContext
from .scales import format_price


class ToolId(Enum):
    TRENDLINE = "trendline"
    HORIZONTAL_LINE = "horizontalLine"
    FIB_RETRACEMENT = "fibRetracement"
    PENCIL = "pencil"

    @classmethod
    def parse(cls, value) -> Optional['ToolId']:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class TrendLine:
    start: Point
    end: Point


@dataclass(frozen=True)
class HorizontalLine:
    y: float


@dataclass(frozen=True)
class FibRetracement:
    start: Point
    end: Point


@dataclass(frozen=True)
class PointMarker:
    x: float
    y: float
    data_index: int
    timestamp: Optional[int]
    price: float
    label: str


Drawing = Union[TrendLine, HorizontalLine, FibRetracement, PointMarker]

FIB_LEVELS = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)


def fib_level_positions(y1: float, y2: float) -> List[Tuple[float, float]]:
    """(level, y) pairs with the two inputs sorted ascending"""
    start_y, end_y = min(y1, y2), max(y1, y2)
    return [(level, start_y + (end_y - start_y) * level) for level in FIB_LEVELS]


def fib_label(level: float) -> str:
    return f"{level * 100:.1f}%"


class AnnotationStore(QObject):
    """Append-only, clearable list of committed drawings"""

    changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._drawings: List[Drawing] = []

    def append(self, drawing: Drawing):
        self._drawings.append(drawing)
        self.changed.emit()

    def clear(self):
        self._drawings.clear()
        self.changed.emit()

    def snapshot(self) -> Tuple[Drawing, ...]:
        return tuple(self._drawings)

    def __len__(self):
        return len(self._drawings)

    def __iter__(self) -> Iterator[Drawing]:
        return iter(self.snapshot())


class GesturePhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class DraftGesture:
    tool: Optional[ToolId] = None
    phase: GesturePhase = GesturePhase.IDLE
    start: Optional[Point] = None
    current: Optional[Point] = None

    @property
    def is_active(self) -> bool:
        return self.phase == GesturePhase.ACTIVE


def locate_point_marker(point: Point, context: Optional[ChartContext]) -> PointMarker:
    """Map a down position back to a candle index and a price"""
    if context is None or len(context.candles) == 0:
        return PointMarker(x=point.x, y=point.y, data_index=0, timestamp=None,
                           price=0.0, label=format_price(0.0))

    count = len(context.candles)
    raw_index = math.floor(point.x / context.width * (count - 1) + 0.5)
    index = min(max(raw_index, 0), count - 1)
    timestamp = int(context.candles.timestamps[index]) if 0 <= raw_index < count else None
    price = float(context.scales.y.invert(point.y))
    return PointMarker(x=point.x, y=point.y, data_index=index, timestamp=timestamp,
                       price=price, label=format_price(price))


def finalize_drawing(tool: ToolId, start: Point, current: Point,
                     context: Optional[ChartContext]) -> Drawing:
    if tool == ToolId.TRENDLINE:
        return TrendLine(start=start, end=current)
    if tool == ToolId.HORIZONTAL_LINE:
        return HorizontalLine(y=start.y)
    if tool == ToolId.FIB_RETRACEMENT:
        return FibRetracement(start=start, end=current)
    if tool == ToolId.PENCIL:
        return locate_point_marker(start, context)
    raise TypeError(f"Unknown drawing tool: {tool!r}")


class DrawingEngine(QObject):
    """Pointer gesture state machine: Idle -> Active -> Idle"""

    gesture_changed = pyqtSignal(object)  # DraftGesture
    tool_changed = pyqtSignal(object)  # ToolId or None
    drawing_committed = pyqtSignal(object)  # Drawing

    def __init__(self, store: Optional[AnnotationStore] = None, parent=None):
        super().__init__(parent)
        self.store = store if store is not None else AnnotationStore(self)
        self._gesture = DraftGesture()

    @property
    def gesture(self) -> DraftGesture:
        return self._gesture

    @property
    def active_tool(self) -> Optional[ToolId]:
        return self._gesture.tool

    def _set_gesture(self, gesture: DraftGesture):
        if gesture == self._gesture:
            return
        self._gesture = gesture
        self.gesture_changed.emit(gesture)

    def select_tool(self, tool: Optional[ToolId]):
        """Set the active tool, discarding any gesture in progress"""
        previous = self._gesture.tool
        if self._gesture.is_active:
            k2_logger.debug("Active gesture discarded by tool change", "DRAWING")
        self._set_gesture(DraftGesture(tool=tool))
        if tool != previous:
            self.tool_changed.emit(tool)

    def pointer_down(self, point: Point):
        if self._gesture.tool is None:
            return
        self._set_gesture(replace(self._gesture, phase=GesturePhase.ACTIVE, start=point, current=point))

    def pointer_move(self, point: Point):
        if not self._gesture.is_active:
            return
        self._set_gesture(replace(self._gesture, current=point))

    def pointer_up(self, context: Optional[ChartContext] = None) -> Optional[Drawing]:
        """Commit the active gesture; a no-op returning None when nothing is active"""
        gesture = self._gesture
        if not gesture.is_active:
            k2_logger.debug("Pointer up without an active gesture ignored", "DRAWING")
            return None

        self._set_gesture(DraftGesture(tool=gesture.tool))
        if gesture.tool is None or gesture.start is None or gesture.current is None:
            return None

        drawing = finalize_drawing(gesture.tool, gesture.start, gesture.current, context)
        self.store.append(drawing)
        k2_logger.info(f"Committed {type(drawing).__name__} ({len(self.store)} total)", "DRAWING")
        self.drawing_committed.emit(drawing)
        return drawing

    def clear_all(self):
        self.store.clear()
        k2_logger.info("Cleared all drawings", "DRAWING")

    def preview_drawing(self, context: Optional[ChartContext] = None) -> Optional[Drawing]:
        """The drawing the active gesture would commit right now"""
        gesture = self._gesture
        if not gesture.is_active or gesture.tool is None or gesture.start is None or gesture.current is None:
            return None
        return finalize_drawing(gesture.tool, gesture.start, gesture.current, context)
