"""
Transform Controller

Owns the accumulated horizontal pan/zoom transform. Applying a transform only
moves already drawn items through a rescaled copy of the base time scale; the
Scale Engine is never re-run and the base scale is never mutated.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from k2_chart.utilities.logger import k2_logger

from .layers import ChartContext
from .mode_pass import reposition_mode
from .scales import LinearScale
from .static_pass import reposition_static


ZOOM_SCALE_EXTENT = (0.5, 10.0)
ZOOM_IN_FACTOR = 1.2
ZOOM_OUT_FACTOR = 0.8
# one standard wheel notch (120) zooms by 2 ** 0.2
WHEEL_ZOOM_STEP = 0.2


@dataclass(frozen=True)
class ViewTransform:
    """Horizontal translate x and scale k, applied as x' = x * k + translate"""
    x: float = 0.0
    k: float = 1.0

    @property
    def is_identity(self) -> bool:
        return self.x == 0 and self.k == 1

    def apply_x(self, x):
        return x * self.k + self.x

    def invert_x(self, x):
        return (x - self.x) / self.k

    def rescale_x(self, scale: LinearScale) -> LinearScale:
        """Effective scale under this transform; the base scale itself for identity"""
        if self.is_identity:
            return scale
        r0, r1 = scale.range
        return scale.with_domain((scale.invert(self.invert_x(r0)), scale.invert(self.invert_x(r1))))

    def scale_by(self, factor: float, anchor: float,
                 extent: Tuple[float, float] = ZOOM_SCALE_EXTENT) -> 'ViewTransform':
        """Zoom about a pixel anchor, k clamped silently to the extent"""
        k1 = min(max(self.k * factor, extent[0]), extent[1])
        if k1 == self.k:
            return self
        x1 = anchor - (anchor - self.x) * k1 / self.k
        return ViewTransform(x=x1, k=k1)

    def translate_by(self, dx: float) -> 'ViewTransform':
        if dx == 0:
            return self
        return replace(self, x=self.x + dx)


IDENTITY = ViewTransform()


class TransformController(QObject):
    """Applies the live view transform to the static and mode layers"""

    transform_changed = pyqtSignal(object)  # ViewTransform

    def __init__(self, parent=None):
        super().__init__(parent)
        self._transform = IDENTITY
        self._context: Optional[ChartContext] = None
        self._pan_origin: Optional[Tuple[float, ViewTransform]] = None

    @property
    def transform(self) -> ViewTransform:
        return self._transform

    @property
    def context(self) -> Optional[ChartContext]:
        return self._context

    @property
    def is_panning(self) -> bool:
        return self._pan_origin is not None

    def bind(self, context: Optional[ChartContext]):
        """Attach freshly built layers and re-apply the current transform to them"""
        self._context = context
        if context is not None and not self._transform.is_identity:
            self._reposition()

    def effective_x_scale(self) -> Optional[LinearScale]:
        if self._context is None:
            return None
        return self._transform.rescale_x(self._context.scales.x)

    def effective_band_width(self) -> float:
        if self._context is None:
            return 0.0
        return self._context.scales.band_width * self._transform.k

    def _anchor(self) -> float:
        return self._context.width / 2 if self._context is not None else 0.0

    def zoom_in(self):
        self.set_transform(self._transform.scale_by(ZOOM_IN_FACTOR, self._anchor()))

    def zoom_out(self):
        self.set_transform(self._transform.scale_by(ZOOM_OUT_FACTOR, self._anchor()))

    def reset(self):
        self.set_transform(IDENTITY)

    def wheel_zoom(self, angle_delta: float, anchor_x: float):
        if not angle_delta:
            return
        factor = 2 ** (angle_delta / 120 * WHEEL_ZOOM_STEP)
        self.set_transform(self._transform.scale_by(factor, anchor_x))

    def begin_pan(self, x: float):
        self._pan_origin = (x, self._transform)

    def pan_to(self, x: float):
        if self._pan_origin is None:
            return
        origin_x, origin_transform = self._pan_origin
        self.set_transform(origin_transform.translate_by(x - origin_x))

    def end_pan(self):
        self._pan_origin = None

    def set_transform(self, transform: ViewTransform):
        if transform == self._transform:
            return
        self._transform = transform
        if self._context is not None:
            self._reposition()
        k2_logger.debug(f"View transform x={transform.x:.1f} k={transform.k:.3f}", "TRANSFORM")
        self.transform_changed.emit(transform)

    def _reposition(self):
        x_scale = self.effective_x_scale()
        band_width = self.effective_band_width()
        reposition_static(self._context, x_scale, band_width)
        reposition_mode(self._context, x_scale, band_width)
