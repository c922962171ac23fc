"""
Render scheduling with four dirty flags.

DATA (candles, timeframe or container size), MODE, DRAWINGS and GESTURE each
own exactly one render function. Marking DATA marks the other three as well,
since the static rebuild replaces their layers; nothing else cascades.
"""

from contextlib import contextmanager
from enum import IntEnum
from typing import Callable, Dict, List

from k2_chart.utilities.logger import k2_logger


class RenderPass(IntEnum):
    DATA = 0
    MODE = 1
    DRAWINGS = 2
    GESTURE = 3


class RenderScheduler:
    """Runs dirty passes in DATA -> MODE -> DRAWINGS -> GESTURE order"""

    def __init__(self, renderers: Dict[RenderPass, Callable[[], None]]):
        self._renderers = dict(renderers)
        self._dirty = set()
        self._batch_depth = 0
        self._flushing = False
        self.render_counts: Dict[RenderPass, int] = {p: 0 for p in RenderPass}

    def is_dirty(self, render_pass: RenderPass) -> bool:
        return render_pass in self._dirty

    def mark_dirty(self, *passes: RenderPass):
        for render_pass in passes:
            if render_pass == RenderPass.DATA:
                self._dirty.update(RenderPass)
            else:
                self._dirty.add(render_pass)
        if self._batch_depth == 0:
            self.flush()

    @contextmanager
    def batch(self):
        """Coalesce every mark made inside the block into a single flush"""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self.flush()

    def flush(self) -> List[RenderPass]:
        if self._flushing:
            return []

        ran = []
        self._flushing = True
        try:
            while self._dirty:
                render_pass = min(self._dirty)
                self._dirty.discard(render_pass)
                renderer = self._renderers.get(render_pass)
                if renderer is None:
                    continue
                try:
                    renderer()
                except Exception as e:
                    k2_logger.error(f"{render_pass.name} render failed: {str(e)}", "SCHEDULER")
                self.render_counts[render_pass] += 1
                ran.append(render_pass)
        finally:
            self._flushing = False
        return ran
