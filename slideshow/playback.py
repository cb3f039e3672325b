"""Wall-clock playback loop for interactive preview."""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from PIL import Image

from logging_utils import get_logger

from .image_cache import ImageCache
from .models import ResolvedFrame, Timeline
from .renderer import FrameRenderer
from .resolver import resolve
from .settings import RenderSettings

logger = get_logger(__name__)

Clock = Callable[[], float]
FrameSink = Callable[[Image.Image, ResolvedFrame], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PlaybackDriver:
    """Loop a timeline against the wall clock, rendering onto an on-screen surface.

    Elapsed time is derived from a captured start offset and wraps modulo the
    total duration. Pausing freezes it; resuming recalibrates the offset so
    playback continues from where it stopped.
    """

    def __init__(
        self,
        timeline: Timeline,
        settings: RenderSettings,
        *,
        clock: Clock = monotonic_ms,
        on_frame: Optional[FrameSink] = None,
    ) -> None:
        self.settings = settings
        self.surface = Image.new("RGBA", (settings.width, settings.height), (0, 0, 0, 0))
        self.image_cache = ImageCache(deferred=True)
        self.renderer = FrameRenderer(font_path=settings.font_path, image_cache=self.image_cache)
        self.on_frame = on_frame
        self._clock = clock
        self._timeline = timeline
        self._playing = False
        self._start_offset = 0.0
        self._paused_elapsed = 0.0

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    def set_timeline(self, timeline: Timeline) -> None:
        elapsed = self.elapsed_ms
        self._timeline = timeline
        self.seek(elapsed)

    @property
    def total_ms(self) -> float:
        return self._timeline.total_duration_ms

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def elapsed_ms(self) -> float:
        if not self._playing:
            return self._paused_elapsed
        return self._wrap(self._clock() - self._start_offset)

    def play(self) -> None:
        if self._playing:
            return
        self._start_offset = self._clock() - self._paused_elapsed
        self._playing = True
        logger.debug("Playback started at %.0f ms", self._paused_elapsed)

    def pause(self) -> None:
        if not self._playing:
            return
        self._paused_elapsed = self.elapsed_ms
        self._playing = False
        logger.debug("Playback paused at %.0f ms", self._paused_elapsed)

    def toggle(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def seek(self, elapsed_ms: float) -> None:
        target = self._wrap(max(0.0, float(elapsed_ms)))
        self._paused_elapsed = target
        if self._playing:
            self._start_offset = self._clock() - target

    def reset(self) -> None:
        self.seek(0.0)

    def tick(self) -> ResolvedFrame:
        """Render the current instant and hand the surface to ``on_frame``."""
        timeline = self._timeline
        frame = resolve(timeline, self.elapsed_ms)
        self.renderer.render(frame, self.surface)
        if self.on_frame is not None:
            self.on_frame(self.surface, frame)
        self.image_cache.decode_pending()
        return frame

    async def run(self, *, refresh_hz: float = 60.0, max_ticks: Optional[int] = None) -> int:
        """Tick at ``refresh_hz`` until paused or ``max_ticks`` frames were presented."""
        interval = 1.0 / refresh_hz
        ticks = 0
        while self._playing and (max_ticks is None or ticks < max_ticks):
            self.tick()
            ticks += 1
            await asyncio.sleep(interval)
        return ticks

    def close(self) -> None:
        self._playing = False
        self.image_cache.clear()
        self.surface.close()

    def _wrap(self, elapsed: float) -> float:
        total = self.total_ms
        if total <= 0:
            return 0.0
        return elapsed % total
