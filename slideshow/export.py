"""Deterministic export: step synthetic time at a fixed frame rate and encode every frame."""
from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from PIL import Image

from logging_utils import get_logger

from .encoders import FrameEncoder
from .errors import (
    ExportAbortedError,
    ExportError,
    ExportFailedError,
    ExportInProgressError,
    UnsupportedEnvironmentError,
)
from .image_cache import ImageCache
from .models import Timeline
from .renderer import FrameRenderer
from .resolver import resolve_clamped
from .settings import RenderSettings
from .utils import round_half_up

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]
EncoderFactory = Callable[[RenderSettings], FrameEncoder]


def plan_frame_times(total_ms: float, fps: int) -> List[float]:
    """Synthetic timestamps (ms) for every exported frame, last one clamped to ``total_ms``."""
    if total_ms <= 0:
        return []
    interval = 1000.0 / fps
    total_frames = math.ceil(total_ms / interval)
    return [min(total_ms, float(round_half_up((idx + 1) * interval))) for idx in range(total_frames)]


@dataclass
class ExportArtifact:
    """Encoded video held in memory until the caller saves or revokes it."""

    data: bytes
    mime_type: str
    filename: str
    codec: str
    frame_count: int
    duration_ms: float
    revoked: bool = field(default=False)

    @property
    def size(self) -> int:
        return len(self.data)

    def revoke(self) -> None:
        self.data = b""
        self.revoked = True

    def save(self, path: Path | str) -> Path:
        if self.revoked:
            raise ExportError("Export artifact has been revoked")
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.data)
        return target


class ExportDriver:
    """Render a timeline once at a fixed frame rate and hand each frame to an encoder.

    Only one export may run at a time. Each export owns its off-screen surface
    and image cache; both are released when the export ends, whether it
    succeeds, fails or is aborted.
    """

    def __init__(self, settings: RenderSettings, encoder_factory: Optional[EncoderFactory] = None) -> None:
        self.settings = settings
        if encoder_factory is None:
            from encoder_factory import make_encoder  # lazy import

            encoder_factory = make_encoder
        self._encoder_factory = encoder_factory
        self._in_progress = False
        self._abort_requested = False
        self._artifact: Optional[ExportArtifact] = None

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def artifact(self) -> Optional[ExportArtifact]:
        return self._artifact

    def abort(self) -> None:
        if self._in_progress:
            logger.info("Abort requested for in-flight export")
            self._abort_requested = True

    def release_artifact(self) -> None:
        if self._artifact is not None:
            self._artifact.revoke()
            self._artifact = None

    async def export(self, timeline: Timeline, *, progress: Optional[ProgressCallback] = None) -> ExportArtifact:
        if self._in_progress:
            raise ExportInProgressError("An export is already running")
        self._in_progress = True
        self._abort_requested = False
        try:
            self.release_artifact()
            self._artifact = await self._run(timeline, progress)
            return self._artifact
        finally:
            self._in_progress = False
            self._abort_requested = False

    # ------------------------------------------------------------------

    async def _run(self, timeline: Timeline, progress: Optional[ProgressCallback]) -> ExportArtifact:
        cfg = self.settings
        total_ms = timeline.total_duration_ms
        frame_times = plan_frame_times(total_ms, cfg.fps)
        if not frame_times:
            raise ExportFailedError("Timeline is empty; nothing to export")

        surface = self._create_surface()
        cache = ImageCache()
        try:
            # Codec probing shells out to ffmpeg; keep it off the event loop.
            encoder = await asyncio.to_thread(self._encoder_factory, cfg)
            cache.preload(timeline.image_elements())
            renderer = FrameRenderer(font_path=cfg.font_path, image_cache=cache)
            logger.info(
                "Exporting %d frames (%.0f ms at %d fps) with %s",
                len(frame_times),
                total_ms,
                cfg.fps,
                encoder.codec,
            )
            await encoder.start()
            chunks = await self._capture(timeline, frame_times, renderer, surface, encoder, progress)
        finally:
            cache.clear()
            surface.close()

        data = b"".join(chunks)
        logger.info("Export finished: %d bytes, %d frames", len(data), len(frame_times))
        return ExportArtifact(
            data=data,
            mime_type=encoder.mime_type,
            filename=cfg.filename,
            codec=encoder.codec,
            frame_count=len(frame_times),
            duration_ms=total_ms,
        )

    def _create_surface(self) -> Image.Image:
        cfg = self.settings
        try:
            return Image.new("RGBA", (cfg.width, cfg.height), (0, 0, 0, 0))
        except (ValueError, MemoryError) as exc:
            raise UnsupportedEnvironmentError(
                f"Cannot create {cfg.width}x{cfg.height} export surface: {exc}"
            ) from exc

    async def _capture(
        self,
        timeline: Timeline,
        frame_times: List[float],
        renderer: FrameRenderer,
        surface: Image.Image,
        encoder: FrameEncoder,
        progress: Optional[ProgressCallback],
    ) -> List[bytes]:
        total = len(frame_times)
        try:
            for index, t_ms in enumerate(frame_times):
                if self._abort_requested:
                    raise ExportAbortedError("Export aborted")
                renderer.render(resolve_clamped(timeline, t_ms), surface)
                await encoder.write_frame(surface)
                if progress is not None:
                    progress(index + 1, total)
            return await encoder.finish()
        except (ExportError, asyncio.CancelledError):
            await encoder.abort()
            raise
        except OSError as exc:
            await encoder.abort()
            raise ExportFailedError(f"Export failed: {exc}") from exc
