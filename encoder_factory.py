"""Encoder factory for switching between the ffmpeg pipe and MoviePy writers.

The streaming ffmpeg encoder is the default. ``video.encoder = 'moviepy'``
selects the MoviePy writer, which encodes to a temporary file instead of a
pipe. Both probe ffmpeg for a VP9 encoder first and fall back to VP8.
"""
from __future__ import annotations

from typing import Callable, Optional, Set

from logging_utils import get_logger
from slideshow.encoders import FFmpegStreamEncoder, FrameEncoder, MoviePyEncoder
from slideshow.errors import UnsupportedEnvironmentError
from slideshow.ffmpeg_runner import list_encoders, resolve_ffmpeg, select_codec
from slideshow.settings import RenderSettings

logger = get_logger(__name__)


def moviepy_ffmpeg() -> str:
    """Return the ffmpeg binary MoviePy will spawn (bundled with imageio-ffmpeg)."""
    import imageio_ffmpeg

    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except RuntimeError as exc:
        raise UnsupportedEnvironmentError(f"MoviePy ffmpeg binary not found: {exc}") from exc


def make_encoder(
    settings: RenderSettings,
    *,
    probe: Optional[Callable[[str], Set[str]]] = None,
) -> FrameEncoder:
    backend = settings.encoder.lower()
    if backend not in {"ffmpeg", "moviepy"}:
        raise UnsupportedEnvironmentError(f"Unknown encoder backend: {settings.encoder}")

    if backend == "moviepy":
        binary = moviepy_ffmpeg()
    else:
        binary = resolve_ffmpeg(settings.ffmpeg_binary)
    available = (probe or list_encoders)(binary)
    codec = select_codec(available, settings.codec, settings.fallback_codec)
    if codec != settings.codec:
        logger.warning("Encoder %s unavailable; falling back to %s", settings.codec, codec)

    if backend == "moviepy":
        return MoviePyEncoder(settings, codec=codec)
    return FFmpegStreamEncoder(settings, codec=codec, binary=binary)
