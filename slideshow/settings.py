from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
DEFAULT_FPS = 30


@dataclass(frozen=True)
class RenderSettings:
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    fps: int = DEFAULT_FPS
    codec: str = "libvpx-vp9"
    fallback_codec: str = "libvpx"
    bitrate: Optional[str] = "6M"
    encoder: str = "ffmpeg"
    ffmpeg_binary: str = "ffmpeg"
    font_path: Optional[str] = None
    filename: str = "video.webm"

    @property
    def frame_interval_ms(self) -> float:
        return 1000.0 / self.fps


def resolve_render_settings(config: Dict[str, Any] | None) -> RenderSettings:
    cfg = config if isinstance(config, dict) else {}
    video_cfg = cfg.get("video", {}) or {}
    text_cfg = cfg.get("text", {}) or {}
    output_cfg = cfg.get("output", {}) or {}
    return RenderSettings(
        width=int(video_cfg.get("width", DEFAULT_WIDTH)),
        height=int(video_cfg.get("height", DEFAULT_HEIGHT)),
        fps=int(video_cfg.get("fps", DEFAULT_FPS)),
        codec=str(video_cfg.get("codec", "libvpx-vp9")),
        fallback_codec=str(video_cfg.get("fallback_codec", "libvpx")),
        bitrate=str(video_cfg.get("bitrate", "6M")) if video_cfg.get("bitrate", "6M") else None,
        encoder=str(video_cfg.get("encoder", "ffmpeg")).lower(),
        ffmpeg_binary=str(video_cfg.get("ffmpeg_binary", "ffmpeg")),
        font_path=text_cfg.get("font_path") or None,
        filename=str(output_cfg.get("filename", "video.webm")),
    )
