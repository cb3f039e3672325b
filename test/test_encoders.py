from __future__ import annotations

import asyncio
import shutil
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import encoder_factory  # noqa: E402
from encoder_factory import make_encoder  # noqa: E402
from slideshow.encoders import FFmpegStreamEncoder, MoviePyEncoder  # noqa: E402
from slideshow.errors import UnsupportedEnvironmentError  # noqa: E402
from slideshow.export import ExportDriver  # noqa: E402
from slideshow.ffmpeg_runner import parse_encoder_list, select_codec  # noqa: E402
from slideshow.models import Slide, TextElement, Timeline  # noqa: E402
from slideshow.settings import RenderSettings  # noqa: E402

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libvpx               libvpx VP8 (codec vp8)
 V....D libvpx-vp9           libvpx VP9 (codec vp9)
 A....D aac                  AAC (Advanced Audio Coding)
"""


def test_parse_encoder_list_keeps_video_encoders() -> None:
    assert parse_encoder_list(ENCODERS_OUTPUT) == {"libvpx", "libvpx-vp9"}


def test_select_codec_prefers_vp9_then_falls_back() -> None:
    assert select_codec({"libvpx", "libvpx-vp9"}, "libvpx-vp9", "libvpx") == "libvpx-vp9"
    assert select_codec({"libvpx"}, "libvpx-vp9", "libvpx") == "libvpx"
    with pytest.raises(UnsupportedEnvironmentError):
        select_codec({"libx264"}, "libvpx-vp9", "libvpx")


def test_make_encoder_selects_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(encoder_factory, "resolve_ffmpeg", lambda binary: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder_factory, "moviepy_ffmpeg", lambda: "/opt/imageio/ffmpeg")
    probed: list = []

    def probe(binary: str) -> set:
        probed.append(binary)
        return {"libvpx"}

    stream = make_encoder(RenderSettings(), probe=probe)
    assert isinstance(stream, FFmpegStreamEncoder)
    assert stream.codec == "libvpx"
    assert stream.build_command()[-3:] == ["-f", "webm", "pipe:1"]

    moviepy = make_encoder(RenderSettings(encoder="moviepy"), probe=probe)
    assert isinstance(moviepy, MoviePyEncoder)
    assert probed == ["/usr/bin/ffmpeg", "/opt/imageio/ffmpeg"]


def test_make_encoder_without_ffmpeg() -> None:
    with pytest.raises(UnsupportedEnvironmentError):
        make_encoder(RenderSettings(ffmpeg_binary="definitely-not-ffmpeg-binary"))


def test_unknown_backend_rejected() -> None:
    with pytest.raises(UnsupportedEnvironmentError):
        make_encoder(RenderSettings(encoder="gstreamer"))


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
def test_ffmpeg_stream_export_produces_webm() -> None:
    settings = RenderSettings(width=64, height=36, fps=10, bitrate="200k")
    timeline = Timeline(
        slides=(Slide(id="s", duration_sec=1, background="#223344", elements=(TextElement(id="t", text="Hi", font_size=12),)),)
    )
    artifact = asyncio.run(ExportDriver(settings).export(timeline))
    assert artifact.frame_count == 10
    assert artifact.data[:4] == b"\x1a\x45\xdf\xa3"
    assert artifact.codec in {"libvpx-vp9", "libvpx"}
