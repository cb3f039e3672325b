from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config_loader import load_config  # noqa: E402
from slideshow.settings import resolve_render_settings  # noqa: E402


def test_load_config_resolves_paths(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "video:\n  fps: 24\n  encoder: MoviePy\noutput:\n  directory: out\n  filename: clip.webm\n"
        "logging:\n  level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.output_dir == (tmp_path / "out").resolve()
    assert config.log_file == (tmp_path / "logs" / "run.log").resolve()
    assert config.logging_level == "DEBUG"

    settings = resolve_render_settings(config.raw)
    assert settings.fps == 24
    assert settings.encoder == "moviepy"
    assert settings.filename == "clip.webm"
    assert (settings.width, settings.height) == (1280, 720)
    assert settings.bitrate == "6M"


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_config(None, project_root=tmp_path)
    settings = resolve_render_settings(config.raw)
    assert settings.fps == 30
    assert settings.codec == "libvpx-vp9"
    assert config.output_filename == "video.webm"


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
