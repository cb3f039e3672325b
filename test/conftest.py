from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from slideshow.settings import RenderSettings  # noqa: E402


@pytest.fixture
def small_settings() -> RenderSettings:
    return RenderSettings(width=160, height=90, fps=30)


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()
