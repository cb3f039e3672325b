from __future__ import annotations

import math
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from PIL import ImageColor, ImageFont

_FALLBACK_FONTS = ("DejaVuSans.ttf", "Arial.ttf")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def short_id() -> str:
    return secrets.token_hex(4)[:7]


def parse_color(value: str | None, fallback: Tuple[int, int, int] = (0, 0, 0)) -> Tuple[int, int, int]:
    if not value:
        return fallback
    text = value.strip()
    if len(text) == 9 and text.startswith("#"):
        text = text[:7]
    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        return fallback
    return rgb[0], rgb[1], rgb[2]


@lru_cache(maxsize=64)
def load_font(path: str | None, size: int) -> ImageFont.ImageFont:
    if path:
        try:
            font_path = Path(path).expanduser()
            if font_path.exists():
                return ImageFont.truetype(str(font_path), size=size)
        except OSError:
            pass
    for name in _FALLBACK_FONTS:
        try:
            return ImageFont.truetype(name, size=size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)
