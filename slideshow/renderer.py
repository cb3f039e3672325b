"""Paint one resolved frame onto a Pillow surface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from logging_utils import get_logger

from .image_cache import DecodeState, ImageCache
from .models import ImageElement, ResolvedFrame, TextAlign, TextElement
from .utils import load_font, parse_color, round_half_up

logger = get_logger(__name__)

FADE_FRACTION = 0.1
WRAP_WIDTH_RATIO = 0.9
LINE_HEIGHT_RATIO = 1.3

_ANCHORS = {
    TextAlign.LEFT: "lm",
    TextAlign.CENTER: "mm",
    TextAlign.RIGHT: "rm",
}


@dataclass(frozen=True)
class Placement:
    left: int
    top: int
    width: int
    height: int
    scale: float


def fade_opacity(local_progress: float) -> float:
    """Uniform slide fade-in: 0 at the slide start, 1 from 10% of its duration on."""
    return max(0.0, min(1.0, local_progress / FADE_FRACTION))


def wrap_text(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Greedy word wrap. Words are never split, so an over-wide word gets its own line."""
    lines: List[str] = []
    line = ""
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if measure(candidate) > max_width and line:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def line_offsets(line_count: int, anchor_y: float, line_height: float) -> List[float]:
    start = anchor_y - (line_count - 1) * line_height / 2
    return [start + idx * line_height for idx in range(line_count)]


def image_placement(
    element: ImageElement,
    natural_size: Optional[Tuple[int, int]],
    surface_size: Tuple[int, int],
) -> Placement:
    """Fit an image into its width fraction without ever upscaling it.

    When the image is not decoded yet its natural size is unknown and the
    fitted width is used for both dimensions.
    """
    surface_w, surface_h = surface_size
    max_w = round_half_up(element.width * surface_w)
    if natural_size and natural_size[0] > 0:
        natural_w, natural_h = natural_size
        scale = min(1.0, max_w / natural_w)
    else:
        natural_w = natural_h = max_w
        scale = 1.0
    draw_w = round_half_up(natural_w * scale)
    draw_h = round_half_up(natural_h * scale)
    cx = round_half_up(element.x * surface_w)
    cy = round_half_up(element.y * surface_h)
    return Placement(
        left=cx - round_half_up(draw_w / 2),
        top=cy - round_half_up(draw_h / 2),
        width=draw_w,
        height=draw_h,
        scale=scale,
    )


class FrameRenderer:
    """Draw a resolved frame: background, then every element in list order."""

    def __init__(self, *, font_path: Optional[str] = None, image_cache: Optional[ImageCache] = None) -> None:
        self.font_path = font_path
        self.image_cache = image_cache if image_cache is not None else ImageCache()

    def render(self, frame: ResolvedFrame, surface: Image.Image) -> Image.Image:
        width, height = surface.size
        surface.paste((0, 0, 0, 0), (0, 0, width, height))
        slide = frame.slide
        if slide is None:
            return surface

        surface.paste(parse_color(slide.background) + (255,), (0, 0, width, height))
        opacity = fade_opacity(frame.local_progress)
        if opacity <= 0.0:
            return surface

        for element in slide.elements:
            if isinstance(element, TextElement):
                layer = self._draw_text(element, surface.size)
            elif isinstance(element, ImageElement):
                layer = self._draw_image(element, surface.size)
            else:
                raise TypeError(f"Unsupported element type: {type(element).__name__}")
            if layer is not None:
                _composite(surface, layer, opacity)
        return surface

    # ------------------------------------------------------------------

    def _draw_text(self, element: TextElement, size: Tuple[int, int]) -> Optional[Image.Image]:
        width, height = size
        font_px = round_half_up(element.font_size)
        font = load_font(self.font_path, font_px)
        lines = wrap_text(element.text, font.getlength, round_half_up(width * WRAP_WIDTH_RATIO))
        if not lines:
            return None

        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        fill = parse_color(element.color, fallback=(255, 255, 255)) + (255,)
        anchor_x = round_half_up(element.x * width)
        anchor_y = round_half_up(element.y * height)
        for line, y in zip(lines, line_offsets(len(lines), anchor_y, font_px * LINE_HEIGHT_RATIO)):
            _draw_line(draw, (anchor_x, y), line, font, fill, _ANCHORS[element.align])
        return layer

    def _draw_image(self, element: ImageElement, size: Tuple[int, int]) -> Optional[Image.Image]:
        entry = self.image_cache.get(element)
        if entry.state is DecodeState.FAILED:
            return None
        placement = image_placement(element, entry.natural_size, size)
        if entry.image is None or placement.width <= 0 or placement.height <= 0:
            return None

        image = entry.image
        if (placement.width, placement.height) != image.size:
            image = image.resize((placement.width, placement.height), Image.LANCZOS)
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        layer.paste(image, (placement.left, placement.top), image)
        return layer


def _draw_line(
    draw: ImageDraw.ImageDraw,
    xy: Tuple[float, float],
    text: str,
    font: ImageFont.ImageFont,
    fill: Tuple[int, int, int, int],
    anchor: str,
) -> None:
    try:
        draw.text(xy, text, font=font, fill=fill, anchor=anchor)
    except ValueError:
        # Bitmap fonts reject anchors; fall back to a manual middle-line offset.
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x, y = xy
        if anchor[0] == "m":
            x -= (right - left) / 2
        elif anchor[0] == "r":
            x -= right - left
        draw.text((x, y - (bottom - top) / 2), text, font=font, fill=fill)


def _composite(surface: Image.Image, layer: Image.Image, opacity: float) -> None:
    if opacity < 1.0:
        alpha = layer.getchannel("A").point(lambda a: round_half_up(a * opacity))
        layer.putalpha(alpha)
    surface.alpha_composite(layer)
