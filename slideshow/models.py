from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

MIN_DURATION_SEC = 1.0
MAX_DURATION_SEC = 60.0
MIN_FONT_SIZE = 12.0
MAX_FONT_SIZE = 160.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class TextElement:
    id: str
    text: str
    x: float = 0.5
    y: float = 0.5
    font_size: float = 48.0
    color: str = "#ffffff"
    align: TextAlign = TextAlign.CENTER

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", clamp(float(self.x), 0.0, 1.0))
        object.__setattr__(self, "y", clamp(float(self.y), 0.0, 1.0))
        object.__setattr__(
            self, "font_size", clamp(float(self.font_size), MIN_FONT_SIZE, MAX_FONT_SIZE)
        )
        object.__setattr__(self, "align", TextAlign(self.align))


ImageSource = Union[bytes, str]


@dataclass(frozen=True)
class ImageElement:
    """Image overlay centred on (x, y); ``width`` is a fraction of the surface width."""

    id: str
    src: ImageSource
    x: float = 0.5
    y: float = 0.5
    width: float = 0.6

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", clamp(float(self.x), 0.0, 1.0))
        object.__setattr__(self, "y", clamp(float(self.y), 0.0, 1.0))
        object.__setattr__(self, "width", clamp(float(self.width), 0.0, 1.0))


Element = Union[TextElement, ImageElement]


@dataclass(frozen=True)
class Slide:
    id: str
    duration_sec: float = 3.0
    background: str = "#0b1021"
    elements: Tuple[Element, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "duration_sec",
            clamp(float(self.duration_sec), MIN_DURATION_SEC, MAX_DURATION_SEC),
        )
        object.__setattr__(self, "elements", tuple(self.elements))
        _ensure_unique_ids(f"slide {self.id} elements", [el.id for el in self.elements])

    @property
    def duration_ms(self) -> float:
        return self.duration_sec * 1000.0


@dataclass(frozen=True)
class Timeline:
    slides: Tuple[Slide, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "slides", tuple(self.slides))
        _ensure_unique_ids("timeline slides", [slide.id for slide in self.slides])

    def __len__(self) -> int:
        return len(self.slides)

    def __iter__(self):
        return iter(self.slides)

    @property
    def total_duration_ms(self) -> float:
        return sum(slide.duration_ms for slide in self.slides)

    def image_elements(self) -> Tuple[ImageElement, ...]:
        return tuple(
            el for slide in self.slides for el in slide.elements if isinstance(el, ImageElement)
        )


@dataclass(frozen=True)
class ResolvedFrame:
    """Active slide and normalized progress for one instant; ``slide`` is None for a blank frame."""

    slide: Optional[Slide]
    local_progress: float = 0.0
    slide_index: int = -1

    @property
    def is_blank(self) -> bool:
        return self.slide is None


def _ensure_unique_ids(label: str, ids) -> None:
    seen = set()
    for item_id in ids:
        if item_id in seen:
            raise ValueError(f"Duplicate id '{item_id}' in {label}")
        seen.add(item_id)
