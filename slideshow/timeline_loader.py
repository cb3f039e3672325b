from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

from logging_utils import get_logger

from .errors import TimelineError
from .models import Element, ImageElement, Slide, TextAlign, TextElement, Timeline
from .utils import short_id

logger = get_logger(__name__)


def _extract_float(raw: Dict[str, Any], key: str, default: float, *, owner: str) -> float:
    value = raw.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise TimelineError(f"{owner}.{key} must be a number")


def _parse_text(raw: Dict[str, Any], element_id: str, owner: str) -> TextElement:
    text = raw.get("text", "")
    if not isinstance(text, str):
        raise TimelineError(f"{owner}.text must be a string")
    align = str(raw.get("align", "center")).lower()
    try:
        text_align = TextAlign(align)
    except ValueError:
        raise TimelineError(f"{owner}.align must be one of left, center, right")
    return TextElement(
        id=element_id,
        text=text,
        x=_extract_float(raw, "x", 0.5, owner=owner),
        y=_extract_float(raw, "y", 0.5, owner=owner),
        font_size=_extract_float(raw, "font_size", raw.get("fontSize", 48), owner=owner),
        color=str(raw.get("color") or "#ffffff"),
        align=text_align,
    )


def _parse_image(raw: Dict[str, Any], element_id: str, owner: str, *, base_dir: Path) -> ImageElement:
    src = raw.get("src")
    if not isinstance(src, str) or not src.strip():
        raise TimelineError(f"{owner}.src must be a data URL or an image path")
    src = src.strip()
    if not src.startswith("data:"):
        path = Path(src).expanduser()
        if not path.is_absolute():
            path = (base_dir / path).resolve()
        src = str(path)
    return ImageElement(
        id=element_id,
        src=src,
        x=_extract_float(raw, "x", 0.5, owner=owner),
        y=_extract_float(raw, "y", 0.5, owner=owner),
        width=_extract_float(raw, "width", 0.6, owner=owner),
    )


def _parse_element(raw: Any, *, owner: str, base_dir: Path) -> Element:
    if not isinstance(raw, dict):
        raise TimelineError(f"{owner} must be an object")
    element_id = str(raw.get("id") or short_id())
    kind = str(raw.get("kind", "text")).lower()
    if kind == "text":
        return _parse_text(raw, element_id, owner)
    if kind == "image":
        return _parse_image(raw, element_id, owner, base_dir=base_dir)
    raise TimelineError(f"{owner}.kind must be 'text' or 'image' (got {kind!r})")


def _parse_slide(raw: Any, *, index: int, base_dir: Path) -> Slide:
    if not isinstance(raw, dict):
        raise TimelineError(f"Slide {index} must be an object")
    slide_id = str(raw.get("id") or short_id())
    owner = f"slides[{index}]"
    duration = _extract_float(raw, "duration_sec", raw.get("durationSec", 3), owner=owner)
    elements_raw = raw.get("elements", [])
    if not isinstance(elements_raw, (list, tuple)):
        raise TimelineError(f"{owner}.elements must be an array")
    elements = [
        _parse_element(item, owner=f"{owner}.elements[{pos}]", base_dir=base_dir)
        for pos, item in enumerate(elements_raw)
    ]
    try:
        return Slide(
            id=slide_id,
            duration_sec=duration,
            background=str(raw.get("background") or "#0b1021"),
            elements=tuple(elements),
        )
    except ValueError as exc:
        raise TimelineError(str(exc)) from exc


def parse_timeline(data: Any, *, base_dir: Path | None = None) -> Timeline:
    """Build a timeline from a decoded document: a slide list or ``{"slides": [...]}``."""
    root = base_dir or Path.cwd()
    slides_raw = data.get("slides") if isinstance(data, dict) else data
    if slides_raw is None:
        slides_raw = []
    if not isinstance(slides_raw, list):
        raise TimelineError("Timeline document must be a list of slides or contain 'slides'")
    slides: List[Slide] = [
        _parse_slide(raw, index=idx, base_dir=root) for idx, raw in enumerate(slides_raw)
    ]
    try:
        return Timeline(slides=tuple(slides))
    except ValueError as exc:
        raise TimelineError(str(exc)) from exc


def load_timeline(path: Path | str) -> Timeline:
    source = Path(path).expanduser().resolve()
    if not source.exists():
        raise FileNotFoundError(f"Timeline file not found: {source}")
    text = source.read_text(encoding="utf-8")
    try:
        if source.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise TimelineError(f"Could not parse timeline {source}: {exc}") from exc
    timeline = parse_timeline(data, base_dir=source.parent)
    logger.info("Loaded timeline %s: %d slides, %.0f ms", source.name, len(timeline), timeline.total_duration_ms)
    return timeline
