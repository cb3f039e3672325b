"""
Slide timeline compositor.

Resolves a timeline of slides to frames, plays them back against the wall
clock, and exports them deterministically to a WebM video.
"""

from __future__ import annotations

__all__ = [
    "ExportDriver",
    "FrameRenderer",
    "PlaybackDriver",
    "Timeline",
    "load_timeline",
    "resolve",
]

from .export import ExportDriver
from .models import Timeline
from .playback import PlaybackDriver
from .renderer import FrameRenderer
from .resolver import resolve
from .timeline_loader import load_timeline
