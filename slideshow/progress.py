from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TextIO


def format_ms(ms: float) -> str:
    seconds = max(0, int(round(ms / 1000.0)))
    m, s = divmod(seconds, 60)
    return f"{m:02d}:{s:02d}"


@dataclass
class ConsoleBar:
    """Single-line frame counter bar for exports."""

    total_frames: int
    label: str = "Export"
    width: int = 24
    stream: TextIO = sys.stderr

    def __post_init__(self) -> None:
        self.start_time = time.time()
        self.last_render = 0.0
        self._draw(0)

    def update(self, frame: int, total: int | None = None) -> None:
        if total is not None:
            self.total_frames = total
        now = time.time()
        # Rate-limit updates to avoid flicker (10 fps max).
        if now - self.last_render < 0.1 and frame < self.total_frames:
            return
        self.last_render = now
        self._draw(frame)

    def finish(self) -> None:
        self._draw(self.total_frames)
        self.stream.write("\n")
        self.stream.flush()

    def _draw(self, frame: int) -> None:
        total = max(self.total_frames, 1)
        frac = min(max(frame, 0), total) / total
        filled = int(round(self.width * frac))
        bar = "█" * filled + "·" * (self.width - filled)
        elapsed = (time.time() - self.start_time) * 1000.0
        eta = 0.0 if frac <= 0.0001 else elapsed * (1.0 / frac - 1.0)
        msg = (
            f"[{bar}] {int(frac*100):3d}% | frame {frame}/{self.total_frames} | "
            f"{format_ms(elapsed)} | ETA {format_ms(eta)} | {self.label}"
        )
        self.stream.write("\r" + msg)
        self.stream.flush()
