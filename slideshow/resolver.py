"""Map an elapsed time onto the active slide of a timeline."""
from __future__ import annotations

from .models import ResolvedFrame, Timeline

BLANK = ResolvedFrame(slide=None)


def total_duration_ms(timeline: Timeline) -> float:
    return timeline.total_duration_ms


def resolve(timeline: Timeline, elapsed_ms: float) -> ResolvedFrame:
    """Return the slide containing ``elapsed_ms`` and the progress within it.

    Slides are laid end to end in order. The first slide whose cumulative end
    is strictly greater than the queried time wins, so an instant that falls
    exactly on a boundary belongs to the following slide. Times at or past the
    end of the timeline, and every time on an empty timeline, resolve to a
    blank frame.
    """
    elapsed = max(0.0, float(elapsed_ms))
    start = 0.0
    for index, slide in enumerate(timeline.slides):
        duration = slide.duration_ms
        if duration <= 0:
            continue
        end = start + duration
        if elapsed < end:
            progress = (elapsed - start) / duration
            return ResolvedFrame(slide=slide, local_progress=min(max(progress, 0.0), 1.0), slide_index=index)
        start = end
    return BLANK


def resolve_clamped(timeline: Timeline, elapsed_ms: float) -> ResolvedFrame:
    """Like :func:`resolve` but pins times past the end to the last slide at progress 1."""
    resolved = resolve(timeline, elapsed_ms)
    if resolved.slide is None and timeline.slides:
        last_index = len(timeline.slides) - 1
        return ResolvedFrame(slide=timeline.slides[last_index], local_progress=1.0, slide_index=last_index)
    return resolved
