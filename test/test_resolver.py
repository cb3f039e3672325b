from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from slideshow.models import Slide, Timeline  # noqa: E402
from slideshow.resolver import resolve, resolve_clamped, total_duration_ms  # noqa: E402


def _timeline(*durations: float) -> Timeline:
    return Timeline(slides=tuple(Slide(id=f"s{idx}", duration_sec=d) for idx, d in enumerate(durations)))


def test_empty_timeline_is_always_blank() -> None:
    timeline = Timeline()
    assert total_duration_ms(timeline) == 0
    for t in (0, 10, 5000):
        frame = resolve(timeline, t)
        assert frame.slide is None
        assert frame.is_blank


def test_second_slide_selected_mid_way() -> None:
    timeline = _timeline(2, 1)
    frame = resolve(timeline, 2500)
    assert frame.slide is timeline.slides[1]
    assert frame.slide_index == 1
    assert frame.local_progress == pytest.approx(0.5)


@pytest.mark.parametrize("durations", [(1,), (2, 1), (3, 1.5, 2), (1, 1, 1, 1)])
def test_boundaries_belong_to_the_following_slide(durations) -> None:
    timeline = _timeline(*durations)
    boundary = 0.0
    for k, duration in enumerate(durations):
        boundary += duration * 1000
        before = resolve(timeline, boundary - 1)
        assert before.slide_index == k
        assert 0.9 < before.local_progress < 1.0

        at = resolve(timeline, boundary)
        if k == len(durations) - 1:
            assert at.slide is None
        else:
            assert at.slide_index == k + 1
            assert at.local_progress == 0.0


def test_start_of_timeline_has_zero_progress() -> None:
    frame = resolve(_timeline(3), 0)
    assert frame.slide_index == 0
    assert frame.local_progress == 0.0


def test_negative_time_is_treated_as_zero() -> None:
    frame = resolve(_timeline(3), -50)
    assert frame.slide_index == 0
    assert frame.local_progress == 0.0


def test_clamped_resolution_pins_end_to_last_slide() -> None:
    timeline = _timeline(2, 1)
    frame = resolve_clamped(timeline, 3000)
    assert frame.slide is timeline.slides[-1]
    assert frame.local_progress == 1.0
    assert resolve_clamped(Timeline(), 0).slide is None


def test_durations_are_clamped_to_supported_range() -> None:
    assert Slide(id="a", duration_sec=0).duration_sec == 1.0
    assert Slide(id="b", duration_sec=600).duration_sec == 60.0


def test_duplicate_slide_ids_rejected() -> None:
    with pytest.raises(ValueError):
        Timeline(slides=(Slide(id="x"), Slide(id="x")))
