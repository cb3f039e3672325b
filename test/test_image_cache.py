from __future__ import annotations

import base64
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from slideshow.image_cache import DecodeState, ImageCache  # noqa: E402
from slideshow.models import ImageElement  # noqa: E402


def test_decodes_data_url(png_bytes: bytes) -> None:
    url = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    entry = ImageCache().get(ImageElement(id="a", src=url))
    assert entry.state is DecodeState.READY
    assert entry.natural_size == (40, 20)


def test_decodes_file_path(tmp_path: Path, png_bytes: bytes) -> None:
    path = tmp_path / "pic.png"
    path.write_bytes(png_bytes)
    entry = ImageCache().get(ImageElement(id="a", src=str(path)))
    assert entry.natural_size == (40, 20)


def test_missing_file_marks_failed(tmp_path: Path) -> None:
    entry = ImageCache().get(ImageElement(id="a", src=str(tmp_path / "missing.png")))
    assert entry.state is DecodeState.FAILED
    assert entry.natural_size is None


def test_entries_are_cached_by_element_id(png_bytes: bytes) -> None:
    cache = ImageCache()
    element = ImageElement(id="a", src=png_bytes)
    assert cache.get(element) is cache.get(element)
    assert len(cache) == 1


def test_changed_source_is_decoded_again(png_bytes: bytes) -> None:
    cache = ImageCache()
    first = cache.get(ImageElement(id="a", src=png_bytes))
    second = cache.get(ImageElement(id="a", src=b"garbage"))
    assert first.state is DecodeState.READY
    assert second.state is DecodeState.FAILED


def test_deferred_cache_decodes_on_request(png_bytes: bytes) -> None:
    cache = ImageCache(deferred=True)
    element = ImageElement(id="a", src=png_bytes)
    assert cache.get(element).state is DecodeState.PENDING
    assert cache.decode_pending() == 1
    assert cache.get(element).state is DecodeState.READY


def test_preload_and_clear(png_bytes: bytes) -> None:
    cache = ImageCache(deferred=True)
    cache.preload([ImageElement(id="a", src=png_bytes), ImageElement(id="b", src=png_bytes)])
    assert cache.decode_pending() == 0
    cache.clear()
    assert len(cache) == 0
