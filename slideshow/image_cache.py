"""Session-scoped cache of decoded image elements."""
from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional

from PIL import Image, UnidentifiedImageError

from logging_utils import get_logger

from .models import ImageElement, ImageSource

logger = get_logger(__name__)


class DecodeState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class CachedImage:
    state: DecodeState
    image: Optional[Image.Image] = None

    @property
    def natural_size(self) -> Optional[tuple[int, int]]:
        if self.image is None:
            return None
        return self.image.size


def _read_source(src: ImageSource) -> bytes:
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    text = str(src)
    if text.startswith("data:"):
        header, _, payload = text.partition(",")
        if ";base64" in header:
            return base64.b64decode(payload, validate=False)
        return payload.encode("utf-8")
    return Path(text).expanduser().read_bytes()


def decode_image(src: ImageSource) -> Image.Image:
    data = _read_source(src)
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert("RGBA")


class ImageCache:
    """Decoded images keyed by element id, owned by one render or export session.

    With ``deferred=True`` the first lookup of an element only registers it as
    pending; :meth:`decode_pending` decodes everything registered so far. The
    playback driver calls it between ticks so a new image shows up one frame
    late instead of stalling the frame that first references it.
    """

    def __init__(self, *, deferred: bool = False) -> None:
        self.deferred = deferred
        self._entries: Dict[str, CachedImage] = {}
        self._sources: Dict[str, ImageSource] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, element: ImageElement) -> CachedImage:
        entry = self._entries.get(element.id)
        if entry is not None and self._sources.get(element.id) == element.src:
            return entry
        self._sources[element.id] = element.src
        if self.deferred:
            entry = CachedImage(state=DecodeState.PENDING)
            self._entries[element.id] = entry
            return entry
        return self._decode(element.id, element.src)

    def preload(self, elements: Iterable[ImageElement]) -> None:
        for element in elements:
            entry = self.get(element)
            if entry.state is DecodeState.PENDING:
                self._decode(element.id, element.src)

    def decode_pending(self) -> int:
        pending = [key for key, entry in self._entries.items() if entry.state is DecodeState.PENDING]
        for key in pending:
            self._decode(key, self._sources[key])
        return len(pending)

    def clear(self) -> None:
        for entry in self._entries.values():
            if entry.image is not None:
                entry.image.close()
        self._entries.clear()
        self._sources.clear()

    def _decode(self, element_id: str, src: ImageSource) -> CachedImage:
        try:
            image = decode_image(src)
        except (OSError, UnidentifiedImageError, binascii.Error, ValueError) as exc:
            logger.warning("Image for element %s could not be decoded: %s", element_id, exc)
            entry = CachedImage(state=DecodeState.FAILED)
        else:
            entry = CachedImage(state=DecodeState.READY, image=image)
        self._entries[element_id] = entry
        return entry
