from __future__ import annotations

import shutil
import subprocess
from typing import List, Sequence, Set

from logging_utils import get_logger

from .errors import UnsupportedEnvironmentError

logger = get_logger(__name__)


def resolve_ffmpeg(binary: str = "ffmpeg") -> str:
    path = shutil.which(binary)
    if not path:
        raise UnsupportedEnvironmentError(f"ffmpeg executable not found: {binary}")
    return path


def base_command(binary: str) -> List[str]:
    # Keep ffmpeg quiet: only errors; no stats; no banner
    return [binary, "-hide_banner", "-loglevel", "error", "-nostats"]


def format_command(cmd: Sequence[str]) -> str:
    return " ".join(a if " " not in a else f"'{a}'" for a in cmd)


def list_encoders(binary: str) -> Set[str]:
    """Return the names of the video encoders compiled into ``binary``."""
    cmd = [binary, "-hide_banner", "-encoders"]
    logger.debug("FFmpeg: %s", format_command(cmd))
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except OSError as exc:
        raise UnsupportedEnvironmentError(f"Failed to run ffmpeg: {exc}") from exc
    if proc.returncode != 0:
        for line in (proc.stderr or "").splitlines()[-20:]:
            logger.error("ffmpeg: %s", line)
        raise UnsupportedEnvironmentError(f"ffmpeg -encoders failed with exit code {proc.returncode}")
    return parse_encoder_list(proc.stdout)


def parse_encoder_list(output: str) -> Set[str]:
    encoders: Set[str] = set()
    in_table = False
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith("------"):
            in_table = True
            continue
        if not in_table or not stripped:
            continue
        parts = stripped.split()
        if len(parts) >= 2 and parts[0].startswith("V"):
            encoders.add(parts[1])
    return encoders


def select_codec(available: Set[str], preferred: str, fallback: str) -> str:
    for codec in (preferred, fallback):
        if codec and codec in available:
            return codec
    raise UnsupportedEnvironmentError(
        f"No supported video encoder available (tried {preferred}, {fallback})"
    )
