"""Push-based video encoders fed one rendered frame at a time."""
from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol

import numpy as np
from PIL import Image

from logging_utils import get_logger

from .errors import ExportFailedError, UnsupportedEnvironmentError
from .ffmpeg_runner import base_command, format_command
from .settings import RenderSettings

logger = get_logger(__name__)

WEBM_MIME = "video/webm"
_READ_SIZE = 64 * 1024
_READER_TIMEOUT = 5.0


class FrameEncoder(Protocol):
    mime_type: str
    codec: str

    async def start(self) -> None: ...

    async def write_frame(self, frame: Image.Image) -> None: ...

    async def finish(self) -> List[bytes]: ...

    async def abort(self) -> None: ...


def _to_rgb(frame: Image.Image, size: tuple[int, int]) -> Image.Image:
    if frame.size != size:
        raise ExportFailedError(f"Frame size {frame.size} does not match encoder size {size}")
    return frame.convert("RGB")


class FFmpegStreamEncoder:
    """Stream raw RGB frames into ffmpeg and collect the WebM it writes to stdout."""

    mime_type = WEBM_MIME

    def __init__(self, settings: RenderSettings, *, codec: str, binary: str) -> None:
        self.settings = settings
        self.codec = codec
        self.binary = binary
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._stdout_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._chunks: List[bytes] = []
        self._stderr = ""

    def build_command(self) -> List[str]:
        cfg = self.settings
        cmd = base_command(self.binary) + [
            "-f",
            "rawvideo",
            "-pix_fmt",
            "rgb24",
            "-s",
            f"{cfg.width}x{cfg.height}",
            "-r",
            str(cfg.fps),
            "-i",
            "-",
            "-an",
            "-c:v",
            self.codec,
        ]
        if cfg.bitrate:
            cmd += ["-b:v", cfg.bitrate]
        cmd += ["-pix_fmt", "yuv420p", "-f", "webm", "pipe:1"]
        return cmd

    async def start(self) -> None:
        cmd = self.build_command()
        logger.debug("FFmpeg(stream): %s", format_command(cmd))
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise UnsupportedEnvironmentError(f"Failed to start ffmpeg: {exc}") from exc
        self._stdout_task = asyncio.create_task(self._collect_stdout())
        self._stderr_task = asyncio.create_task(self._collect_stderr())

    async def write_frame(self, frame: Image.Image) -> None:
        proc = self._require_proc()
        if proc.returncode is not None:
            raise ExportFailedError(self._failure_message(proc.returncode))
        data = _to_rgb(frame, (self.settings.width, self.settings.height)).tobytes()
        assert proc.stdin is not None
        try:
            proc.stdin.write(data)
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise ExportFailedError("ffmpeg stopped accepting frames") from exc

    async def finish(self) -> List[bytes]:
        proc = self._require_proc()
        assert proc.stdin is not None
        proc.stdin.close()
        try:
            await proc.stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("ffmpeg closed stdin before flush completed")
        await asyncio.gather(*self._reader_tasks())
        returncode = await proc.wait()
        if returncode != 0:
            self._log_stderr_tail()
            self._chunks.clear()
            raise ExportFailedError(self._failure_message(returncode))
        chunks = list(self._chunks)
        self._chunks.clear()
        return chunks

    async def abort(self) -> None:
        self._chunks.clear()
        proc = self._proc
        if proc is None:
            return
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()
        # Pipes hit EOF once the child is gone; give the readers a moment to drain stderr.
        _, pending = await asyncio.wait(self._reader_tasks(), timeout=_READER_TIMEOUT)
        for task in pending:
            task.cancel()
        await asyncio.gather(*self._reader_tasks(), return_exceptions=True)
        self._chunks.clear()
        self._log_stderr_tail()
        self._proc = None

    # ------------------------------------------------------------------

    def _require_proc(self) -> asyncio.subprocess.Process:
        if self._proc is None:
            raise ExportFailedError("Encoder has not been started")
        return self._proc

    def _reader_tasks(self) -> List[asyncio.Task]:
        return [task for task in (self._stdout_task, self._stderr_task) if task is not None]

    def _log_stderr_tail(self) -> None:
        for line in self._stderr.splitlines()[-50:]:
            logger.error("ffmpeg: %s", line)

    def _failure_message(self, returncode: int) -> str:
        return f"ffmpeg failed with exit code {returncode}"

    async def _collect_stdout(self) -> None:
        assert self._proc is not None and self._proc.stdout is not None
        while True:
            chunk = await self._proc.stdout.read(_READ_SIZE)
            if not chunk:
                break
            self._chunks.append(chunk)

    async def _collect_stderr(self) -> None:
        assert self._proc is not None and self._proc.stderr is not None
        data = await self._proc.stderr.read()
        self._stderr = data.decode("utf-8", errors="replace")


class MoviePyEncoder:
    """Encode through MoviePy's ffmpeg writer into a temporary file."""

    mime_type = WEBM_MIME

    def __init__(self, settings: RenderSettings, *, codec: str) -> None:
        self.settings = settings
        self.codec = codec
        self._writer = None
        self._path: Optional[Path] = None

    async def start(self) -> None:
        from moviepy.video.io.ffmpeg_writer import FFMPEG_VideoWriter  # lazy import

        fd, name = tempfile.mkstemp(prefix="slideshow_", suffix=".webm")
        os.close(fd)
        self._path = Path(name)
        cfg = self.settings
        try:
            self._writer = FFMPEG_VideoWriter(
                str(self._path),
                (cfg.width, cfg.height),
                cfg.fps,
                codec=self.codec,
                bitrate=cfg.bitrate,
            )
        except OSError as exc:
            self._remove_temp()
            raise UnsupportedEnvironmentError(f"Failed to start MoviePy writer: {exc}") from exc

    async def write_frame(self, frame: Image.Image) -> None:
        if self._writer is None:
            raise ExportFailedError("Encoder has not been started")
        array = np.asarray(_to_rgb(frame, (self.settings.width, self.settings.height)), dtype=np.uint8)
        try:
            self._writer.write_frame(array)
        except OSError as exc:
            raise ExportFailedError(f"MoviePy writer failed: {exc}") from exc
        await asyncio.sleep(0)

    async def finish(self) -> List[bytes]:
        if self._writer is None or self._path is None:
            raise ExportFailedError("Encoder has not been started")
        try:
            self._writer.close()
            data = self._path.read_bytes()
        except OSError as exc:
            raise ExportFailedError(f"MoviePy writer failed to flush: {exc}") from exc
        finally:
            self._writer = None
            self._remove_temp()
        return [data]

    async def abort(self) -> None:
        if self._writer is not None:
            try:
                self._writer.close()
            except OSError:
                logger.warning("MoviePy writer did not close cleanly during abort")
            self._writer = None
        self._remove_temp()

    def _remove_temp(self) -> None:
        if self._path is not None:
            self._path.unlink(missing_ok=True)
            self._path = None
