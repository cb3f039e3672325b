from __future__ import annotations

import argparse
import asyncio
import math
from pathlib import Path

from config_loader import AppConfig, load_config
from logging_utils import configure_logging, get_logger

from .errors import ExportError, TimelineError
from .export import ExportDriver
from .playback import PlaybackDriver
from .progress import ConsoleBar
from .settings import resolve_render_settings
from .timeline_loader import load_timeline

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Slide timeline preview and video export")
    parser.add_argument(
        "--config",
        help="Path to YAML configuration (default: config.yaml when present)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Export the timeline as a WebM video")
    export.add_argument("timeline", help="Path to timeline JSON/YAML document")
    export.add_argument("--output", help="Output file (default: <output.directory>/<output.filename>)")
    export.add_argument("--no-progress", action="store_true", help="Disable the console progress bar")

    snapshot = sub.add_parser("snapshot", help="Render a single frame to PNG")
    snapshot.add_argument("timeline", help="Path to timeline JSON/YAML document")
    snapshot.add_argument("--at", type=float, default=0.0, help="Elapsed time in milliseconds")
    snapshot.add_argument("--output", required=True, help="PNG file to write")

    preview = sub.add_parser("preview", help="Run the playback loop and save the last frame")
    preview.add_argument("timeline", help="Path to timeline JSON/YAML document")
    preview.add_argument("--seconds", type=float, default=3.0, help="Wall-clock seconds to play")
    preview.add_argument("--refresh-hz", type=float, default=60.0, help="Preview refresh rate")
    preview.add_argument("--output", required=True, help="PNG file to write")

    info = sub.add_parser("info", help="Print timeline duration and frame count")
    info.add_argument("timeline", help="Path to timeline JSON/YAML document")
    return parser


def _load_app_config(path: str | None) -> AppConfig:
    if path:
        return load_config(path)
    default = Path("config.yaml")
    return load_config(default if default.exists() else None)


def _run_export(config: AppConfig, args: argparse.Namespace) -> int:
    settings = resolve_render_settings(config.raw)
    timeline = load_timeline(args.timeline)
    output = Path(args.output) if args.output else config.output_dir / settings.filename

    driver = ExportDriver(settings)
    bar = None if args.no_progress else ConsoleBar(total_frames=0, label=output.name)
    try:
        artifact = asyncio.run(driver.export(timeline, progress=bar.update if bar else None))
    finally:
        if bar is not None:
            bar.finish()
    artifact.save(output)
    driver.release_artifact()
    logger.info("Video written: %s (%d frames, %s)", output, artifact.frame_count, artifact.codec)
    return 0


def _run_snapshot(config: AppConfig, args: argparse.Namespace) -> int:
    settings = resolve_render_settings(config.raw)
    player = PlaybackDriver(load_timeline(args.timeline), settings)
    try:
        player.seek(args.at)
        player.image_cache.deferred = False
        frame = player.tick()
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        player.surface.save(output, format="PNG")
    finally:
        player.close()
    logger.info("Snapshot at %.0f ms (slide %d) written: %s", args.at, frame.slide_index, output)
    return 0


def _run_preview(config: AppConfig, args: argparse.Namespace) -> int:
    settings = resolve_render_settings(config.raw)
    player = PlaybackDriver(load_timeline(args.timeline), settings)
    max_ticks = max(1, int(args.seconds * args.refresh_hz))
    try:
        player.play()
        ticks = asyncio.run(player.run(refresh_hz=args.refresh_hz, max_ticks=max_ticks))
        player.pause()
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        player.surface.save(output, format="PNG")
        logger.info("Previewed %d ticks, stopped at %.0f ms", ticks, player.elapsed_ms)
    finally:
        player.close()
    return 0


def _run_info(config: AppConfig, args: argparse.Namespace) -> int:
    settings = resolve_render_settings(config.raw)
    timeline = load_timeline(args.timeline)
    total_ms = timeline.total_duration_ms
    frames = math.ceil(total_ms / settings.frame_interval_ms) if total_ms > 0 else 0
    print(f"slides: {len(timeline)}")
    print(f"duration_ms: {total_ms:.0f}")
    print(f"frames: {frames} @ {settings.fps} fps")
    return 0


_COMMANDS = {
    "export": _run_export,
    "snapshot": _run_snapshot,
    "preview": _run_preview,
    "info": _run_info,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = _load_app_config(args.config)
    configure_logging(level=config.logging_level, log_file=config.log_file)
    logger.debug("Config: %s", config.dumps())

    try:
        return _COMMANDS[args.command](config, args)
    except (ExportError, TimelineError, FileNotFoundError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
