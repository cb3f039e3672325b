"""Configuration loader for the slideshow renderer."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


@dataclass
class AppConfig:
    """Wrapper around raw configuration with resolved paths."""

    raw: Dict[str, Any]
    config_path: Path | None
    project_root: Path
    output_dir: Path
    log_file: Path

    @property
    def logging_level(self) -> str:
        level = (
            self.raw.get("logging", {}).get("level")
            or self.raw.get("logging", {}).get("LEVEL")
            or "INFO"
        )
        return str(level).upper()

    @property
    def output_filename(self) -> str:
        return str(self.raw.get("output", {}).get("filename", "video.webm"))

    def to_debug_dict(self) -> Dict[str, Any]:
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "output_dir": str(self.output_dir),
            "log_file": str(self.log_file),
            "video": self.raw.get("video", {}),
        }

    def dumps(self) -> str:
        """Return a JSON string for diagnostics."""
        return json.dumps(self.to_debug_dict(), ensure_ascii=False, indent=2)


def _build_config(raw: Dict[str, Any], config_path: Path | None, root: Path) -> AppConfig:
    output_dir = (root / raw.get("output", {}).get("directory", "output")).resolve()
    log_file_name = raw.get("logging", {}).get("file", "logs/run.log")
    log_file = (root / log_file_name).resolve()
    return AppConfig(
        raw=raw,
        config_path=config_path,
        project_root=root,
        output_dir=output_dir,
        log_file=log_file,
    )


def load_config(path: Path | str | None, project_root: Path | None = None) -> AppConfig:
    """Load YAML config and resolve key directories.

    A missing ``path`` (``None``) yields the built-in defaults rooted at the
    current directory; an explicit path that does not exist is an error.
    """
    if path is None:
        root = project_root.resolve() if project_root else Path.cwd()
        return _build_config({}, None, root)

    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    root = project_root.resolve() if project_root else config_path.parent
    return _build_config(raw, config_path, root)
