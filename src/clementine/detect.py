from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from clementine import jsonc
from clementine.wrangler_config import ConfigFormat, config_format_for, find_config_file

ENTRY_FILE_CANDIDATES: tuple[str, ...] = (
    "src/index.ts",
    "src/index.js",
    "src/worker.ts",
    "src/worker.js",
    "index.ts",
    "index.js",
    "worker.ts",
    "worker.js",
)


@dataclass(frozen=True)
class ProjectContext:
    cwd: Path
    is_existing_project: bool
    config_path: Path | None
    config_format: ConfigFormat
    entry_file_path: Path | None


def _read_main_field(config_path: Path, config_format: ConfigFormat) -> str | None:
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    try:
        if config_format is ConfigFormat.STRUCTURED_TEXT:
            data = tomlkit.parse(text).unwrap()
        else:
            data = jsonc.loads(text)
    except (TOMLKitError, RecursionError, jsonc.JsoncParseError):
        return None

    if not isinstance(data, dict):
        return None
    main = data.get("main")
    if not isinstance(main, str) or not main.strip():
        return None
    return main.strip()


def find_entry_file(cwd: Path, *, config_path: Path | None = None) -> Path | None:
    """
    Locate the Worker entry file.

    The config's `main` field wins when it names an existing file; otherwise the
    conventional locations are probed in order.
    """

    if config_path is not None:
        main = _read_main_field(config_path, config_format_for(config_path))
        if main is not None:
            candidate = (config_path.parent / main).resolve()
            if candidate.is_file():
                return candidate

    for rel in ENTRY_FILE_CANDIDATES:
        candidate = cwd / rel
        if candidate.is_file():
            return candidate
    return None


def detect_project_context(cwd: Path | None = None) -> ProjectContext:
    root = (cwd or Path.cwd()).resolve()
    config_path = find_config_file(root)
    entry = find_entry_file(root, config_path=config_path)
    return ProjectContext(
        cwd=root,
        is_existing_project=config_path is not None,
        config_path=config_path,
        config_format=config_format_for(config_path),
        entry_file_path=entry,
    )


__all__ = [
    "ENTRY_FILE_CANDIDATES",
    "ProjectContext",
    "detect_project_context",
    "find_entry_file",
]
