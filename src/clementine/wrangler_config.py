"""
Idempotent wrangler config patching for the Queues primitive.

Two surface syntaxes are supported. JSON-like files (`wrangler.jsonc`,
`wrangler.json`) are parsed tolerantly and edited with minimal splices, so
comments and unrelated keys are preserved byte for byte. `wrangler.toml` is
patched append-only, guarded by literal marker checks.

Every entry point returns `False` on failure after logging the reason; nothing
raises past this module.
"""

from __future__ import annotations

import enum
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from clementine import jsonc
from clementine.console import Logger, logger as default_logger

EVENT_STORE_BINDING = "EVENT_STORE"
EVENT_STORE_CLASS = "EventStore"
HTML_GLOB = "**/*.html"
MIGRATION_TAG = "v1"

# Priority order: JSON-like forms win over TOML.
CONFIG_FILE_NAMES: tuple[str, ...] = ("wrangler.jsonc", "wrangler.json", "wrangler.toml")


class ConfigFormat(enum.Enum):
    JSON_LIKE = "json-like"
    STRUCTURED_TEXT = "structured-text"
    NONE = "none"


def config_format_for(path: Path | None) -> ConfigFormat:
    if path is None:
        return ConfigFormat.NONE
    if path.suffix.lower() == ".toml":
        return ConfigFormat.STRUCTURED_TEXT
    return ConfigFormat.JSON_LIKE


def find_config_file(directory: Path) -> Path | None:
    for name in CONFIG_FILE_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class QueuePatch:
    queue_name: str
    binding_name: str
    max_batch_size: int = 4
    max_batch_timeout: int = 3
    max_retries: int = 3

    def producer(self) -> dict[str, Any]:
        return {"queue": self.queue_name, "binding": self.binding_name}

    def consumer(self) -> dict[str, Any]:
        return {
            "queue": self.queue_name,
            "max_batch_size": self.max_batch_size,
            "max_batch_timeout": self.max_batch_timeout,
            "max_retries": self.max_retries,
        }


def _write_text_atomic(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        # newline="" keeps the document's own line endings.
        with tmp.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except Exception:
        try:
            if tmp.exists():
                tmp.unlink()
        except OSError:
            pass
        raise
    os.replace(tmp, path)


def _read_text(path: Path) -> str:
    with path.open("r", encoding="utf-8", newline="") as fh:
        return fh.read()


# ---------------------------------------------------------------------------
# JSON-like path


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _get_path(doc: Any, *keys: str) -> Any:
    cur = doc
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _has_html_rule(doc: Any) -> bool:
    for rule in _as_list(_get_path(doc, "rules")):
        if not isinstance(rule, dict):
            continue
        globs = rule.get("globs")
        if rule.get("type") == "Text" and isinstance(globs, list) and HTML_GLOB in globs:
            return True
    return False


def _has_queue_entry(doc: Any, section: str, queue_name: str) -> bool:
    return any(
        isinstance(entry, dict) and entry.get("queue") == queue_name
        for entry in _as_list(_get_path(doc, "queues", section))
    )


def _has_event_store_binding(doc: Any) -> bool:
    return any(
        isinstance(b, dict) and b.get("name") == EVENT_STORE_BINDING
        for b in _as_list(_get_path(doc, "durable_objects", "bindings"))
    )


def _has_event_store_migration(doc: Any) -> bool:
    for migration in _as_list(_get_path(doc, "migrations")):
        if not isinstance(migration, dict):
            continue
        new_classes = migration.get("new_classes")
        if isinstance(new_classes, list) and EVENT_STORE_CLASS in new_classes:
            return True
    return False


def patch_json_text(text: str, patch: QueuePatch) -> str | None:
    """
    Return the patched document text, or `None` when the queue is already configured.

    Each addition re-parses the current text, checks whether its entry is already
    present, and splices it in otherwise.
    """

    doc = jsonc.loads(text)
    if not isinstance(doc, dict):
        raise jsonc.JsoncEditError("Document root must be an object")
    if _has_queue_entry(doc, "producers", patch.queue_name):
        return None

    additions: list[tuple[tuple[str, ...], Any, Any]] = [
        (("rules",), {"type": "Text", "globs": [HTML_GLOB], "fallthrough": True}, _has_html_rule),
        (
            ("queues", "producers"),
            patch.producer(),
            lambda d: _has_queue_entry(d, "producers", patch.queue_name),
        ),
        (
            ("queues", "consumers"),
            patch.consumer(),
            lambda d: _has_queue_entry(d, "consumers", patch.queue_name),
        ),
        (
            ("durable_objects", "bindings"),
            {"name": EVENT_STORE_BINDING, "class_name": EVENT_STORE_CLASS},
            _has_event_store_binding,
        ),
        (("migrations",), {"tag": MIGRATION_TAG, "new_classes": [EVENT_STORE_CLASS]}, _has_event_store_migration),
    ]

    updated = text
    for path, item, present in additions:
        if present(jsonc.loads(updated)):
            continue
        updated = jsonc.append_array_item(updated, path, item)
    return updated


def _patch_json_config(config_path: Path, content: str, patch: QueuePatch, *, log: Logger) -> bool:
    try:
        updated = patch_json_text(content, patch)
    except (jsonc.JsoncParseError, jsonc.JsoncEditError) as e:
        log.error(f"Failed to patch JSON config: {e}")
        return False
    if updated is None:
        log.warn(f'Queue "{patch.queue_name}" already exists in config')
        return True
    try:
        _write_text_atomic(config_path, updated)
    except OSError as e:
        log.error(f"Failed to patch JSON config: {e}")
        return False
    log.success("Updated wrangler config with queue configuration")
    return True


# ---------------------------------------------------------------------------
# Structured-text (TOML) path


def _toml_quote_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


_TOML_HTML_MARKER = 'globs = ["**/*.html"]'
_TOML_EVENT_STORE_MARKER = f"name = {_toml_quote_string(EVENT_STORE_BINDING)}"
_TOML_MIGRATION_MARKER = f"new_classes = [{_toml_quote_string(EVENT_STORE_CLASS)}]"


def _toml_queue_marker(queue_name: str) -> str:
    return f"queue = {_toml_quote_string(queue_name)}"


def patch_toml_text(text: str, patch: QueuePatch) -> str | None:
    """Append-only patch. Returns `None` when `queue = "<name>"` already occurs."""
    if _toml_queue_marker(patch.queue_name) in text:
        return None

    blocks: list[str] = []
    if _TOML_HTML_MARKER not in text:
        blocks.append(
            "\n"
            "[[rules]]\n"
            'type = "Text"\n'
            f"{_TOML_HTML_MARKER}\n"
            "fallthrough = true\n"
        )

    blocks.append(
        "\n"
        "# Queue Configuration\n"
        "[[queues.producers]]\n"
        f"{_toml_queue_marker(patch.queue_name)}\n"
        f"binding = {_toml_quote_string(patch.binding_name)}\n"
        "\n"
        "[[queues.consumers]]\n"
        f"{_toml_queue_marker(patch.queue_name)}\n"
        f"max_batch_size = {patch.max_batch_size}\n"
        f"max_batch_timeout = {patch.max_batch_timeout}\n"
        f"max_retries = {patch.max_retries}\n"
    )

    if _TOML_EVENT_STORE_MARKER not in text:
        blocks.append(
            "\n"
            "# Durable Object for Event Storage\n"
            "[[durable_objects.bindings]]\n"
            f"{_TOML_EVENT_STORE_MARKER}\n"
            f"class_name = {_toml_quote_string(EVENT_STORE_CLASS)}\n"
        )

    if _TOML_MIGRATION_MARKER not in text:
        blocks.append(
            "\n"
            "# Durable Object Migrations\n"
            "[[migrations]]\n"
            f"tag = {_toml_quote_string(MIGRATION_TAG)}\n"
            f"{_TOML_MIGRATION_MARKER}\n"
        )

    return text + "".join(blocks)


def _patch_toml_config(config_path: Path, content: str, patch: QueuePatch, *, log: Logger) -> bool:
    updated = patch_toml_text(content, patch)
    if updated is None:
        log.warn(f'Queue "{patch.queue_name}" already exists in config')
        return True
    try:
        _write_text_atomic(config_path, updated)
    except OSError as e:
        log.error(f"Failed to patch TOML config: {e}")
        return False
    log.success("Updated wrangler.toml with queue configuration")
    return True


def patch_queue_config(
    config_path: Path,
    *,
    queue_name: str,
    binding_name: str,
    max_batch_size: int = 4,
    max_batch_timeout: int = 3,
    max_retries: int = 3,
    log: Logger | None = None,
) -> bool:
    log = log or default_logger
    patch = QueuePatch(
        queue_name=queue_name,
        binding_name=binding_name,
        max_batch_size=max_batch_size,
        max_batch_timeout=max_batch_timeout,
        max_retries=max_retries,
    )
    try:
        content = _read_text(config_path)
    except (OSError, UnicodeDecodeError) as e:
        log.error(f"Failed to patch config: {e}")
        return False

    if config_format_for(config_path) is ConfigFormat.STRUCTURED_TEXT:
        return _patch_toml_config(config_path, content, patch, log=log)
    return _patch_json_config(config_path, content, patch, log=log)


__all__ = [
    "CONFIG_FILE_NAMES",
    "ConfigFormat",
    "EVENT_STORE_BINDING",
    "EVENT_STORE_CLASS",
    "HTML_GLOB",
    "QueuePatch",
    "config_format_for",
    "find_config_file",
    "patch_json_text",
    "patch_queue_config",
    "patch_toml_text",
]
