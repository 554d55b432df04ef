from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

SETTINGS_ENV_VAR = "CLEMENTINE_CONFIG"
LOCAL_SETTINGS_NAME = ".clementine.yaml"

_ALLOWED_KEYS: dict[str, set[str]] = {
    "scaffold": {"command"},
    "deploy": {"command"},
    "queues": {"create_command", "defaults"},
    "dev": {"url"},
}
_QUEUE_DEFAULT_KEYS = {"max_batch_size", "max_batch_timeout", "max_retries"}


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class QueueDefaults:
    max_batch_size: int = 4
    max_batch_timeout: int = 3
    max_retries: int = 3


@dataclass(frozen=True)
class Settings:
    scaffold_command: tuple[str, ...]
    deploy_command: tuple[str, ...]
    queue_create_command: tuple[str, ...]
    queue_defaults: QueueDefaults
    dev_url: str

    def render_scaffold_command(self, *, project_name: str) -> list[str]:
        return _render_argv(self.scaffold_command, {"project_name": project_name}, field="scaffold.command")

    def render_queue_create_command(self, *, queue_name: str) -> list[str]:
        return _render_argv(self.queue_create_command, {"queue_name": queue_name}, field="queues.create_command")


def _render_argv(argv: tuple[str, ...], context: dict[str, str], *, field: str) -> list[str]:
    try:
        return [part.format_map(context) for part in argv]
    except KeyError as exc:
        raise SettingsError(f"Unknown placeholder in {field}: {exc}") from exc


def _load_yaml_mapping(text: str, *, source: str) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SettingsError(f"Failed to parse YAML in {source}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SettingsError(f"Expected a YAML mapping in {source}, got {type(raw).__name__}.")
    return raw


def _ensure_no_unknown_keys(data: dict[str, Any], *, source: str) -> None:
    unknown = set(data) - set(_ALLOWED_KEYS)
    if unknown:
        raise SettingsError(f"Unknown keys in {source}: {', '.join(sorted(unknown))}.")
    for section, allowed in _ALLOWED_KEYS.items():
        value = data.get(section)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise SettingsError(f"Expected mapping for {section} in {source}.")
        unknown = set(value) - allowed
        if unknown:
            raise SettingsError(f"Unknown keys in {source} [{section}]: {', '.join(sorted(unknown))}.")


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_argv(value: Any, *, field: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise SettingsError(f"Expected non-empty list of strings for {field}.")
    out: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise SettingsError(f"Expected non-empty string for {field}[{idx}].")
        out.append(item)
    return tuple(out)


def _parse_positive_int(value: Any, *, field: str) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SettingsError(f"Expected positive integer for {field}.")
    return value


def _parse_settings(data: dict[str, Any]) -> Settings:
    queues = data.get("queues") or {}
    defaults_raw = queues.get("defaults") or {}
    if not isinstance(defaults_raw, dict):
        raise SettingsError("Expected mapping for queues.defaults.")
    unknown = set(defaults_raw) - _QUEUE_DEFAULT_KEYS
    if unknown:
        raise SettingsError(f"Unknown keys in queues.defaults: {', '.join(sorted(unknown))}.")

    queue_defaults = QueueDefaults(
        **{
            key: _parse_positive_int(value, field=f"queues.defaults.{key}")
            for key, value in defaults_raw.items()
        }
    )

    dev_url = (data.get("dev") or {}).get("url")
    if not isinstance(dev_url, str) or not dev_url.strip():
        raise SettingsError("Expected non-empty string for dev.url.")

    return Settings(
        scaffold_command=_parse_argv((data.get("scaffold") or {}).get("command"), field="scaffold.command"),
        deploy_command=_parse_argv((data.get("deploy") or {}).get("command"), field="deploy.command"),
        queue_create_command=_parse_argv(queues.get("create_command"), field="queues.create_command"),
        queue_defaults=queue_defaults,
        dev_url=dev_url.strip(),
    )


def _default_settings_text() -> str:
    return resources.files("clementine").joinpath("defaults.yaml").read_text(encoding="utf-8")


def _override_path(cwd: Path, environ: Mapping[str, str]) -> Path | None:
    env_value = environ.get(SETTINGS_ENV_VAR, "").strip()
    if env_value:
        path = Path(env_value).expanduser()
        if not path.is_file():
            raise SettingsError(f"{SETTINGS_ENV_VAR} points to a missing file: {path}")
        return path
    local = cwd / LOCAL_SETTINGS_NAME
    return local if local.is_file() else None


def load_settings(cwd: Path | None = None, *, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Load packaged defaults, then overlay the user's settings file if one exists.

    Lookup order for the override: `$CLEMENTINE_CONFIG`, then `.clementine.yaml`
    in `cwd`. Override mappings are merged key by key; lists replace wholesale.
    """

    data = _load_yaml_mapping(_default_settings_text(), source="defaults.yaml")
    override_path = _override_path(cwd or Path.cwd(), os.environ if environ is None else environ)
    if override_path is not None:
        try:
            text = override_path.read_text(encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Failed to read {override_path}: {e}") from e
        override = _load_yaml_mapping(text, source=str(override_path))
        _ensure_no_unknown_keys(override, source=str(override_path))
        data = _merge(data, override)
    return _parse_settings(data)


__all__ = [
    "LOCAL_SETTINGS_NAME",
    "QueueDefaults",
    "SETTINGS_ENV_VAR",
    "Settings",
    "SettingsError",
    "load_settings",
]
