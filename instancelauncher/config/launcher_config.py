from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from instancelauncher.core.errors import InvalidConfig


# Wire contract; instances reject anything longer, so this is not configurable.
MAX_LINE_BYTES = 65536

DEFAULT_TIMEOUT_SECONDS = 5.0

_ENV_OVERRIDES: dict[str, str] = {
    "INSTANCE_LAUNCHER_APP_NAME": "app_name",
    "INSTANCE_LAUNCHER_SOCKET_NAME": "socket_name",
    "INSTANCE_LAUNCHER_EXECUTABLE": "executable_name",
    "INSTANCE_LAUNCHER_TIMEOUT": "handshake_timeout_seconds",
    "INSTANCE_LAUNCHER_DEBUG": "debug",
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class LauncherConfig:
    app_name: str
    socket_name: str
    executable_name: str
    handshake_timeout_seconds: float | None
    debug: bool

    @staticmethod
    def default() -> "LauncherConfig":
        return LauncherConfig(
            app_name="instance-launcher",
            socket_name="instance.lock",
            executable_name="target-executable",
            handshake_timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
            debug=False,
        )


def debug_requested(environ: Mapping[str, str]) -> bool:
    return str(environ.get("INSTANCE_LAUNCHER_DEBUG", "")).strip().lower() in _TRUTHY


def _parse_timeout(value: Any, where: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"", "none", "0"}:
            return None
        try:
            value = float(v)
        except ValueError as e:
            raise InvalidConfig(f"{where}: timeout must be a number of seconds, got {value!r}") from e
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfig(f"{where}: timeout must be a number of seconds, got {value!r}")
    if value == 0:
        return None
    if value < 0:
        raise InvalidConfig(f"{where}: timeout must be >= 0, got {value!r}")
    return float(value)


def _parse_bool(value: Any, where: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUTHY:
            return True
        if v in _FALSY:
            return False
    raise InvalidConfig(f"{where}: expected a boolean, got {value!r}")


def _coerce(field_name: str, value: Any, where: str) -> Any:
    if field_name == "handshake_timeout_seconds":
        return _parse_timeout(value, where)
    if field_name == "debug":
        return _parse_bool(value, where)
    if not isinstance(value, str):
        raise InvalidConfig(f"{where}: {field_name} must be a string, got {value!r}")
    return value.strip()


def validate_launcher_config(cfg: LauncherConfig) -> list[str]:
    problems: list[str] = []
    for name in ("app_name", "socket_name", "executable_name"):
        v = getattr(cfg, name)
        if not v:
            problems.append(f"{name} must be non-empty")
        elif "/" in v or "\\" in v or v in {".", ".."}:
            problems.append(f"{name} must be a bare name, got {v!r}")
    return problems


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidConfig(f"{path}: invalid JSON: {e}") from e
    except OSError as e:
        raise InvalidConfig(f"{path}: unreadable: {e}") from e
    if not isinstance(obj, dict):
        raise InvalidConfig(f"{path}: expected a JSON object")
    allowed = {f.name for f in fields(LauncherConfig)}
    unknown = sorted(k for k in obj if k not in allowed)
    if unknown:
        raise InvalidConfig(f"{path}: unknown keys: {', '.join(unknown)}")
    return obj


def load_launcher_config(config_path: Path | None, environ: Mapping[str, str]) -> LauncherConfig:
    """
    Build the effective config: defaults, then `launcher_config.json` (if present),
    then INSTANCE_LAUNCHER_* environment overrides.
    """
    cfg = LauncherConfig.default()

    if config_path is not None and config_path.is_file():
        obj = _read_config_file(config_path)
        cfg = replace(cfg, **{k: _coerce(k, v, str(config_path)) for k, v in obj.items()})

    overrides: dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        if env_name in environ:
            overrides[field_name] = _coerce(field_name, environ[env_name], env_name)
    if overrides:
        cfg = replace(cfg, **overrides)

    problems = validate_launcher_config(cfg)
    if problems:
        raise InvalidConfig("invalid launcher config: " + "; ".join(problems))
    return cfg
