from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Mapping

from instancelauncher.core.errors import MissingEnvironment


WINDOWS_PLATFORMS: tuple[str, ...] = ("win32", "cygwin")
WINDOWS_EXECUTABLE_SUFFIX = ".exe"


def is_windows(platform: str) -> bool:
    return platform in WINDOWS_PLATFORMS


def _require_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise MissingEnvironment(f"environment variable {name} is not set")
    return value


def user_cache_dir(platform: str, environ: Mapping[str, str]) -> Path:
    """
    Per-user cache directory following the platform convention:
    - Windows: %LOCALAPPDATA%
    - macOS: $HOME/Library/Caches
    - other POSIX: $XDG_CACHE_HOME (absolute only), else $HOME/.cache
    """
    if is_windows(platform):
        return Path(_require_env(environ, "LOCALAPPDATA"))
    if platform == "darwin":
        return Path(_require_env(environ, "HOME")) / "Library" / "Caches"
    xdg = environ.get("XDG_CACHE_HOME")
    # Relative XDG_CACHE_HOME values are invalid per XDG Base Directory and are ignored.
    if xdg and PurePath(xdg).is_absolute():
        return Path(xdg)
    return Path(_require_env(environ, "HOME")) / ".cache"


@dataclass(frozen=True)
class Paths:
    platform: str
    cache_dir: Path
    launcher_path: Path

    def launcher_dir(self) -> Path:
        return self.launcher_path.parent

    def app_cache_dir(self, app_name: str) -> Path:
        return self.cache_dir / app_name

    def channel_address(self, app_name: str, socket_name: str) -> Path:
        return self.app_cache_dir(app_name) / socket_name

    def instance_dir(self) -> Path:
        # The instance lives beside the directory holding the launcher.
        return self.launcher_dir().parent

    def instance_path(self, executable_name: str) -> Path:
        suffix = WINDOWS_EXECUTABLE_SUFFIX if is_windows(self.platform) else ""
        return self.instance_dir() / f"{executable_name}{suffix}"

    def config_path(self) -> Path:
        return self.launcher_dir() / "launcher_config.json"
