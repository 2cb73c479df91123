from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from instancelauncher.config.launcher_config import LauncherConfig
from instancelauncher.core.errors import MissingEnvironment
from instancelauncher.core.paths import Paths, user_cache_dir


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvocationContext:
    """
    Everything one invocation needs, resolved once at startup.

    `arguments` is argv without the program name, kept verbatim and in order.
    """

    channel_address: str
    instance_path: str
    arguments: tuple[str, ...]


def locate_self(argv0: str | None = None) -> Path:
    """
    Absolute, symlink-resolved path of the running launcher.

    A frozen (bundled) launcher is `sys.executable`; otherwise it is argv[0].
    """
    if getattr(sys, "frozen", False):
        candidate = sys.executable
    else:
        candidate = sys.argv[0] if argv0 is None else argv0
    if not candidate:
        raise MissingEnvironment("unable to locate the launcher executable")
    # Follow symlinks so a launcher linked into e.g. /usr/local/bin still finds its install tree.
    return Path(os.path.realpath(candidate))


def resolve_paths(
    self_path: Path,
    *,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Paths:
    platform = sys.platform if platform is None else platform
    environ = os.environ if environ is None else environ
    return Paths(platform=platform, cache_dir=user_cache_dir(platform, environ), launcher_path=self_path)


def resolve_invocation_context(
    paths: Paths,
    cfg: LauncherConfig,
    argv: Sequence[str],
) -> InvocationContext:
    channel_address = paths.channel_address(cfg.app_name, cfg.socket_name)
    instance_path = paths.instance_path(cfg.executable_name)
    logger.debug("channel address: %s", channel_address)
    logger.debug("instance executable: %s", instance_path)
    return InvocationContext(
        channel_address=str(channel_address),
        instance_path=str(instance_path),
        arguments=tuple(argv[1:]),
    )
