from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

from instancelauncher.config.launcher_config import debug_requested, load_launcher_config
from instancelauncher.core.context import locate_self, resolve_invocation_context, resolve_paths
from instancelauncher.core.errors import LauncherError
from instancelauncher.launcher.coordinator import LaunchCoordinator


PROG = "instance-launcher"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
        format=f"[{PROG}] %(levelname)s %(name)s: %(message)s",
    )


def main(
    argv: list[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
    self_path: Path | None = None,
) -> int:
    """
    Forward argv to the running instance, or start one.

    There are no flags: every argument is passed through untouched.
    Returns 0 on success and 1 on any failure, after naming the error kind on stderr.
    """
    arguments = list(sys.argv[1:] if argv is None else argv)
    environ = os.environ if environ is None else environ
    _configure_logging(debug_requested(environ))

    try:
        paths = resolve_paths(self_path or locate_self(), platform=platform, environ=environ)
        cfg = load_launcher_config(paths.config_path(), environ)
        if cfg.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        ctx = resolve_invocation_context(paths, cfg, [str(paths.launcher_path), *arguments])
        coordinator = LaunchCoordinator(timeout_seconds=cfg.handshake_timeout_seconds)
        outcome = coordinator.coordinate(ctx)
    except LauncherError as e:
        print(f"{PROG}: {e.kind}: {e}", file=sys.stderr)
        return 1
    logging.getLogger(__name__).debug("outcome: %s", outcome.value)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
