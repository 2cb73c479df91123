from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Sequence

from instancelauncher.core.errors import SpawnFailed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpawnResult:
    pid: int
    argv: tuple[str, ...]


def _detach_kwargs() -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    return kwargs


def spawn_instance(instance_path: str, arguments: Sequence[str]) -> SpawnResult:
    """
    Start `instance_path` with `arguments`, detached from our stdio and session.

    Popen returns only after the child's exec succeeded, which is all we wait for;
    the instance is never waited on or reaped here.
    """
    argv = (instance_path, *arguments)
    # Inherit our cwd so relative arguments mean the same as on the forward path.
    try:
        proc = subprocess.Popen(list(argv), **_detach_kwargs())
    except (OSError, ValueError) as e:
        raise SpawnFailed(f"could not start {instance_path}: {e}") from e
    logger.debug("instance spawned (pid=%s)", proc.pid)
    return SpawnResult(pid=proc.pid, argv=argv)
