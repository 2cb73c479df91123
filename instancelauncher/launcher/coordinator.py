from __future__ import annotations

import enum
import logging
from typing import Callable, Sequence

from instancelauncher.config.launcher_config import DEFAULT_TIMEOUT_SECONDS, MAX_LINE_BYTES
from instancelauncher.core.context import InvocationContext
from instancelauncher.protocol.channel import Channel, connect_channel
from instancelauncher.protocol.handshake import HandshakeClient
from instancelauncher.runner.spawner import SpawnResult, spawn_instance


logger = logging.getLogger(__name__)

Connector = Callable[[str], Channel]
Spawner = Callable[[str, Sequence[str]], SpawnResult]


class LaunchOutcome(enum.Enum):
    SPAWNED = "spawned"
    FORWARDED = "forwarded"


class LaunchCoordinator:
    """
    Connect-or-spawn for one invocation.

    A failed connect, whatever the cause, means "no instance": spawn one.
    A successful connect hands the channel to the handshake; every error after
    that point is raised to the caller, never turned into a spawn.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        max_line_bytes: int = MAX_LINE_BYTES,
        connector: Connector | None = None,
        spawner: Spawner | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._max_line_bytes = max_line_bytes
        self._connector = connector or self._connect
        self._spawner = spawner or spawn_instance
        self.last_spawn: SpawnResult | None = None
        self.last_handshake: HandshakeClient | None = None

    def _connect(self, address: str) -> Channel:
        return connect_channel(address, timeout_seconds=self._timeout_seconds, max_line_bytes=self._max_line_bytes)

    def coordinate(self, context: InvocationContext) -> LaunchOutcome:
        try:
            channel = self._connector(context.channel_address)
        except OSError as e:
            # No distinction between no listener, stale socket file and permission errors.
            logger.debug("cannot connect to %s (%s); starting the instance", context.channel_address, e)
            self.last_spawn = self._spawner(context.instance_path, context.arguments)
            return LaunchOutcome.SPAWNED

        logger.debug("connected to running instance at %s", context.channel_address)
        with channel:
            client = HandshakeClient(channel)
            self.last_handshake = client
            client.run(context.arguments)
        logger.debug("instance accepted arguments")
        return LaunchOutcome.FORWARDED
