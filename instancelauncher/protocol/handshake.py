from __future__ import annotations

import enum
import logging
from typing import Protocol, Sequence

from instancelauncher.core.errors import HandshakeTimeout, LauncherError, UnknownOk, UnknownReady
from instancelauncher.protocol.codec import Args, Hello, Ok, Ready, encode_payload


logger = logging.getLogger(__name__)


class LineChannel(Protocol):
    def write_line(self, payload: bytes) -> None: ...

    def read_line(self) -> bytes: ...


class HandshakeState(enum.Enum):
    START = "start"
    HELLO_SENT = "hello_sent"
    AWAITING_READY = "awaiting_ready"
    READY_OK = "ready_ok"
    READY_MISMATCH = "ready_mismatch"
    ARGS_SENT = "args_sent"
    AWAITING_OK = "awaiting_ok"
    OK_OK = "ok_ok"
    OK_MISMATCH = "ok_mismatch"
    DONE = "done"
    FAILED = "failed"


class HandshakeClient:
    """
    Client side of HELLO -> READY -> ARGS -> OK over an open channel.

    Single use: `run()` drives the machine to DONE or raises after moving to
    FAILED. Nothing is retried and the channel is never reused.
    """

    def __init__(self, channel: LineChannel) -> None:
        self._channel = channel
        self.state = HandshakeState.START
        self.history: list[HandshakeState] = [HandshakeState.START]
        self.error: LauncherError | None = None

    def _move(self, state: HandshakeState) -> None:
        logger.debug("handshake: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _fail(self, error: LauncherError) -> LauncherError:
        self.error = error
        self._move(HandshakeState.FAILED)
        return error

    def _await_literal(self, expected: bytes, mismatch_state: HandshakeState, mismatch_error: type[LauncherError]) -> None:
        try:
            line = self._channel.read_line()
        except HandshakeTimeout as e:
            self._fail(e)
            raise
        except LauncherError as e:
            self._move(mismatch_state)
            raise self._fail(mismatch_error(f"no valid reply from instance: {e.kind}: {e}")) from e
        if line != expected:
            self._move(mismatch_state)
            raise self._fail(mismatch_error(f"instance replied {line[:80]!r}, expected {expected!r}"))

    def run(self, arguments: Sequence[str]) -> None:
        if self.state is not HandshakeState.START:
            raise RuntimeError(f"handshake already used (state={self.state.value})")

        try:
            self._channel.write_line(encode_payload(Hello()))
        except LauncherError as e:
            self._fail(e)
            raise
        self._move(HandshakeState.HELLO_SENT)

        self._move(HandshakeState.AWAITING_READY)
        self._await_literal(encode_payload(Ready()), HandshakeState.READY_MISMATCH, UnknownReady)
        self._move(HandshakeState.READY_OK)

        try:
            self._channel.write_line(encode_payload(Args(tuple(arguments))))
        except LauncherError as e:
            self._fail(e)
            raise
        self._move(HandshakeState.ARGS_SENT)
        logger.debug("forwarded %d argument(s)", len(arguments))

        self._move(HandshakeState.AWAITING_OK)
        self._await_literal(encode_payload(Ok()), HandshakeState.OK_MISMATCH, UnknownOk)
        self._move(HandshakeState.OK_OK)
        self._move(HandshakeState.DONE)
