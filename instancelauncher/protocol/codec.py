from __future__ import annotations

import json
from dataclasses import dataclass
from typing import BinaryIO, Sequence, Union

from instancelauncher.config.launcher_config import MAX_LINE_BYTES
from instancelauncher.core.errors import ChannelIo, MalformedPayload, MessageTooLarge


TERMINATOR = b"\n"

# Compared byte-for-byte on both ends; never re-serialize these.
HELLO_LITERAL = b'{"msg":"HELLO"}'
READY_LITERAL = b'{"msg":"READY"}'
OK_LITERAL = b'{"msg":"OK"}'


@dataclass(frozen=True)
class Hello:
    pass


@dataclass(frozen=True)
class Ready:
    pass


@dataclass(frozen=True)
class Ok:
    pass


@dataclass(frozen=True)
class Args:
    arguments: tuple[str, ...]


HandshakeMessage = Union[Hello, Ready, Args, Ok]

_LITERALS: dict[type, bytes] = {Hello: HELLO_LITERAL, Ready: READY_LITERAL, Ok: OK_LITERAL}


def encode_args(arguments: Sequence[str]) -> bytes:
    # ensure_ascii keeps surrogate-escaped argv bytes representable on the wire.
    return json.dumps({"args": list(arguments)}, separators=(",", ":")).encode("ascii")


def decode_args(payload: bytes) -> tuple[str, ...]:
    try:
        obj = json.loads(payload.decode("utf-8", errors="surrogatepass"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedPayload(f"args payload is not JSON: {e}") from e
    if not isinstance(obj, dict) or set(obj) != {"args"}:
        raise MalformedPayload("args payload must be an object with a single 'args' field")
    args = obj["args"]
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise MalformedPayload("'args' must be an array of strings")
    return tuple(args)


def encode_payload(message: HandshakeMessage) -> bytes:
    if isinstance(message, Args):
        return encode_args(message.arguments)
    return _LITERALS[type(message)]


def frame(payload: bytes, *, max_line_bytes: int = MAX_LINE_BYTES) -> bytes:
    """
    Terminate `payload` with LF, refusing anything that would exceed the line bound.
    """
    if TERMINATOR in payload:
        raise MalformedPayload("payload must not contain a line terminator")
    if len(payload) + len(TERMINATOR) > max_line_bytes:
        raise MessageTooLarge(f"message of {len(payload) + 1} bytes exceeds {max_line_bytes}")
    return payload + TERMINATOR


def read_line(reader: BinaryIO, *, max_line_bytes: int = MAX_LINE_BYTES) -> bytes:
    """
    Read one LF-terminated line and return it without the terminator.

    Raises MessageTooLarge once `max_line_bytes` arrive without a terminator,
    and ChannelIo when the peer closes before completing a line.
    """
    line = reader.readline(max_line_bytes)
    if line.endswith(TERMINATOR):
        return line[: -len(TERMINATOR)]
    if len(line) >= max_line_bytes:
        raise MessageTooLarge(f"no line terminator within {max_line_bytes} bytes")
    if not line:
        raise ChannelIo("channel closed by peer")
    raise ChannelIo(f"channel closed mid-line after {len(line)} bytes")
