from __future__ import annotations

import socket
from typing import BinaryIO

from instancelauncher.config.launcher_config import MAX_LINE_BYTES
from instancelauncher.core.errors import ChannelIo, HandshakeTimeout
from instancelauncher.protocol.codec import frame, read_line


class Channel:
    """
    Line-framed view over one connected, bidirectional stream socket.

    The socket's own timeout (if any) bounds every read and write.
    """

    def __init__(self, sock: socket.socket, *, max_line_bytes: int = MAX_LINE_BYTES) -> None:
        self._sock = sock
        self._reader: BinaryIO = sock.makefile("rb")
        self._max_line_bytes = max_line_bytes

    def write_line(self, payload: bytes) -> None:
        data = frame(payload, max_line_bytes=self._max_line_bytes)
        try:
            self._sock.sendall(data)
        except socket.timeout as e:
            raise HandshakeTimeout(f"timed out writing to channel after {self._sock.gettimeout()}s") from e
        except OSError as e:
            raise ChannelIo(f"write failed: {e}") from e

    def read_line(self) -> bytes:
        try:
            return read_line(self._reader, max_line_bytes=self._max_line_bytes)
        except socket.timeout as e:
            raise HandshakeTimeout(f"timed out waiting for peer after {self._sock.gettimeout()}s") from e
        except OSError as e:
            raise ChannelIo(f"read failed: {e}") from e

    def close(self) -> None:
        try:
            self._reader.close()
        finally:
            self._sock.close()

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def connect_channel(
    address: str,
    *,
    timeout_seconds: float | None,
    max_line_bytes: int = MAX_LINE_BYTES,
) -> Channel:
    """
    Connect to the Unix socket at `address`.

    Any failure surfaces as OSError; callers treat it as "no instance running".
    """
    if not hasattr(socket, "AF_UNIX"):
        raise OSError("Unix domain sockets are not available on this platform")
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.settimeout(timeout_seconds)
        sock.connect(address)
    except BaseException:
        sock.close()
        raise
    return Channel(sock, max_line_bytes=max_line_bytes)
