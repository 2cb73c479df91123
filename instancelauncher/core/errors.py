from __future__ import annotations


class LauncherError(RuntimeError):
    """
    Base for every failure an invocation can end with.

    `kind` is the stable, human-readable name written to stderr by the CLI.
    """

    kind = "LauncherError"


class MissingEnvironment(LauncherError):
    kind = "MissingEnvironment"


class InvalidConfig(LauncherError):
    kind = "InvalidConfig"


class SpawnFailed(LauncherError):
    kind = "SpawnFailed"


class UnknownReady(LauncherError):
    kind = "UnknownReady"


class UnknownOk(LauncherError):
    kind = "UnknownOk"


class MalformedPayload(LauncherError):
    kind = "MalformedPayload"


class MessageTooLarge(LauncherError):
    kind = "MessageTooLarge"


class ChannelIo(LauncherError):
    kind = "ChannelIo"


class HandshakeTimeout(LauncherError):
    kind = "Timeout"
