"""
Protocol errors for the MPD control protocol.

Every failure the tokenizer, framer or connection handler can produce is a
subclass of ProtocolError. Each kind knows its MPD ACK code and whether the
connection can keep going after the error has been reported.

ACK line format (see src/protocol/Ack.hxx in the MPD sources):

    ACK [<code>@<command list index>] {<current command>} <message>
"""

from __future__ import annotations

# ACK error codes used by MPD clients to classify failures.
ACK_ERROR_NOT_LIST = 1
ACK_ERROR_ARG = 2
ACK_ERROR_PASSWORD = 3
ACK_ERROR_PERMISSION = 4
ACK_ERROR_UNKNOWN = 5
ACK_ERROR_NO_EXIST = 50
ACK_ERROR_PLAYLIST_MAX = 51
ACK_ERROR_SYSTEM = 52
ACK_ERROR_PLAYLIST_LOAD = 53
ACK_ERROR_UPDATE_ALREADY = 54
ACK_ERROR_PLAYER_SYNC = 55
ACK_ERROR_EXIST = 56


def format_ack(code: int, message: str, command: str = "", index: int = 0) -> str:
    """Build a single ACK line (without the trailing newline)."""
    return f"ACK [{code}@{index}] {{{command}}} {message}"


class ProtocolError(Exception):
    """
    Base exception for MPD protocol errors.

    Attributes:
        ack_code: MPD ACK error code reported to the client.
        command: Name of the command that failed ("" if none was parsed).
        index: Position of the failing command inside a command list.
        closes_connection: Whether the connection must be closed after
            this error because the read position is no longer trustworthy.
    """

    ack_code = ACK_ERROR_UNKNOWN
    closes_connection = False

    def __init__(self, message: str, command: str = "", index: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.command = command
        self.index = index

    def to_ack(self) -> str:
        """Render this error as an MPD ACK line."""
        return format_ack(self.ack_code, self.message, self.command, self.index)


class UnknownCommand(ProtocolError):
    """Command name not found in a strict vocabulary."""

    def __init__(self, token: str, index: int = 0) -> None:
        super().__init__(f'unknown command "{token}"', index=index)
        self.token = token


class EmptyRequest(ProtocolError):
    """A blank line was sent where a command was expected."""

    def __init__(self, index: int = 0) -> None:
        super().__init__("No command given", index=index)


class FramingError(ProtocolError):
    """Malformed command list."""

    ack_code = ACK_ERROR_NOT_LIST


class UnterminatedCommandList(FramingError):
    """The stream ended before command_list_end was seen."""

    closes_connection = True


class TrailingDataAfterListEnd(FramingError):
    """Non-empty lines followed command_list_end in the same read."""

    pass


class CommandListTooLarge(FramingError):
    """A command list exceeded the configured maximum size."""

    ack_code = ACK_ERROR_ARG
    closes_connection = True


class RequestTooLarge(ProtocolError):
    """A single line exceeded the configured maximum length."""

    ack_code = ACK_ERROR_ARG
    closes_connection = True


class IoFailure(ProtocolError):
    """Read or write failure on the client socket."""

    ack_code = ACK_ERROR_SYSTEM
    closes_connection = True


class RenderError(ValueError):
    """A command name has no rendering in the vocabulary."""

    pass
