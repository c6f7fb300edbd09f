"""
Data model for parsed MPD requests.

A Command is one parsed line: a name plus its argument tokens. A Request is
everything one read cycle produced: either one bare Command, or a command
list including its begin/end marker lines.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from overture.protocol.vocabulary import MpdCommand, Vocabulary

    CommandName = Union[MpdCommand, str]

COMMAND_LIST_BEGIN = "command_list_begin"
COMMAND_LIST_OK_BEGIN = "command_list_ok_begin"
COMMAND_LIST_END = "command_list_end"

LIST_BEGIN_MARKERS = (COMMAND_LIST_BEGIN, COMMAND_LIST_OK_BEGIN)
LIST_MARKERS = (*LIST_BEGIN_MARKERS, COMMAND_LIST_END)


@dataclass(frozen=True)
class Command:
    """
    One parsed command.

    Attributes:
        name: MpdCommand member (strict vocabulary) or plain string (open
            vocabulary).
        arguments: Argument tokens in original order and casing, or None
            when the line carried no arguments. Never an empty tuple.
    """

    name: CommandName
    arguments: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.arguments is not None and len(self.arguments) == 0:
            object.__setattr__(self, "arguments", None)

    @property
    def args(self) -> tuple[str, ...]:
        """Arguments as a tuple, empty when absent."""
        return self.arguments or ()

    def render(self, vocabulary: Vocabulary) -> str:
        """
        Render the command back to its wire form (without line terminator).

        Raises:
            RenderError: If the vocabulary has no rendering for the name.
        """
        parts = [vocabulary.render(self.name), *self.args]
        return " ".join(parts)

    def __str__(self) -> str:
        name = getattr(self.name, "value", self.name)
        return f"Command({name}, {list(self.arguments) if self.arguments else None})"


@dataclass(frozen=True)
class Request:
    """
    The immutable result of one parse cycle.

    For a command list, `commands` starts with the begin marker and ends with
    the command_list_end marker; both are ordinary zero-argument Commands.
    `list_marker` keeps the literal begin marker so executors can tell
    command_list_begin from command_list_ok_begin.
    """

    commands: tuple[Command, ...]
    list_marker: str | None = None

    def __post_init__(self) -> None:
        if not self.commands:
            raise ValueError("Request must contain at least one command")

    @property
    def is_command_list(self) -> bool:
        return self.list_marker is not None

    @property
    def wants_list_ok(self) -> bool:
        """True when the client asked for one list_OK per command."""
        return self.list_marker == COMMAND_LIST_OK_BEGIN

    @property
    def body(self) -> tuple[Command, ...]:
        """Commands without the list markers."""
        if self.is_command_list:
            return self.commands[1:-1]
        return self.commands

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)


@dataclass(frozen=True)
class Response:
    """
    Executor result, written back to the client unmodified.

    Attributes:
        body: Opaque response payload (zero or more lines).
        ack: ACK terminator line, or None to terminate with OK.
        close: Close the connection after writing this response.
    """

    body: str = ""
    ack: str | None = None
    close: bool = False

    def to_bytes(self) -> bytes:
        """Render body and terminator line as UTF-8."""
        text = self.body
        if text and not text.endswith("\n"):
            text += "\n"
        text += (self.ack if self.ack is not None else "OK") + "\n"
        return text.encode("utf-8")
