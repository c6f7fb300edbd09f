"""
Command-list framer.

Turns the raw bytes of one read cycle into a Request. A buffer whose first
line is a list begin marker is framed as a command list:

    command_list_begin          (or command_list_ok_begin)
    volume 86
    moveid 2 5
    command_list_end

The marker lines are kept as ordinary Commands at both ends of the Request;
any other buffer is a single bare command.
"""

from __future__ import annotations

import logging
from enum import Enum

from overture.protocol.errors import (
    CommandListTooLarge,
    FramingError,
    TrailingDataAfterListEnd,
    UnterminatedCommandList,
)
from overture.protocol.models import (
    COMMAND_LIST_END,
    LIST_BEGIN_MARKERS,
    LIST_MARKERS,
    Command,
    Request,
)
from overture.protocol.tokenizer import parse_line, strip_terminator
from overture.protocol.vocabulary import Vocabulary

logger = logging.getLogger(__name__)

# Default upper bound for a whole command list (MPD: max_command_list_size).
DEFAULT_MAX_LIST_SIZE = 2048 * 1024


class FramerState(Enum):
    """States of the framing state machine."""

    SCANNING = "scanning"
    SINGLE = "single"
    IN_LIST = "in_list"
    DONE = "done"


class CommandListFramer:
    """
    Frames raw request buffers into Requests.

    The framer holds no per-request state between calls and can be shared by
    every connection using the same vocabulary.
    """

    def __init__(
        self,
        vocabulary: Vocabulary,
        max_list_size: int = DEFAULT_MAX_LIST_SIZE,
    ) -> None:
        self.vocabulary = vocabulary
        self.max_list_size = max_list_size

    @staticmethod
    def _as_text(line: bytes | str) -> str:
        if isinstance(line, bytes):
            return line.decode("utf-8", errors="replace")
        return line

    def opens_list(self, line: bytes | str) -> bool:
        """Check whether a line is a command list begin marker."""
        return strip_terminator(self._as_text(line)) in LIST_BEGIN_MARKERS

    def closes_list(self, line: bytes | str) -> bool:
        """Check whether a line is the command_list_end marker."""
        return strip_terminator(self._as_text(line)) == COMMAND_LIST_END

    def _parse(self, line: str, index: int = 0) -> Command:
        """Parse a non-marker line, rejecting anything that names a list marker."""
        command = parse_line(line, self.vocabulary, index=index)
        name = self.vocabulary.canonical(command.name)
        if name in LIST_MARKERS:
            if name == COMMAND_LIST_END and line == COMMAND_LIST_END:
                raise FramingError("not in command list mode", name, index)
            raise FramingError(f'Malformed list marker "{line}"', name, index)
        return command

    def frame(self, raw: bytes | str) -> Request:
        """
        Frame one read cycle's buffer into a Request.

        Raises:
            FramingError: If the buffer is not valid UTF-8, a bare request
                holds more than one command, lists are nested, or a line only
                resembles a list marker (wrong case, arguments, stray end).
            UnterminatedCommandList: If a list never reaches command_list_end.
            TrailingDataAfterListEnd: If lines follow command_list_end.
            CommandListTooLarge: If the list exceeds max_list_size bytes.
            EmptyRequest, UnknownCommand: From parsing individual lines.
        """
        if isinstance(raw, bytes):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise FramingError("Request is not valid UTF-8") from None
        else:
            text = raw

        if text.endswith("\n"):
            text = text[:-1]
        lines = [line.rstrip("\r") for line in text.split("\n")]

        state = FramerState.SCANNING
        marker: str | None = None
        commands: list[Command] = []

        for position, line in enumerate(lines):
            if state == FramerState.SCANNING:
                if line in LIST_BEGIN_MARKERS:
                    marker = line
                    commands.append(parse_line(line, self.vocabulary))
                    state = FramerState.IN_LIST
                else:
                    commands.append(self._parse(line))
                    state = FramerState.SINGLE

            elif state == FramerState.SINGLE:
                if line.strip(" \t"):
                    raise FramingError(
                        "Multiple commands outside a command list",
                        index=position,
                    )

            elif state == FramerState.IN_LIST:
                index = position - 1
                if line in LIST_BEGIN_MARKERS:
                    raise FramingError("Nested command lists are not allowed", line, index)
                if line == COMMAND_LIST_END:
                    commands.append(parse_line(line, self.vocabulary, index=index))
                    state = FramerState.DONE
                else:
                    commands.append(self._parse(line, index))

            elif state == FramerState.DONE:
                if line.strip(" \t"):
                    raise TrailingDataAfterListEnd(
                        "Data after command_list_end",
                        index=position - 1,
                    )

        if state == FramerState.IN_LIST:
            raise UnterminatedCommandList(
                "Command list not terminated by command_list_end",
                index=max(len(commands) - 1, 0),
            )

        if marker is not None:
            size = len(text.encode("utf-8"))
            if size > self.max_list_size:
                raise CommandListTooLarge(
                    f"Command list too large ({size} > {self.max_list_size} bytes)"
                )

        request = Request(commands=tuple(commands), list_marker=marker)
        logger.debug(
            "Framed request: %d command(s)%s",
            len(request),
            f" in {marker}" if marker else "",
        )
        return request

