"""
Line tokenizer for MPD requests.

A request line is split on spaces and horizontal tabs. Runs of delimiters
are collapsed: empty tokens (from doubled delimiters or leading whitespace)
are dropped everywhere, so "setvol  \\t50" and "setvol 50" tokenize the same.
"""

from __future__ import annotations

import re

from overture.protocol.errors import EmptyRequest, FramingError, ProtocolError
from overture.protocol.models import Command
from overture.protocol.vocabulary import Vocabulary

_DELIMITERS = re.compile(r"[ \t]+")


def strip_terminator(line: str) -> str:
    """Remove one trailing line feed, then any trailing carriage returns."""
    if line.endswith("\n"):
        line = line[:-1]
    return line.rstrip("\r")


def tokenize(line: str | bytes) -> list[str]:
    """
    Split one request line into tokens.

    The first token is the command name; the rest are arguments in order.
    A blank line yields an empty list.

    Raises:
        FramingError: If a bytes line is not valid UTF-8.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError:
            raise FramingError("Request is not valid UTF-8") from None
    return [token for token in _DELIMITERS.split(strip_terminator(line)) if token]


def parse_line(line: str | bytes, vocabulary: Vocabulary, index: int = 0) -> Command:
    """
    Parse one request line into a Command.

    Args:
        line: Raw line, with or without terminator.
        vocabulary: Strategy used to resolve the command name.
        index: Position of the line in a command list (for error reports).

    Raises:
        EmptyRequest: If the line holds no tokens.
        FramingError: If the line is not valid UTF-8.
        UnknownCommand: If a strict vocabulary does not know the name.
    """
    try:
        tokens = tokenize(line)
    except FramingError as e:
        e.index = index
        raise
    if not tokens:
        raise EmptyRequest(index=index)

    try:
        name = vocabulary.parse(tokens[0])
    except ProtocolError as e:
        e.index = index
        raise

    arguments = tuple(tokens[1:]) or None
    return Command(name=name, arguments=arguments)
