"""
Executor interface.

The connection handler does not interpret commands. It hands every framed
Request to a CommandExecutor and writes back whatever Response comes out.
A real player engine plugs in here; AcknowledgingExecutor is the stand-in
that lets the server run end to end without one.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from overture.protocol.models import Request, Response
from overture.protocol.vocabulary import MpdCommand, Vocabulary

logger = logging.getLogger(__name__)


@runtime_checkable
class CommandExecutor(Protocol):
    """Executes a parsed Request and produces the Response to send back."""

    async def execute(self, request: Request) -> Response: ...


class AcknowledgingExecutor:
    """
    Executor that acknowledges every request without acting on it.

    - command_list_ok_begin lists get one "list_OK" line per command.
    - "close" asks the handler to drop the connection.
    - "commands" lists the known command names (empty in open mode).
    """

    def __init__(self, vocabulary: Vocabulary) -> None:
        self.vocabulary = vocabulary

    async def execute(self, request: Request) -> Response:
        lines: list[str] = []
        close = False

        for command in request.body:
            name = self.vocabulary.canonical(command.name)
            logger.debug("Acknowledging %s %s", name, list(command.args))

            if name == MpdCommand.CLOSE.value:
                close = True
                break
            if name == MpdCommand.COMMANDS.value:
                lines.extend(f"command: {n}" for n in self.vocabulary.names())

            if request.wants_list_ok:
                lines.append("list_OK")

        return Response(body="\n".join(lines), close=close)
