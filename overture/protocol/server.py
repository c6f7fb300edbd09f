"""
MPD Protocol Server for Overture.

This module implements the listening side of the MPD text protocol. The
accept loop only dispatches: every accepted connection runs in its own task
under a ConnectionHandler, so an idle or slow client never blocks others.

Protocol Format:
    Requests are UTF-8 lines terminated by "\\n" (or "\\r\\n"). After accept
    the server writes "OK MPD <version>\\n". Commands can be batched between
    command_list_begin / command_list_ok_begin and command_list_end lines.
"""

from __future__ import annotations

import asyncio
import logging

from overture.protocol.connection import (
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_MAX_LINE_LENGTH,
    ConnectionHandler,
)
from overture.protocol.executor import AcknowledgingExecutor, CommandExecutor
from overture.protocol.framer import DEFAULT_MAX_LIST_SIZE, CommandListFramer
from overture.protocol.vocabulary import VOCABULARY_VERSION, StrictVocabulary, Vocabulary

logger = logging.getLogger(__name__)

# Default MPD port
MPD_PORT = 6600

DEFAULT_MAX_CONNECTIONS = 100


class MpdServer:
    """
    MPD protocol server.

    Listens for client connections, sends the handshake through a
    ConnectionHandler and forwards framed requests to the executor.

    Attributes:
        host: The host address to bind to.
        port: The TCP port to listen on (default 6600).
        vocabulary: Command vocabulary strategy shared by all connections.
        executor: Collaborator executing framed requests.
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = MPD_PORT,
        *,
        vocabulary: Vocabulary | None = None,
        executor: CommandExecutor | None = None,
        protocol_version: str = VOCABULARY_VERSION,
        connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        max_command_list_size: int = DEFAULT_MAX_LIST_SIZE,
    ) -> None:
        """
        Initialize the MPD server.

        Args:
            host: Host address to bind to.
            port: TCP port to listen on (0 lets the OS pick one).
            vocabulary: Command vocabulary (strict if not provided).
            executor: Request executor (AcknowledgingExecutor if not provided).
            protocol_version: Version announced in the handshake.
            connection_timeout: Idle timeout for client reads and writes.
            max_connections: Connections beyond this are closed on accept.
            max_line_length: Longest accepted request line in bytes.
            max_command_list_size: Largest accepted command list in bytes.
        """
        self.host = host
        self.port = port
        self.vocabulary = vocabulary if vocabulary is not None else StrictVocabulary()
        self.executor = executor if executor is not None else AcknowledgingExecutor(self.vocabulary)
        self.protocol_version = protocol_version
        self.connection_timeout = connection_timeout
        self.max_connections = max_connections
        self.max_line_length = max_line_length

        self.framer = CommandListFramer(self.vocabulary, max_list_size=max_command_list_size)

        self._server: asyncio.Server | None = None
        self._running = False
        self._client_tasks: set[asyncio.Task[None]] = set()
        self._connections_total = 0

    async def start(self) -> None:
        """Start the server and begin accepting connections."""
        if self._running:
            logger.warning("MPD server already running")
            return

        self._server = await asyncio.start_server(
            self._handle_connection,
            host=self.host,
            port=self.port,
            reuse_address=True,
            limit=self.max_line_length,
        )

        self._running = True

        # Pick up the real port when binding to port 0
        sockets = self._server.sockets
        if sockets:
            self.port = sockets[0].getsockname()[1]

        logger.info(
            "MPD server listening on %s:%d (protocol %s, %s vocabulary)",
            self.host,
            self.port,
            self.protocol_version,
            "strict" if self.vocabulary.strict else "open",
        )

    async def stop(self) -> None:
        """Stop the server and close all connections."""
        if not self._running:
            return

        logger.info("Stopping MPD server...")
        self._running = False

        # Stop accepting first
        if self._server:
            self._server.close()

        # Cancel all client handler tasks
        for task in self._client_tasks:
            task.cancel()

        if self._client_tasks:
            await asyncio.gather(*self._client_tasks, return_exceptions=True)
            self._client_tasks.clear()

        if self._server:
            await self._server.wait_closed()
            self._server = None

        logger.info("MPD server stopped")

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """
        Handle a new incoming connection.

        This is called by asyncio, in a fresh task, for each new client.
        """
        if not self._running or len(self._client_tasks) >= self.max_connections:
            peername = writer.get_extra_info("peername")
            logger.warning(
                "Rejecting connection from %s: %s",
                peername,
                "server stopping" if not self._running else "too many connections",
            )
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            return

        handler = ConnectionHandler(
            reader,
            writer,
            self.executor,
            self.framer,
            protocol_version=self.protocol_version,
            timeout=self.connection_timeout,
            max_line_length=self.max_line_length,
        )

        task = asyncio.current_task()
        if task is not None:
            self._client_tasks.add(task)
        self._connections_total += 1

        try:
            await handler.run()
        finally:
            if task is not None:
                self._client_tasks.discard(task)

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    @property
    def connection_count(self) -> int:
        """Number of currently open client connections."""
        return len(self._client_tasks)

    @property
    def connections_total(self) -> int:
        """Number of connections accepted since start."""
        return self._connections_total
