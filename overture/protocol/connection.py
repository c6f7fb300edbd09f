"""
Per-connection handling for MPD clients.

A ConnectionHandler owns one accepted TCP connection for its whole life:

1. Write the "OK MPD <version>" handshake.
2. Read one request (a bare line, or every line up to command_list_end).
3. Frame it, hand it to the executor, write the response back.
4. Repeat until the client leaves, times out or sends something that
   leaves the stream in an unknown position.

Errors never escape run(); the listening server keeps accepting.
"""

from __future__ import annotations

import asyncio
import logging

from overture.protocol.errors import (
    ACK_ERROR_UNKNOWN,
    CommandListTooLarge,
    IoFailure,
    ProtocolError,
    RequestTooLarge,
    format_ack,
)
from overture.protocol.executor import CommandExecutor
from overture.protocol.framer import CommandListFramer
from overture.protocol.models import Request, Response

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_TIMEOUT = 60.0
DEFAULT_MAX_LINE_LENGTH = 4096


class ConnectionHandler:
    """
    Serves one MPD client connection.

    Attributes:
        reader: Stream the client's requests arrive on.
        writer: Stream responses are written to.
        executor: Collaborator that executes framed requests.
        framer: Shared framer for this server's vocabulary.
        protocol_version: Version announced in the handshake.
        timeout: Idle timeout in seconds for each read and write.
        max_line_length: Longest accepted request line in bytes.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        executor: CommandExecutor,
        framer: CommandListFramer,
        *,
        protocol_version: str,
        timeout: float = DEFAULT_CONNECTION_TIMEOUT,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.executor = executor
        self.framer = framer
        self.protocol_version = protocol_version
        self.timeout = timeout
        self.max_line_length = max_line_length

        peername = writer.get_extra_info("peername")
        self.remote_addr = f"{peername[0]}:{peername[1]}" if peername else "unknown"
        self.requests_handled = 0

    async def run(self) -> None:
        """Serve the connection until it ends, then release the socket."""
        logger.info("New connection from %s", self.remote_addr)

        try:
            await self._write(f"OK MPD {self.protocol_version}\n".encode("ascii"))
            await self._serve()
        except asyncio.CancelledError:
            logger.debug("Connection handler cancelled for %s", self.remote_addr)
        except asyncio.TimeoutError:
            logger.info("Connection from %s timed out", self.remote_addr)
        except IoFailure as e:
            logger.info("I/O failure on %s: %s", self.remote_addr, e)
        except Exception as e:
            logger.exception("Error handling connection from %s: %s", self.remote_addr, e)
        finally:
            await self.close()
            logger.info("Connection closed: %s", self.remote_addr)

    async def _serve(self) -> None:
        """Request/response loop."""
        while True:
            try:
                request = await self.read_request()
            except IoFailure:
                raise
            except ProtocolError as e:
                logger.warning("Rejected request from %s: %s", self.remote_addr, e)
                if e.closes_connection:
                    await self._report_before_close(e)
                    return
                await self._write(f"{e.to_ack()}\n".encode("utf-8"))
                continue

            if request is None:
                logger.debug("Client %s closed the connection", self.remote_addr)
                return

            response = await self._execute(request)
            await self._write(response.to_bytes())
            self.requests_handled += 1

            if response.close:
                logger.debug("Executor closed connection for %s", self.remote_addr)
                return

    async def read_request(self) -> Request | None:
        """
        Read and frame one request.

        Returns:
            The framed Request, or None if the client closed the connection
            before sending anything.

        Raises:
            ProtocolError: Any tokenizer or framer failure.
            IoFailure: If reading from the socket fails.
            asyncio.TimeoutError: If the client stays idle too long.
        """
        first = await self._readline()
        if not first:
            return None

        logger.debug("Request line from %s: %r", self.remote_addr, first)

        if not self.framer.opens_list(first):
            return self.framer.frame(first)

        buffer = bytearray(first)
        while True:
            line = await self._readline()
            if not line:
                # EOF inside a list; the framer reports it as unterminated.
                break
            buffer += line
            if len(buffer) > self.framer.max_list_size:
                raise CommandListTooLarge(
                    f"Command list too large (> {self.framer.max_list_size} bytes)"
                )
            if self.framer.closes_list(line):
                break

        return self.framer.frame(bytes(buffer))

    async def _readline(self) -> bytes:
        try:
            line = await asyncio.wait_for(self.reader.readline(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise
        except ValueError as e:
            # StreamReader limit exceeded
            raise RequestTooLarge(f"Line too long: {e}") from e
        except OSError as e:
            raise IoFailure(f"Read failed: {e}") from e

        if len(line) > self.max_line_length:
            raise RequestTooLarge(f"Line too long ({len(line)} > {self.max_line_length} bytes)")
        return line

    async def _write(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise
        except OSError as e:
            raise IoFailure(f"Write failed: {e}") from e

    async def _execute(self, request: Request) -> Response:
        try:
            return await self.executor.execute(request)
        except Exception as e:
            logger.exception("Executor failed on request from %s: %s", self.remote_addr, e)
            return Response(ack=format_ack(ACK_ERROR_UNKNOWN, "internal error"))

    async def _report_before_close(self, error: ProtocolError) -> None:
        """Best-effort ACK for errors that end the connection."""
        try:
            await self._write(f"{error.to_ack()}\n".encode("utf-8"))
        except (IoFailure, asyncio.TimeoutError):
            logger.debug("Could not report %s to %s", type(error).__name__, self.remote_addr)

    async def close(self) -> None:
        """Close the connection to this client."""
        if self.writer.is_closing():
            return
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass  # Already disconnected
