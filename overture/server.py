"""
Overture Server - Main Server Module

This module contains the main OvertureServer class that wires the MPD
protocol server and the optional status web server together from a
ServerConfig and manages the application lifecycle.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from overture.config import ServerConfig
from overture.protocol.executor import AcknowledgingExecutor, CommandExecutor
from overture.protocol.server import MpdServer
from overture.protocol.vocabulary import get_vocabulary
from overture.web.server import WebServer, WebServerError

logger = logging.getLogger(__name__)


class OvertureServer:
    """
    Main Overture server that coordinates all components.

    The server manages:
    - MPD protocol server (port 6600) for client connections
    - Web server for the HTTP status API (optional)
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        executor: CommandExecutor | None = None,
    ) -> None:
        """
        Initialize the Overture server.

        Args:
            config: Server configuration (defaults if not provided).
            executor: Request executor. Defaults to AcknowledgingExecutor,
                which acknowledges every request without acting on it.
        """
        self.config = config if config is not None else ServerConfig()

        self.vocabulary = get_vocabulary(
            self.config.vocabulary.mode,
            preserve_case=self.config.vocabulary.preserve_case,
        )
        self.executor = executor if executor is not None else AcknowledgingExecutor(self.vocabulary)

        self.mpd = MpdServer(
            host=self.config.host,
            port=self.config.port,
            vocabulary=self.vocabulary,
            executor=self.executor,
            protocol_version=self.config.protocol_version,
            connection_timeout=self.config.connection_timeout,
            max_connections=self.config.max_connections,
            max_line_length=self.config.max_line_length,
            max_command_list_size=self.config.max_command_list_bytes,
        )

        self.web_server: WebServer | None = None

        # Server state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Start all server components."""
        logger.info("Starting Overture server on %s:%d", self.config.host, self.config.port)

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.mpd.start()

        if self.config.web_enabled:
            from overture import __version__

            self.web_server = WebServer(mpd_server=self.mpd, version=__version__)
            try:
                await self.web_server.start(host=self.config.host, port=self.config.web_port)
            except WebServerError:
                self.web_server = None
                self._running = False
                await self.mpd.stop()
                raise

        logger.info("Overture server started successfully")
        if self.web_server:
            logger.info("MPD: port %d | Web: port %d", self.mpd.port, self.config.web_port)

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        if not self._running:
            return

        logger.info("Stopping Overture server...")
        self._running = False

        if self.web_server:
            await self.web_server.stop()
            self.web_server = None

        await self.mpd.stop()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("Overture server stopped")

    async def run(self) -> None:
        """
        Run the server until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM).
        """
        await self.start()

        # Set up signal handlers for graceful shutdown
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        # Wait for shutdown
        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    def request_shutdown(self) -> None:
        """Ask a running server to stop (used by run())."""
        if self._shutdown_event:
            self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

