"""
Web Server Module for Overture.

This module provides the WebServer class that creates and manages the
FastAPI application for the HTTP status API:

- GET /health: liveness check
- GET /api/status: server, protocol and connection information
- GET /api/commands: the command vocabulary
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import FastAPI

from overture.protocol.vocabulary import RENDER_NAMES, MpdCommand

if TYPE_CHECKING:
    from overture.protocol.server import MpdServer

logger = logging.getLogger(__name__)

# How long start() waits for uvicorn to bind before giving up.
STARTUP_TIMEOUT = 5.0


class WebServerError(RuntimeError):
    """The status web server could not be started."""


class WebServer:
    """FastAPI-based status server for Overture."""

    def __init__(self, mpd_server: MpdServer, version: str = "0.1.0") -> None:
        """
        Initialize the WebServer.

        Args:
            mpd_server: The MPD server to report on.
            version: Overture package version reported by /api/status.
        """
        self.mpd_server = mpd_server
        self.version = version

        self.app = FastAPI(
            title="Overture",
            description="MPD protocol server status API",
            version=version,
        )

        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "0.0.0.0"
        self._port = 0

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "overture"}

        @self.app.get("/api/status", tags=["status"])
        async def server_status() -> dict[str, Any]:
            """Server and connection status."""
            mpd = self.mpd_server
            return {
                "server": "overture",
                "version": self.version,
                "protocol_version": mpd.protocol_version,
                "running": mpd.is_running,
                "host": mpd.host,
                "port": mpd.port,
                "vocabulary": "strict" if mpd.vocabulary.strict else "open",
                "connections": mpd.connection_count,
                "connections_total": mpd.connections_total,
                "max_connections": mpd.max_connections,
            }

        @self.app.get("/api/commands", tags=["status"])
        async def list_commands() -> dict[str, Any]:
            """Known command names (empty list in open vocabulary mode)."""
            vocabulary = self.mpd_server.vocabulary
            commands = []
            for name in vocabulary.names():
                member = MpdCommand(name)
                commands.append({"name": name, "display": RENDER_NAMES.get(member, name)})
            return {
                "mode": "strict" if vocabulary.strict else "open",
                "count": len(commands),
                "commands": commands,
            }

    async def start(self, host: str = "0.0.0.0", port: int = 8600) -> None:
        """
        Start the web server.

        Args:
            host: Host address to bind to
            port: Port to listen on

        Raises:
            WebServerError: If uvicorn fails to bind or does not come up.
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        # Start server in background, then wait until it is listening
        self._serve_task = asyncio.create_task(self._serve(self._server))

        loop = asyncio.get_running_loop()
        deadline = loop.time() + STARTUP_TIMEOUT
        while not self._server.started:
            if self._serve_task.done():
                task, self._serve_task, self._server = self._serve_task, None, None
                error = task.exception()
                if error is not None:
                    raise error
                raise WebServerError(f"Web server on {host}:{port} exited during startup")
            if loop.time() > deadline:
                await self.stop()
                raise WebServerError(f"Web server on {host}:{port} did not start in time")
            await asyncio.sleep(0.05)

        logger.info("Web server started on http://%s:%d", host, port)

    async def _serve(self, server: uvicorn.Server) -> None:
        """Run uvicorn, turning its sys.exit() on startup failure into an error."""
        try:
            await server.serve()
        except SystemExit as e:
            logger.error("Web server on %s:%d failed to start", self._host, self._port)
            raise WebServerError(
                f"Web server on {self._host}:{self._port} failed to start (exit code {e.code})"
            ) from None

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            try:
                await self._serve_task
            except Exception as e:
                logger.warning("Web server exited with error: %s", e)
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
