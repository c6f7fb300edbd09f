"""
Overture Web Layer.

A small HTTP API (FastAPI) exposing server health, status and the command
vocabulary to monitoring tools and dashboards.
"""

from overture.web.server import WebServer, WebServerError

__all__ = ["WebServer", "WebServerError"]
