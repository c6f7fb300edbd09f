"""
Protocol implementations for Overture.

This package contains the MPD text protocol:
- vocabulary: known command names (strict) or pass-through names (open)
- tokenizer: splits request lines into tokens
- framer: assembles single commands and command lists into Requests
- connection: per-client handshake and request/response loop
- server: the TCP listener (port 6600)
"""

from overture.protocol.server import MpdServer

__all__ = ["MpdServer"]
