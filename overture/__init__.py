"""
Overture - An asyncio server skeleton for the MPD control protocol.

Overture accepts Music Player Daemon clients, performs the protocol
handshake and turns their line-oriented requests (single commands and
command lists) into structured Requests for a pluggable executor.
"""

__version__ = "0.1.0"
__author__ = "Overture Contributors"
__license__ = "GPL-2.0"

from overture.server import OvertureServer

__all__ = ["OvertureServer", "__version__"]
