"""
Command vocabulary for the MPD protocol.

Two interchangeable strategies turn the first token of a line into a command
name:

- StrictVocabulary: closed lookup against MpdCommand; unknown names are
  rejected with UnknownCommand.
- OpenVocabulary: any non-empty token is accepted, so new commands reach the
  executor without touching the parser.

Lookups are case-insensitive in both strategies.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from overture.protocol.errors import RenderError, UnknownCommand

if TYPE_CHECKING:
    from overture.protocol.models import CommandName

logger = logging.getLogger(__name__)

# Protocol version the command table below tracks.
VOCABULARY_VERSION = "0.23.5"

VOCABULARY_MODES = ("strict", "open")


class MpdCommand(Enum):
    """Known MPD commands. Values are the canonical wire names."""

    # Status queries
    CLEAR_ERROR = "clearerror"
    CURRENT_SONG = "currentsong"
    IDLE = "idle"
    NO_IDLE = "noidle"
    STATUS = "status"
    STATS = "stats"

    # Playback options
    CONSUME = "consume"
    CROSSFADE = "crossfade"
    MIX_RAMP_DB = "mixrampdb"
    MIX_RAMP_DELAY = "mixrampdelay"
    RANDOM = "random"
    REPEAT = "repeat"
    SETVOL = "setvol"
    VOLUME = "volume"
    SINGLE = "single"

    # Playback control
    PLAY = "play"
    PLAY_ID = "playid"
    PAUSE = "pause"
    STOP = "stop"
    NEXT = "next"
    PREVIOUS = "previous"
    SEEK = "seek"
    SEEK_ID = "seekid"
    SEEK_CUR = "seekcur"

    # Queue
    ADD = "add"
    ADD_ID = "addid"
    CLEAR = "clear"
    DELETE = "delete"
    DELETE_ID = "deleteid"
    MOVE = "move"
    MOVE_ID = "moveid"
    PLAYLIST_INFO = "playlistinfo"
    PLAYLIST_ID = "playlistid"
    PL_CHANGES = "plchanges"

    # Reflection and outputs
    COMMANDS = "commands"
    NOT_COMMANDS = "notcommands"
    TAG_TYPES = "tagtypes"
    URL_HANDLERS = "urlhandlers"
    DECODERS = "decoders"
    OUTPUTS = "outputs"

    # Connection
    PING = "ping"
    CLOSE = "close"

    # Command list framing
    COMMAND_LIST_BEGIN = "command_list_begin"
    COMMAND_LIST_OK_BEGIN = "command_list_ok_begin"
    COMMAND_LIST_END = "command_list_end"


# Display names used when rendering commands. This is a fixed table rather
# than something derived from the enum, so a gap surfaces as RenderError.
RENDER_NAMES: dict[MpdCommand, str] = {
    MpdCommand.CLEAR_ERROR: "ClearError",
    MpdCommand.CURRENT_SONG: "CurrentSong",
    MpdCommand.IDLE: "Idle",
    MpdCommand.NO_IDLE: "NoIdle",
    MpdCommand.STATUS: "Status",
    MpdCommand.STATS: "Stats",
    MpdCommand.CONSUME: "Consume",
    MpdCommand.CROSSFADE: "Crossfade",
    MpdCommand.MIX_RAMP_DB: "MixRampDb",
    MpdCommand.MIX_RAMP_DELAY: "MixRampDelay",
    MpdCommand.RANDOM: "Random",
    MpdCommand.REPEAT: "Repeat",
    MpdCommand.SETVOL: "Setvol",
    MpdCommand.VOLUME: "Volume",
    MpdCommand.SINGLE: "Single",
    MpdCommand.PLAY: "Play",
    MpdCommand.PLAY_ID: "PlayId",
    MpdCommand.PAUSE: "Pause",
    MpdCommand.STOP: "Stop",
    MpdCommand.NEXT: "Next",
    MpdCommand.PREVIOUS: "Previous",
    MpdCommand.SEEK: "Seek",
    MpdCommand.SEEK_ID: "SeekId",
    MpdCommand.SEEK_CUR: "SeekCur",
    MpdCommand.ADD: "Add",
    MpdCommand.ADD_ID: "AddId",
    MpdCommand.CLEAR: "Clear",
    MpdCommand.DELETE: "Delete",
    MpdCommand.DELETE_ID: "DeleteId",
    MpdCommand.MOVE: "Move",
    MpdCommand.MOVE_ID: "MoveId",
    MpdCommand.PLAYLIST_INFO: "PlaylistInfo",
    MpdCommand.PLAYLIST_ID: "PlaylistId",
    MpdCommand.PL_CHANGES: "PlChanges",
    MpdCommand.COMMANDS: "Commands",
    MpdCommand.NOT_COMMANDS: "NotCommands",
    MpdCommand.TAG_TYPES: "TagTypes",
    MpdCommand.URL_HANDLERS: "UrlHandlers",
    MpdCommand.DECODERS: "Decoders",
    MpdCommand.OUTPUTS: "Outputs",
    MpdCommand.PING: "Ping",
    MpdCommand.CLOSE: "Close",
    MpdCommand.COMMAND_LIST_BEGIN: "command_list_begin",
    MpdCommand.COMMAND_LIST_OK_BEGIN: "command_list_ok_begin",
    MpdCommand.COMMAND_LIST_END: "command_list_end",
}

_BY_WIRE_NAME: dict[str, MpdCommand] = {member.value: member for member in MpdCommand}


class Vocabulary(ABC):
    """Strategy for resolving and rendering command names."""

    strict: bool = False

    @abstractmethod
    def parse(self, token: str) -> CommandName:
        """Resolve a command token to a command name."""

    @abstractmethod
    def render(self, name: CommandName) -> str:
        """Render a command name for the wire."""

    @abstractmethod
    def names(self) -> list[str]:
        """Canonical names this vocabulary knows about."""

    def canonical(self, name: CommandName) -> str:
        """Case-folded wire name used for comparisons."""
        if isinstance(name, MpdCommand):
            return name.value
        return str(name).lower()

    def same(self, a: CommandName, b: CommandName) -> bool:
        """Compare two command names under this vocabulary's folding."""
        return self.canonical(a) == self.canonical(b)


class StrictVocabulary(Vocabulary):
    """Closed vocabulary backed by MpdCommand."""

    strict = True

    def parse(self, token: str) -> MpdCommand:
        """
        Look up a command token.

        Raises:
            UnknownCommand: If the lower-cased token is not a known command.
        """
        try:
            return _BY_WIRE_NAME[token.lower()]
        except KeyError:
            raise UnknownCommand(token) from None

    def render(self, name: CommandName) -> str:
        if not isinstance(name, MpdCommand):
            raise RenderError(f"not a known command: {name!r}")
        try:
            return RENDER_NAMES[name]
        except KeyError:
            raise RenderError(f"no rendering defined for {name.name}") from None

    def names(self) -> list[str]:
        return [member.value for member in MpdCommand]


class OpenVocabulary(Vocabulary):
    """
    Pass-through vocabulary accepting any token as a command name.

    With preserve_case=False (the default) the stored name is the
    lower-cased token, so names match the strict vocabulary's wire names.
    With preserve_case=True the raw token is stored and callers compare
    names through canonical()/same().
    """

    def __init__(self, preserve_case: bool = False) -> None:
        self.preserve_case = preserve_case

    def parse(self, token: str) -> str:
        if not token:
            raise UnknownCommand(token)
        return token if self.preserve_case else token.lower()

    def render(self, name: CommandName) -> str:
        if isinstance(name, MpdCommand):
            return name.value
        if not name:
            raise RenderError("empty command name")
        return str(name)

    def names(self) -> list[str]:
        return []


def get_vocabulary(mode: str = "strict", preserve_case: bool = False) -> Vocabulary:
    """
    Build the vocabulary strategy for a configured mode.

    Args:
        mode: "strict" or "open".
        preserve_case: Keep raw token casing (open mode only).

    Raises:
        ValueError: If the mode is not recognised.
    """
    if mode == "strict":
        if preserve_case:
            logger.debug("preserve_case has no effect in strict vocabulary mode")
        return StrictVocabulary()
    if mode == "open":
        return OpenVocabulary(preserve_case=preserve_case)
    raise ValueError(f"Unknown vocabulary mode: {mode!r} (expected one of {VOCABULARY_MODES})")
