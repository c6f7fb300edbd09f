"""
Tests for the command-list framer.

These tests verify that single commands and command lists are framed into
Requests, that list markers are kept as Commands, and that malformed lists
are rejected with typed errors.
"""

import pytest

from overture.protocol.errors import (
    CommandListTooLarge,
    EmptyRequest,
    FramingError,
    TrailingDataAfterListEnd,
    UnknownCommand,
    UnterminatedCommandList,
)
from overture.protocol.framer import CommandListFramer
from overture.protocol.models import Command, Request
from overture.protocol.vocabulary import MpdCommand, OpenVocabulary, StrictVocabulary

# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def framer() -> CommandListFramer:
    """Framer with the strict vocabulary."""
    return CommandListFramer(StrictVocabulary())


@pytest.fixture
def open_framer() -> CommandListFramer:
    """Framer with the open vocabulary."""
    return CommandListFramer(OpenVocabulary())


# -----------------------------------------------------------------------------
# Single Command Tests
# -----------------------------------------------------------------------------


class TestSingleCommand:
    """Tests for bare (non-list) requests."""

    def test_single_command(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"currentsong\n")

        assert request == Request((Command(MpdCommand.CURRENT_SONG),))
        assert not request.is_command_list
        assert request.list_marker is None
        assert request.body == request.commands

    def test_single_command_with_arguments(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"setvol 50\n")

        assert len(request) == 1
        assert request.commands[0] == Command(MpdCommand.SETVOL, ("50",))

    def test_string_input(self, framer: CommandListFramer) -> None:
        assert framer.frame("moveid 2 5\n") == framer.frame(b"moveid 2 5\n")

    def test_missing_terminator(self, framer: CommandListFramer) -> None:
        assert framer.frame(b"status") == framer.frame(b"status\n")

    def test_empty_buffer_raises_empty_request(self, framer: CommandListFramer) -> None:
        with pytest.raises(EmptyRequest):
            framer.frame(b"\n")

    def test_unknown_command_rejects_request(self, framer: CommandListFramer) -> None:
        with pytest.raises(UnknownCommand):
            framer.frame(b"frobnicate\n")

    def test_open_vocabulary_accepts_unknown(self, open_framer: CommandListFramer) -> None:
        request = open_framer.frame(b"frobnicate now\n")

        assert request.commands[0] == Command("frobnicate", ("now",))

    def test_multiple_lines_outside_list(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError, match="outside a command list"):
            framer.frame(b"status\nstats\n")

    def test_invalid_utf8(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError, match="UTF-8"):
            framer.frame(b"add \xff\xfe\n")

    def test_marker_with_arguments_is_rejected(self, framer: CommandListFramer) -> None:
        """A marker with arguments neither opens a list nor runs as a command."""
        with pytest.raises(FramingError, match="Malformed list marker"):
            framer.frame(b"command_list_begin extra\n")

    def test_marker_with_trailing_space_is_rejected(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError) as exc_info:
            framer.frame(b"command_list_begin \n")

        assert exc_info.value.to_ack().startswith("ACK [1@0] {command_list_begin}")

    def test_stray_list_end(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError) as exc_info:
            framer.frame(b"command_list_end\n")

        assert exc_info.value.to_ack() == "ACK [1@0] {command_list_end} not in command list mode"

    def test_open_vocabulary_rejects_marker_lookalike(self, open_framer: CommandListFramer) -> None:
        with pytest.raises(FramingError):
            open_framer.frame(b"Command_List_Ok_Begin\n")


# -----------------------------------------------------------------------------
# Command List Tests
# -----------------------------------------------------------------------------


class TestCommandList:
    """Tests for command_list_begin / command_list_ok_begin framing."""

    def test_list_keeps_markers(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\nvolume 86\nmoveid 2 5\ncommand_list_end\n")

        assert request.commands == (
            Command(MpdCommand.COMMAND_LIST_BEGIN),
            Command(MpdCommand.VOLUME, ("86",)),
            Command(MpdCommand.MOVE_ID, ("2", "5")),
            Command(MpdCommand.COMMAND_LIST_END),
        )
        assert request.is_command_list
        assert request.list_marker == "command_list_begin"
        assert not request.wants_list_ok

    def test_markers_have_no_arguments(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\nstatus\ncommand_list_end\n")

        assert request.commands[0].arguments is None
        assert request.commands[-1].arguments is None

    def test_ok_list_marker_preserved(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_ok_begin\nstatus\nstats\ncommand_list_end\n")

        assert request.commands[0] == Command(MpdCommand.COMMAND_LIST_OK_BEGIN)
        assert request.list_marker == "command_list_ok_begin"
        assert request.wants_list_ok

    def test_body_excludes_markers(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\nplay\nstop\ncommand_list_end\n")

        assert request.body == (Command(MpdCommand.PLAY), Command(MpdCommand.STOP))

    def test_empty_list(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\ncommand_list_end\n")

        assert len(request) == 2
        assert request.body == ()

    def test_crlf_lines(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\r\nsetvol 10\r\ncommand_list_end\r\n")

        assert request.body == (Command(MpdCommand.SETVOL, ("10",)),)

    def test_open_vocabulary_list(self, open_framer: CommandListFramer) -> None:
        request = open_framer.frame(b"command_list_begin\nreadpicture a.flac 0\ncommand_list_end\n")

        assert request.commands[0].name == "command_list_begin"
        assert request.commands[1] == Command("readpicture", ("a.flac", "0"))
        assert request.commands[-1].name == "command_list_end"

    def test_markers_are_case_sensitive(self, framer: CommandListFramer) -> None:
        """An upper-case begin marker is neither a list opener nor a command."""
        with pytest.raises(FramingError):
            framer.frame(b"COMMAND_LIST_BEGIN\n")

        with pytest.raises(FramingError):
            framer.frame(b"COMMAND_LIST_OK_BEGIN\n")


# -----------------------------------------------------------------------------
# Framing Error Tests
# -----------------------------------------------------------------------------


class TestFramingErrors:
    """Tests for malformed command lists."""

    def test_unterminated_list(self, framer: CommandListFramer) -> None:
        """A list cut off by end of stream is rejected, never truncated."""
        with pytest.raises(UnterminatedCommandList) as exc_info:
            framer.frame(b"command_list_begin\nvolume 86\n")

        assert exc_info.value.closes_connection

    def test_unterminated_marker_only(self, framer: CommandListFramer) -> None:
        with pytest.raises(UnterminatedCommandList):
            framer.frame(b"command_list_ok_begin\n")

    def test_trailing_data_after_end(self, framer: CommandListFramer) -> None:
        with pytest.raises(TrailingDataAfterListEnd):
            framer.frame(b"command_list_begin\nstatus\ncommand_list_end\nstats\n")

    def test_trailing_blank_lines_are_ignored(self, framer: CommandListFramer) -> None:
        request = framer.frame(b"command_list_begin\nstatus\ncommand_list_end\n\n")

        assert len(request) == 3

    def test_nested_list(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError, match="Nested"):
            framer.frame(b"command_list_begin\ncommand_list_ok_begin\ncommand_list_end\n")

    def test_uppercase_end_inside_list(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError) as exc_info:
            framer.frame(b"command_list_begin\nstatus\nCOMMAND_LIST_END\ncommand_list_end\n")

        assert exc_info.value.index == 1

    def test_end_with_trailing_space_inside_list(self, framer: CommandListFramer) -> None:
        """Only the exact end marker closes a list; a look-alike is rejected."""
        with pytest.raises(FramingError, match="Malformed list marker"):
            framer.frame(b"command_list_begin\nplay\ncommand_list_end \ncommand_list_end\n")

    def test_begin_lookalike_inside_list(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError):
            framer.frame(b"command_list_begin\nCommand_List_Begin\ncommand_list_end\n")

    def test_unknown_command_in_list_carries_index(self, framer: CommandListFramer) -> None:
        with pytest.raises(UnknownCommand) as exc_info:
            framer.frame(b"command_list_begin\nstatus\nbogus\ncommand_list_end\n")

        assert exc_info.value.index == 1
        assert exc_info.value.to_ack() == 'ACK [5@1] {} unknown command "bogus"'

    def test_blank_line_in_list(self, framer: CommandListFramer) -> None:
        with pytest.raises(EmptyRequest):
            framer.frame(b"command_list_begin\n\ncommand_list_end\n")

    def test_list_too_large(self) -> None:
        framer = CommandListFramer(StrictVocabulary(), max_list_size=64)
        body = b"setvol 50\n" * 10

        with pytest.raises(CommandListTooLarge):
            framer.frame(b"command_list_begin\n" + body + b"command_list_end\n")

    def test_framing_error_ack_code(self, framer: CommandListFramer) -> None:
        with pytest.raises(FramingError) as exc_info:
            framer.frame(b"command_list_begin\nstatus\ncommand_list_end\nstats\n")

        assert exc_info.value.to_ack().startswith("ACK [1@")


# -----------------------------------------------------------------------------
# Marker Detection Tests
# -----------------------------------------------------------------------------


class TestMarkerDetection:
    """Tests for the helpers the connection read loop uses."""

    def test_opens_list(self, framer: CommandListFramer) -> None:
        assert framer.opens_list(b"command_list_begin\n")
        assert framer.opens_list(b"command_list_ok_begin\r\n")
        assert not framer.opens_list(b"command_list_end\n")
        assert not framer.opens_list(b"status\n")
        assert not framer.opens_list(b"command_list_begin now\n")

    def test_closes_list(self, framer: CommandListFramer) -> None:
        assert framer.closes_list(b"command_list_end\n")
        assert framer.closes_list("command_list_end")
        assert not framer.closes_list(b"Command_List_End\n")
