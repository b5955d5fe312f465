"""
Tokenizer and line filter for the console protocol.

Protocol lines look like ``FIRE <COMMAND> <param> [<param> ...]``. Anything
not starting with the marker is node output unrelated to the protocol.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..exceptions import FieldParseError, LineFormatError

DEFAULT_PREFIX = "FIRE"

_UINT_RE = re.compile(r"[0-9]+")
_UINT64_MAX = 2**64 - 1


class CommandName(Enum):
    """Commands understood by the reader."""

    INIT = "INIT"
    CHECKPOINT = "CHECKPOINT"
    BLOCK_START = "BLOCK_START"
    TRX = "TRX"
    OBJ_CHANGE = "OBJ_CHANGE"
    EVT = "EVT"
    DSP_UPDATE = "DSP_UPDATE"
    BLOCK_END = "BLOCK_END"


@dataclass(frozen=True)
class Command:
    """A tokenized protocol line.

    ``name`` is None when the command word is not part of the vocabulary;
    ``word`` always holds the raw command word.
    """

    word: str
    params: tuple[str, ...]

    @property
    def name(self) -> CommandName | None:
        try:
            return CommandName(self.word)
        except ValueError:
            return None


def tokenize(line: str, prefix: str = DEFAULT_PREFIX) -> Command | None:
    """Split a protocol line into a command word and its parameters.

    Elements are separated by single spaces and may not contain spaces
    themselves; payloads travel base64 encoded for that reason.

    Args:
        line: Raw line, without its trailing newline
        prefix: Marker that starts every protocol line

    Returns:
        The command, or None when the line is not a protocol line

    Raises:
        LineFormatError: If the line has fewer than two tokens after the marker
    """
    if line != prefix and not line.startswith(prefix + " "):
        return None

    tokens = line[len(prefix) + 1 :].split(" ")
    if len(tokens) < 2:
        raise LineFormatError(f"expecting at least two tokens, found {len(tokens)}")

    return Command(word=tokens[0], params=tuple(tokens[1:]))


def validate_count(command: str, params: tuple[str, ...], *counts: int) -> None:
    """Check that ``params`` has one of the allowed lengths.

    Raises:
        LineFormatError: If the length is not allowed
    """
    if len(params) in counts:
        return
    expected = " or ".join(str(count) for count in counts)
    raise LineFormatError(f"{expected} fields required but found {len(params)}", command)


def parse_uint(command: str, param: str, value: str) -> int:
    """Parse an unsigned 64-bit decimal integer parameter.

    Raises:
        FieldParseError: If value is not an unsigned decimal integer
    """
    if not _UINT_RE.fullmatch(value):
        raise FieldParseError(command, param, value)
    number = int(value)
    if number > _UINT64_MAX:
        raise FieldParseError(command, param, value)
    return number
