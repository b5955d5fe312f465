"""
Console protocol state machine.

Reads the ``FIRE ...`` instrumentation lines printed by a node and
reconstructs them into completed blocks.
"""

from .handshake import SUPPORTED_MAJOR, SUPPORTED_MINOR, Handshake, parse_handshake
from .reader import ConsoleReader
from .state import ActiveBlock, AwaitingBlock, InBlock, PreInit, ReaderState
from .stats import AvgDurationCounter, RateCounter, ReaderStats, StatsSink
from .tokenizer import DEFAULT_PREFIX, Command, CommandName, tokenize

__all__ = [
    # Reader
    "ConsoleReader",
    # Tokenizer
    "Command",
    "CommandName",
    "DEFAULT_PREFIX",
    "tokenize",
    # Handshake
    "Handshake",
    "parse_handshake",
    "SUPPORTED_MAJOR",
    "SUPPORTED_MINOR",
    # Phases
    "ReaderState",
    "PreInit",
    "AwaitingBlock",
    "InBlock",
    "ActiveBlock",
    # Statistics
    "ReaderStats",
    "RateCounter",
    "AvgDurationCounter",
    "StatsSink",
]
