"""
Firehose Reader

Reconstructs blocks from the instrumentation lines a blockchain node prints
on its console.

Provides:
- Line protocol tokenizer and INIT handshake validation
- Block state machine with strict start/end consistency checks
- Base64 + MessagePack payload decoding with field/block diagnostics
- Pluggable block encoder
- Throughput statistics with periodic structured log reports

Usage:

    >>> from firehose_reader import ConsoleReader, LineChannel
    >>> channel = LineChannel()
    >>> async with ConsoleReader(channel) as reader:
    ...     async for block in reader:
    ...         store(block)
"""

from .codec import (
    BlockEncoder,
    BlockRef,
    Checkpoint,
    CompletedBlock,
    DisplayUpdate,
    EncodedBlock,
    Event,
    FieldDecoder,
    MsgpackBlockEncoder,
    ObjectChange,
    Transaction,
)
from .config import ReaderConfig
from .console import ConsoleReader, Handshake, ReaderStats

# Exceptions
from .exceptions import (
    Base64DecodeError,
    ConfigError,
    ConsoleReaderError,
    DuplicateHandshakeError,
    EmptyBlockError,
    FieldParseError,
    IncompleteBlockError,
    LineFormatError,
    NoActiveBlockError,
    PayloadError,
    PayloadSchemaError,
    ProtocolVersionError,
    ReaderFailedError,
    SequenceMismatchError,
)
from .logging_utils import configure_structured_logging
from .sources import LineChannel, iter_lines, lines_from_file, lines_from_pipe, lines_from_stream

__all__ = [
    # Reader
    "ConsoleReader",
    "ReaderConfig",
    "ReaderStats",
    "Handshake",
    # Sources
    "LineChannel",
    "iter_lines",
    "lines_from_file",
    "lines_from_pipe",
    "lines_from_stream",
    # Codec
    "FieldDecoder",
    "BlockEncoder",
    "MsgpackBlockEncoder",
    "Checkpoint",
    "Transaction",
    "ObjectChange",
    "Event",
    "DisplayUpdate",
    "BlockRef",
    "CompletedBlock",
    "EncodedBlock",
    # Logging
    "configure_structured_logging",
    # Exceptions
    "ConsoleReaderError",
    "LineFormatError",
    "ProtocolVersionError",
    "FieldParseError",
    "DuplicateHandshakeError",
    "NoActiveBlockError",
    "PayloadError",
    "Base64DecodeError",
    "PayloadSchemaError",
    "SequenceMismatchError",
    "EmptyBlockError",
    "IncompleteBlockError",
    "ReaderFailedError",
    "ConfigError",
]

__version__ = "0.1.0"
