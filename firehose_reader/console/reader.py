"""
Console reader: turns the node's instrumentation lines into blocks.

The reader consumes lines strictly in order. Before the INIT handshake only
INIT is acted upon; afterwards BLOCK_START opens a block, the accumulation
commands fill it and BLOCK_END validates it, hands it to the encoder and
returns the encoded block to the caller.

Any protocol, decoding or sequencing failure is terminal: the error carries
the offending line and the reader refuses further reads, since the block
and handshake state cannot be rebuilt from an arbitrary point of the stream.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from ..codec.decoder import FieldDecoder
from ..codec.encoder import BlockEncoder, MsgpackBlockEncoder
from ..config import ReaderConfig
from ..exceptions import (
    ConsoleReaderError,
    DuplicateHandshakeError,
    EmptyBlockError,
    IncompleteBlockError,
    NoActiveBlockError,
    ReaderFailedError,
    SequenceMismatchError,
)
from ..logging_utils import ReaderLoggerAdapter
from .handshake import SUPPORTED_MINOR, Handshake, parse_handshake
from .state import ActiveBlock, AwaitingBlock, InBlock, PreInit, ReaderState
from .stats import ReaderStats, StatsSink
from .tokenizer import Command, CommandName, parse_uint, tokenize, validate_count

logger = logging.getLogger(__name__)


class ConsoleReader:
    """Reads blocks from a stream of console lines.

    Usage:

        >>> async with ConsoleReader(lines, MsgpackBlockEncoder()) as reader:
        ...     async for block in reader:
        ...         archive(block)
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        encoder: BlockEncoder | None = None,
        *,
        config: ReaderConfig | None = None,
        field_decoder: FieldDecoder | None = None,
        stats: ReaderStats | None = None,
        stats_sink: StatsSink | None = None,
    ) -> None:
        """Initialize the console reader.

        Args:
            lines: Ordered source of raw lines; exhaustion means end of stream
            encoder: Turns completed blocks into output blocks
            config: Reader configuration
            field_decoder: Decodes base64 payload parameters
            stats: Statistics counters, created from config when omitted
            stats_sink: Receives periodic statistics snapshots instead of the log
        """
        self.config = config or ReaderConfig()
        self.encoder = encoder or MsgpackBlockEncoder()
        self.field_decoder = field_decoder or FieldDecoder()
        self.stats = stats or ReaderStats(
            rate_window=self.config.rate_window,
            parse_time_window=self.config.parse_time_window,
        )
        self._stats_sink = stats_sink
        self._source = lines
        self._lines: AsyncIterator[str] = aiter(lines)
        self._state: ReaderState = PreInit()
        self._started = False
        self._done = False
        self._failure: BaseException | None = None
        self._log = ReaderLoggerAdapter(logger, {})

    async def __aenter__(self) -> ConsoleReader:
        self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __aiter__(self) -> ConsoleReader:
        return self

    async def __anext__(self) -> Any:
        block = await self.read_block()
        if block is None:
            raise StopAsyncIteration
        return block

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def handshake(self) -> Handshake | None:
        if isinstance(self._state, PreInit):
            return None
        return self._state.handshake

    @property
    def done(self) -> bool:
        """True once the line source is exhausted or a terminal error occurred."""
        return self._done or self._failure is not None

    def start(self) -> None:
        """Start periodic statistics reporting. Needs a running event loop."""
        if self._started:
            return
        self._started = True
        if self.config.stats_enabled:
            self.stats.start_periodic_log(self.config.stats_interval, self._stats_sink)

    async def close(self) -> None:
        """Stop statistics reporting and release the line source."""
        self.stats.stop_periodic_log()
        self._done = True
        close = getattr(self._source, "close", None)
        aclose = getattr(self._lines, "aclose", None)
        if callable(close):
            # aiofiles handles close with a coroutine
            result = close()
            if inspect.isawaitable(result):
                await result
        elif callable(aclose):
            await aclose()

    async def read_block(self) -> Any:
        """Read lines until one block completes.

        Returns:
            The encoder's output for the completed block, or None when the
            line source ended cleanly between blocks

        Raises:
            ConsoleReaderError: On any protocol, decoding or sequencing error
            ReaderFailedError: If a previous call already failed
        """
        if self._failure is not None:
            raise ReaderFailedError(self._failure)
        if self._done:
            return None

        self.start()
        try:
            return await self._next_block()
        except Exception as e:
            self._failure = e
            self.stats.stop_periodic_log()
            raise

    async def _next_block(self) -> Any:
        async for line in self._lines:
            try:
                command = tokenize(line, self.config.line_prefix)
                if command is None:
                    continue
                block = self._dispatch(command, line)
            except ConsoleReaderError as e:
                e.attach_line(line)
                raise

            if block is not None:
                return block

        return self._end_of_stream()

    def _end_of_stream(self) -> None:
        self._done = True
        self._log.info("lines source has been closed")
        if isinstance(self._state, InBlock):
            raise IncompleteBlockError(self._state.block.height)
        return None

    def _dispatch(self, command: Command, line: str) -> Any:
        state = self._state
        if isinstance(state, PreInit):
            if command.name is CommandName.INIT:
                self._read_init(command.params)
            else:
                self._log.warning(
                    "received Firehose log line but we did not see 'FIRE INIT' yet, skipping",
                    extra={"command": command.word},
                )
            return None

        # Ordered from most to least frequent
        match command.name:
            case CommandName.TRX:
                block, trx = self._decode_field(command)
                block.transactions.append(trx)
            case CommandName.EVT:
                block, event = self._decode_field(command)
                block.events.append(event)
            case CommandName.OBJ_CHANGE:
                block, change = self._decode_field(command)
                block.object_change = change
            case CommandName.DSP_UPDATE:
                block, update = self._decode_field(command)
                block.display_updates.append(update)
            case CommandName.CHECKPOINT:
                block, checkpoint = self._decode_field(command)
                block.checkpoint = checkpoint
            case CommandName.BLOCK_START:
                self._read_block_start(command.params)
            case CommandName.BLOCK_END:
                return self._read_block_end(command.params)
            case CommandName.INIT:
                raise DuplicateHandshakeError()
            case _:
                if self._log.isEnabledFor(logging.DEBUG):
                    self._log.debug("skipping unknown firehose log line", extra={"line": line})
        return None

    def _read_init(self, params: tuple[str, ...]) -> None:
        handshake = parse_handshake(params)
        self._state = AwaitingBlock(handshake)
        self._log.bind(
            client_name=handshake.client_name,
            fork=handshake.fork_name,
            chain_id=handshake.chain_id,
        )
        self._log.info("initialized console reader correctly", extra=handshake.to_dict())
        if handshake.firehose_minor != SUPPORTED_MINOR:
            self._log.info(
                f"node speaks firehose minor version {handshake.firehose_minor}, "
                f"reader was built for {SUPPORTED_MINOR}"
            )

    def _active_block(self, command: Command) -> ActiveBlock:
        if not isinstance(self._state, InBlock):
            raise NoActiveBlockError(command.word)
        return self._state.block

    def _decode_field(self, command: Command) -> tuple[ActiveBlock, Any]:
        validate_count(command.word, command.params, 1)
        block = self._active_block(command)
        record = self.field_decoder.decode(command.word, command.params[0], block.height)
        return block, record

    # Format:
    # FIRE BLOCK_START <height>
    def _read_block_start(self, params: tuple[str, ...]) -> None:
        validate_count(CommandName.BLOCK_START.value, params, 1)
        height = parse_uint(CommandName.BLOCK_START.value, "height", params[0])

        state = self._state
        if isinstance(state, InBlock):
            self._log.info(
                "received BLOCK_START while one is already active, resetting active block and starting over",
                extra={
                    "previous_active_block_height": state.block.height,
                    "new_active_block_height": height,
                },
            )

        self._state = InBlock(state.handshake, ActiveBlock(height=height))

    # Format:
    # FIRE BLOCK_END <height>
    def _read_block_end(self, params: tuple[str, ...]) -> Any:
        command = CommandName.BLOCK_END.value
        validate_count(command, params, 1)
        height = parse_uint(command, "height", params[0])

        state = self._state
        if not isinstance(state, InBlock):
            raise NoActiveBlockError(command)

        active = state.block
        if active.height != height:
            raise SequenceMismatchError(active.height, height)
        if not active.transactions:
            raise EmptyBlockError(active.height)

        completed = active.complete()
        self.stats.record_block(completed.as_ref(), len(completed.transactions), active.elapsed())

        self._log.debug(
            "console reader node block",
            extra={
                "block_id": completed.id,
                "height": completed.number,
                "block_time": completed.timestamp.isoformat() if completed.timestamp else None,
            },
        )

        self._state = AwaitingBlock(state.handshake)
        return self.encoder.encode(completed, completed.lib_num)
