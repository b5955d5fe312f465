"""
Reader phases.

The reader is always in exactly one of three phases. Only InBlock holds an
accumulator, so "no active block" is a distinct phase rather than a None
field.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..codec.types import (
    Checkpoint,
    CompletedBlock,
    DisplayUpdate,
    Event,
    ObjectChange,
    Transaction,
)
from .handshake import Handshake


@dataclass
class ActiveBlock:
    """Accumulator for the block between BLOCK_START and BLOCK_END."""

    height: int
    started_at: float = field(default_factory=time.monotonic)
    checkpoint: Checkpoint | None = None
    transactions: list[Transaction] = field(default_factory=list)
    object_change: ObjectChange | None = None
    events: list[Event] = field(default_factory=list)
    display_updates: list[DisplayUpdate] = field(default_factory=list)

    def elapsed(self) -> float:
        """Seconds since BLOCK_START."""
        return time.monotonic() - self.started_at

    def complete(self) -> CompletedBlock:
        """Build the completed block from the accumulated records."""
        checkpoint = self.checkpoint
        return CompletedBlock(
            number=self.height,
            id=checkpoint.digest if checkpoint else "",
            parent_id=checkpoint.previous_digest if checkpoint else None,
            timestamp=checkpoint.timestamp if checkpoint else None,
            # Certified checkpoints are final
            lib_num=self.height,
            checkpoint=checkpoint,
            transactions=list(self.transactions),
            object_change=self.object_change,
            events=list(self.events),
            display_updates=list(self.display_updates),
        )


@dataclass(frozen=True)
class PreInit:
    """No INIT line seen yet."""


@dataclass(frozen=True)
class AwaitingBlock:
    """Handshake done, no block in progress."""

    handshake: Handshake


@dataclass(frozen=True)
class InBlock:
    """Handshake done, a block is being accumulated."""

    handshake: Handshake
    block: ActiveBlock


ReaderState = PreInit | AwaitingBlock | InBlock
