"""
Block encoders.

The console reader hands each completed block and its last irreversible
block number to an encoder and returns whatever the encoder produces.
Encoder failures are not protocol errors and propagate unchanged.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Any

import msgpack

from .types import CompletedBlock, EncodedBlock


class BlockEncoder(ABC):
    """Abstract base for turning completed blocks into output blocks."""

    @abstractmethod
    def encode(self, block: CompletedBlock, lib_num: int) -> Any:
        """
        Encode a completed block.

        Args:
            block: The validated block
            lib_num: Last irreversible block number to carry with it

        Returns:
            The encoded output block
        """
        pass


class MsgpackBlockEncoder(BlockEncoder):
    """Encodes blocks as MessagePack payloads inside an EncodedBlock envelope."""

    payload_kind = "msgpack/completed-block"

    def encode(self, block: CompletedBlock, lib_num: int) -> EncodedBlock:
        payload = msgpack.packb(block.to_dict(), use_bin_type=True)
        return EncodedBlock(
            number=block.number,
            id=block.id,
            parent_id=block.parent_id,
            parent_num=block.parent_num,
            timestamp=block.timestamp,
            lib_num=lib_num,
            payload_kind=self.payload_kind,
            payload=payload,
            checksum=hashlib.sha256(payload).hexdigest(),
        )


def decode_payload(encoded: EncodedBlock) -> dict[str, Any]:
    """Unpack the block dictionary carried by an EncodedBlock.

    Raises:
        ValueError: If the checksum does not match the payload
    """
    if hashlib.sha256(encoded.payload).hexdigest() != encoded.checksum:
        raise ValueError(f"checksum mismatch for block {encoded.number}")
    return msgpack.unpackb(encoded.payload, raw=False)
