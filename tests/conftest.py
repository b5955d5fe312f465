"""
Shared test configuration and fixtures.

Provides builders for protocol lines with MessagePack payloads and a
recording encoder that hands back the CompletedBlock it was given, so tests
can inspect blocks without going through a wire format.
"""

import base64
from collections.abc import Callable
from typing import Any

import msgpack
import pytest

from firehose_reader.codec.encoder import BlockEncoder
from firehose_reader.codec.types import CompletedBlock
from firehose_reader.config import ReaderConfig
from firehose_reader.console.reader import ConsoleReader
from firehose_reader.sources import iter_lines

CHAIN_ID = "4btiuiMP"


class RecordingEncoder(BlockEncoder):
    """Encoder that returns the completed block unchanged and records calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[CompletedBlock, int]] = []

    def encode(self, block: CompletedBlock, lib_num: int) -> CompletedBlock:
        self.calls.append((block, lib_num))
        return block


class ProtocolLines:
    """Builds FIRE protocol lines."""

    @staticmethod
    def encode(data: Any) -> str:
        return base64.b64encode(msgpack.packb(data, use_bin_type=True)).decode("ascii")

    def init(
        self,
        major: str | int = 0,
        minor: str | int = 0,
        chain_id: str = CHAIN_ID,
        reserved: str | None = None,
    ) -> str:
        params = ["sui-node", "1.19.0", "mainnet", str(major), str(minor)]
        if reserved is not None:
            params.append(reserved)
        params.append(chain_id)
        return "FIRE INIT " + " ".join(params)

    def block_start(self, height: int | str) -> str:
        return f"FIRE BLOCK_START {height}"

    def block_end(self, height: int | str) -> str:
        return f"FIRE BLOCK_END {height}"

    def checkpoint(self, sequence_number: int, digest: str = "cp-digest", previous: str | None = "cp-prev") -> str:
        return "FIRE CHECKPOINT " + self.encode(
            {
                "epoch": 7,
                "sequence_number": sequence_number,
                "digest": digest,
                "previous_digest": previous,
                "timestamp_ms": 1_700_000_000_000,
                "network_total_transactions": 1234,
            }
        )

    def trx(self, digest: str = "trx-1", gas_used: int = 10) -> str:
        return "FIRE TRX " + self.encode(
            {"digest": digest, "sender": "0xabc", "status": "success", "gas_used": gas_used}
        )

    def obj_change(self, transaction_digest: str = "trx-1", deleted: list[str] | None = None) -> str:
        return "FIRE OBJ_CHANGE " + self.encode(
            {
                "transaction_digest": transaction_digest,
                "changed_objects": [{"object_id": "0x1", "version": 3}],
                "deleted_objects": deleted or [],
            }
        )

    def evt(self, event_sequence: int = 0, event_type: str = "0x2::coin::Transfer") -> str:
        return "FIRE EVT " + self.encode(
            {
                "transaction_digest": "trx-1",
                "event_sequence": event_sequence,
                "package_id": "0x2",
                "event_type": event_type,
                "sender": "0xabc",
                "contents": b"\x01\x02",
            }
        )

    def dsp_update(self, version: int = 1) -> str:
        return "FIRE DSP_UPDATE " + self.encode(
            {"object_type": "0x2::nft::Nft", "display_id": "0xd1", "version": version, "contents": b""}
        )

    def block(self, height: int, *trx_digests: str) -> list[str]:
        """A complete, valid block with one transaction per digest."""
        digests = trx_digests or ("trx-1",)
        return [
            self.block_start(height),
            self.checkpoint(height, digest=f"cp-{height}", previous=f"cp-{height - 1}"),
            *[self.trx(digest) for digest in digests],
            self.block_end(height),
        ]


@pytest.fixture
def proto() -> ProtocolLines:
    return ProtocolLines()


@pytest.fixture
def recording_encoder() -> RecordingEncoder:
    return RecordingEncoder()


@pytest.fixture
def quiet_config() -> ReaderConfig:
    """Config with periodic statistics disabled."""
    return ReaderConfig(stats_interval=0)


@pytest.fixture
def make_reader(recording_encoder, quiet_config) -> Callable[..., ConsoleReader]:
    """Factory for readers over an in-memory list of lines."""

    def factory(lines: list[str], **kwargs: Any) -> ConsoleReader:
        kwargs.setdefault("encoder", recording_encoder)
        kwargs.setdefault("config", quiet_config)
        return ConsoleReader(iter_lines(lines), **kwargs)

    return factory
