"""
Record types carried by the console protocol.

Payload records (checkpoint, transaction, object change, event, display
update) are decoded from the base64 parameters of their commands. A
CompletedBlock gathers them once BLOCK_END validates the block, and the
encoder turns it into an EncodedBlock for archival or streaming.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _require(data: dict[str, Any], key: str, *types: type) -> Any:
    """Fetch a required key and check its type.

    Raises:
        ValueError: If the key is missing or holds the wrong type
    """
    if key not in data:
        raise ValueError(f"missing required key {key!r}")
    value = data[key]
    # bool is an int subclass, reject it where an integer is expected
    if isinstance(value, bool) and bool not in types:
        raise ValueError(f"key {key!r} must be {_type_names(types)}, got bool")
    if not isinstance(value, types):
        raise ValueError(f"key {key!r} must be {_type_names(types)}, got {type(value).__name__}")
    return value


def _optional(data: dict[str, Any], key: str, *types: type) -> Any:
    """Fetch an optional key, checking its type when present."""
    if data.get(key) is None:
        return None
    return _require(data, key, *types)


def _type_names(types: tuple[type, ...]) -> str:
    return " or ".join(t.__name__ for t in types)


def _unsigned(data: dict[str, Any], key: str) -> int:
    value = _require(data, key, int)
    if value < 0:
        raise ValueError(f"key {key!r} must be unsigned, got {value}")
    return value


def _timestamp_ms(data: dict[str, Any], key: str) -> int:
    """Fetch a millisecond Unix timestamp that converts to a datetime."""
    value = _unsigned(data, key)
    try:
        datetime.fromtimestamp(value / 1000, UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"key {key!r} is out of the representable time range: {value}") from e
    return value


@dataclass
class Checkpoint:
    """Summary of a checkpoint, sent once per block."""

    epoch: int
    sequence_number: int
    digest: str
    timestamp_ms: int
    network_total_transactions: int
    previous_digest: str | None = None

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp_ms / 1000, UTC)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "epoch": self.epoch,
            "sequence_number": self.sequence_number,
            "digest": self.digest,
            "previous_digest": self.previous_digest,
            "timestamp_ms": self.timestamp_ms,
            "network_total_transactions": self.network_total_transactions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Checkpoint:
        """Deserialize from dictionary."""
        return cls(
            epoch=_unsigned(data, "epoch"),
            sequence_number=_unsigned(data, "sequence_number"),
            digest=_require(data, "digest", str),
            timestamp_ms=_timestamp_ms(data, "timestamp_ms"),
            network_total_transactions=_unsigned(data, "network_total_transactions"),
            previous_digest=_optional(data, "previous_digest", str),
        )


@dataclass
class Transaction:
    """An executed transaction within a block."""

    digest: str
    sender: str
    status: str
    gas_used: int
    events_digest: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "digest": self.digest,
            "sender": self.sender,
            "status": self.status,
            "gas_used": self.gas_used,
            "events_digest": self.events_digest,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Deserialize from dictionary."""
        return cls(
            digest=_require(data, "digest", str),
            sender=_require(data, "sender", str),
            status=_require(data, "status", str),
            gas_used=_unsigned(data, "gas_used"),
            events_digest=_optional(data, "events_digest", str),
        )


@dataclass
class ObjectChange:
    """Objects written and deleted by the block's transactions."""

    transaction_digest: str
    changed_objects: list[dict[str, Any]] = field(default_factory=list)
    deleted_objects: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "transaction_digest": self.transaction_digest,
            "changed_objects": self.changed_objects,
            "deleted_objects": self.deleted_objects,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectChange:
        """Deserialize from dictionary."""
        changed = _optional(data, "changed_objects", list) or []
        deleted = _optional(data, "deleted_objects", list) or []
        if not all(isinstance(obj, dict) for obj in changed):
            raise ValueError("key 'changed_objects' must only hold maps")
        if not all(isinstance(obj, str) for obj in deleted):
            raise ValueError("key 'deleted_objects' must only hold strings")
        return cls(
            transaction_digest=_require(data, "transaction_digest", str),
            changed_objects=changed,
            deleted_objects=deleted,
        )


@dataclass
class Event:
    """An event emitted by a transaction."""

    transaction_digest: str
    event_sequence: int
    package_id: str
    event_type: str
    sender: str
    contents: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "transaction_digest": self.transaction_digest,
            "event_sequence": self.event_sequence,
            "package_id": self.package_id,
            "event_type": self.event_type,
            "sender": self.sender,
            "contents": self.contents,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Deserialize from dictionary."""
        return cls(
            transaction_digest=_require(data, "transaction_digest", str),
            event_sequence=_unsigned(data, "event_sequence"),
            package_id=_require(data, "package_id", str),
            event_type=_require(data, "event_type", str),
            sender=_require(data, "sender", str),
            contents=_optional(data, "contents", bytes) or b"",
        )


@dataclass
class DisplayUpdate:
    """A stored display template update for an object type."""

    object_type: str
    display_id: str
    version: int
    contents: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "object_type": self.object_type,
            "display_id": self.display_id,
            "version": self.version,
            "contents": self.contents,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DisplayUpdate:
        """Deserialize from dictionary."""
        return cls(
            object_type=_require(data, "object_type", str),
            display_id=_require(data, "display_id", str),
            version=_unsigned(data, "version"),
            contents=_optional(data, "contents", bytes) or b"",
        )


@dataclass(frozen=True)
class BlockRef:
    """Lightweight reference to a block."""

    num: int = 0
    id: str = ""

    def __str__(self) -> str:
        return f"#{self.num} ({self.id})" if self.id else f"#{self.num}"


@dataclass
class CompletedBlock:
    """A block that passed BLOCK_END validation.

    Attributes:
        number: Height announced by BLOCK_START and confirmed by BLOCK_END
        id: Checkpoint digest, empty when no checkpoint summary was sent
        parent_id: Previous checkpoint digest, if known
        timestamp: Checkpoint time, if known
        lib_num: Last irreversible block number
    """

    number: int
    id: str
    parent_id: str | None
    timestamp: datetime | None
    lib_num: int
    checkpoint: Checkpoint | None
    transactions: list[Transaction]
    object_change: ObjectChange | None = None
    events: list[Event] = field(default_factory=list)
    display_updates: list[DisplayUpdate] = field(default_factory=list)

    @property
    def parent_num(self) -> int | None:
        return self.number - 1 if self.number > 0 else None

    def as_ref(self) -> BlockRef:
        return BlockRef(num=self.number, id=self.id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "number": self.number,
            "id": self.id,
            "parent_id": self.parent_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "lib_num": self.lib_num,
            "checkpoint": self.checkpoint.to_dict() if self.checkpoint else None,
            "transactions": [trx.to_dict() for trx in self.transactions],
            "object_change": self.object_change.to_dict() if self.object_change else None,
            "events": [evt.to_dict() for evt in self.events],
            "display_updates": [dsp.to_dict() for dsp in self.display_updates],
        }


@dataclass
class EncodedBlock:
    """Output block handed to archival or streaming.

    The payload holds the serialized CompletedBlock; ``payload_kind``
    names its serialization.
    """

    number: int
    id: str
    parent_id: str | None
    parent_num: int | None
    timestamp: datetime | None
    lib_num: int
    payload_kind: str
    payload: bytes
    checksum: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        return {
            "number": self.number,
            "id": self.id,
            "parent_id": self.parent_id,
            "parent_num": self.parent_num,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "lib_num": self.lib_num,
            "payload_kind": self.payload_kind,
            "payload": base64.b64encode(self.payload).decode("ascii"),
            "checksum": self.checksum,
        }
