"""
Field decoding for base64 payload parameters.

Each accumulation command carries one base64 parameter holding a binary
payload of a declared schema. The default schemas are MessagePack maps
turned into the record dataclasses from ``types``; callers with other
payload encodings pass their own decoder registry.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable, Mapping
from typing import Any

import msgpack

from ..exceptions import Base64DecodeError, PayloadSchemaError
from .types import Checkpoint, DisplayUpdate, Event, ObjectChange, Transaction

# Field names match the command words that carry them
CHECKPOINT = "CHECKPOINT"
TRX = "TRX"
OBJ_CHANGE = "OBJ_CHANGE"
EVT = "EVT"
DSP_UPDATE = "DSP_UPDATE"

PayloadDecoder = Callable[[bytes], Any]


def msgpack_record_decoder(record_type: type) -> PayloadDecoder:
    """Build a decoder unpacking a MessagePack map into ``record_type``.

    The returned callable raises ValueError when the bytes are not a
    MessagePack map or the map does not fit the record.
    """

    def decode(data: bytes) -> Any:
        try:
            unpacked = msgpack.unpackb(data, raw=False, strict_map_key=True)
        except ValueError as e:
            # ExtraData, FormatError and truncated input are all ValueErrors
            raise ValueError(f"malformed msgpack: {e}") from e

        if not isinstance(unpacked, dict):
            raise ValueError(f"expected a map, got {type(unpacked).__name__}")
        return record_type.from_dict(unpacked)

    decode.__name__ = f"decode_{record_type.__name__.lower()}"
    return decode


def default_payload_decoders() -> dict[str, PayloadDecoder]:
    """Decoder registry for the built-in record schemas."""
    return {
        CHECKPOINT: msgpack_record_decoder(Checkpoint),
        TRX: msgpack_record_decoder(Transaction),
        OBJ_CHANGE: msgpack_record_decoder(ObjectChange),
        EVT: msgpack_record_decoder(Event),
        DSP_UPDATE: msgpack_record_decoder(DisplayUpdate),
    }


class FieldDecoder:
    """Decodes a base64 parameter into the record declared for its field.

    Failures carry the field name and the height of the block being
    assembled so the offending payload can be located.
    """

    def __init__(self, decoders: Mapping[str, PayloadDecoder] | None = None) -> None:
        self._decoders = dict(decoders) if decoders is not None else default_payload_decoders()

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self._decoders)

    def decode(self, field: str, param: str, block_height: int | None) -> Any:
        """Decode ``param`` as base64 then as the schema registered for ``field``.

        Args:
            field: Field (command) name, e.g. 'TRX'
            param: The base64 text parameter
            block_height: Height of the in-progress block, for diagnostics

        Returns:
            The decoded record

        Raises:
            Base64DecodeError: If param is not strict base64
            PayloadSchemaError: If the bytes do not match the field's schema
        """
        decoder = self._decoders.get(field)
        if decoder is None:
            raise PayloadSchemaError(field, block_height, "no decoder registered for field")

        try:
            raw = base64.b64decode(param, validate=True)
        except (binascii.Error, ValueError) as e:
            raise Base64DecodeError(field, block_height, e) from e

        try:
            return decoder(raw)
        except (ValueError, TypeError, KeyError) as e:
            raise PayloadSchemaError(field, block_height, str(e)) from e
