"""
Payload records, field decoding and block encoding.
"""

from .decoder import (
    CHECKPOINT,
    DSP_UPDATE,
    EVT,
    OBJ_CHANGE,
    TRX,
    FieldDecoder,
    PayloadDecoder,
    default_payload_decoders,
    msgpack_record_decoder,
)
from .encoder import BlockEncoder, MsgpackBlockEncoder, decode_payload
from .types import (
    BlockRef,
    Checkpoint,
    CompletedBlock,
    DisplayUpdate,
    EncodedBlock,
    Event,
    ObjectChange,
    Transaction,
)

__all__ = [
    # Field names
    "CHECKPOINT",
    "TRX",
    "OBJ_CHANGE",
    "EVT",
    "DSP_UPDATE",
    # Records
    "Checkpoint",
    "Transaction",
    "ObjectChange",
    "Event",
    "DisplayUpdate",
    "BlockRef",
    "CompletedBlock",
    "EncodedBlock",
    # Decoding
    "FieldDecoder",
    "PayloadDecoder",
    "default_payload_decoders",
    "msgpack_record_decoder",
    # Encoding
    "BlockEncoder",
    "MsgpackBlockEncoder",
    "decode_payload",
]
