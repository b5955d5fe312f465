"""Tests for base64 field decoding and payload schemas."""

import base64

import msgpack
import pytest

from firehose_reader.codec.decoder import FieldDecoder, msgpack_record_decoder
from firehose_reader.codec.types import Checkpoint, DisplayUpdate, Event, ObjectChange, Transaction
from firehose_reader.exceptions import Base64DecodeError, PayloadSchemaError


def b64(data) -> str:
    return base64.b64encode(msgpack.packb(data, use_bin_type=True)).decode("ascii")


TRX = {"digest": "d1", "sender": "0xabc", "status": "success", "gas_used": 5}


class TestFieldDecoder:
    def test_decodes_transaction(self):
        record = FieldDecoder().decode("TRX", b64(TRX), 10)

        assert record == Transaction(digest="d1", sender="0xabc", status="success", gas_used=5)

    def test_decodes_checkpoint(self):
        record = FieldDecoder().decode(
            "CHECKPOINT",
            b64(
                {
                    "epoch": 1,
                    "sequence_number": 10,
                    "digest": "cp",
                    "timestamp_ms": 1_000,
                    "network_total_transactions": 3,
                }
            ),
            10,
        )

        assert isinstance(record, Checkpoint)
        assert record.previous_digest is None
        assert record.timestamp.year == 1970

    def test_decodes_object_change(self):
        record = FieldDecoder().decode(
            "OBJ_CHANGE",
            b64({"transaction_digest": "d1", "changed_objects": [{"id": "0x1"}], "deleted_objects": ["0x2"]}),
            1,
        )

        assert record == ObjectChange("d1", [{"id": "0x1"}], ["0x2"])

    def test_decodes_event_with_binary_contents(self):
        record = FieldDecoder().decode(
            "EVT",
            b64(
                {
                    "transaction_digest": "d1",
                    "event_sequence": 2,
                    "package_id": "0x2",
                    "event_type": "T",
                    "sender": "0xabc",
                    "contents": b"\x00\xff",
                }
            ),
            1,
        )

        assert isinstance(record, Event)
        assert record.contents == b"\x00\xff"

    def test_decodes_display_update(self):
        record = FieldDecoder().decode(
            "DSP_UPDATE", b64({"object_type": "T", "display_id": "0xd", "version": 4}), 1
        )

        assert record == DisplayUpdate(object_type="T", display_id="0xd", version=4)

    @pytest.mark.parametrize("param", ["not*base64", "abc", "YQ=", "====", "YWJj\n"])
    def test_invalid_base64(self, param):
        with pytest.raises(Base64DecodeError) as exc_info:
            FieldDecoder().decode("TRX", param, 12)

        assert exc_info.value.field == "TRX"
        assert exc_info.value.block_height == 12
        assert exc_info.value.details == {"field": "TRX", "block_height": 12}

    def test_bytes_that_are_not_msgpack(self):
        param = base64.b64encode(b"\xc1\xc1\xc1").decode()

        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder().decode("TRX", param, 3)

        assert exc_info.value.field == "TRX"
        assert exc_info.value.block_height == 3

    def test_trailing_bytes_are_rejected(self):
        raw = msgpack.packb(TRX) + b"\x00"

        with pytest.raises(PayloadSchemaError):
            FieldDecoder().decode("TRX", base64.b64encode(raw).decode(), 3)

    def test_payload_must_be_a_map(self):
        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder().decode("TRX", b64([1, 2, 3]), 3)

        assert "expected a map" in exc_info.value.reason

    def test_missing_key(self):
        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder().decode("TRX", b64({"digest": "d1"}), 3)

        assert "sender" in exc_info.value.reason

    def test_wrong_value_type(self):
        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder().decode("TRX", b64({**TRX, "gas_used": "lots"}), 3)

        assert "gas_used" in exc_info.value.reason

    def test_bool_is_not_an_integer(self):
        with pytest.raises(PayloadSchemaError):
            FieldDecoder().decode("TRX", b64({**TRX, "gas_used": True}), 3)

    def test_negative_unsigned_value(self):
        with pytest.raises(PayloadSchemaError):
            FieldDecoder().decode("TRX", b64({**TRX, "gas_used": -1}), 3)

    def test_checkpoint_timestamp_out_of_range(self):
        checkpoint = {
            "epoch": 1,
            "sequence_number": 10,
            "digest": "cp",
            "timestamp_ms": 2**63,
            "network_total_transactions": 3,
        }

        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder().decode("CHECKPOINT", b64(checkpoint), 10)

        assert exc_info.value.field == "CHECKPOINT"
        assert exc_info.value.block_height == 10
        assert "timestamp_ms" in exc_info.value.reason

    def test_object_change_list_items_are_checked(self):
        with pytest.raises(PayloadSchemaError):
            FieldDecoder().decode("OBJ_CHANGE", b64({"transaction_digest": "d", "deleted_objects": [1]}), 3)

    def test_unregistered_field(self):
        with pytest.raises(PayloadSchemaError):
            FieldDecoder({}).decode("TRX", b64(TRX), 3)

    def test_custom_decoder_registry(self):
        decoder = FieldDecoder({"TRX": lambda raw: raw.decode("utf-8")})

        assert decoder.decode("TRX", base64.b64encode(b"hello").decode(), 1) == "hello"
        assert decoder.fields == frozenset({"TRX"})

    def test_custom_decoder_errors_become_schema_errors(self):
        def strict(raw: bytes) -> str:
            raise ValueError("not what I expected")

        with pytest.raises(PayloadSchemaError) as exc_info:
            FieldDecoder({"EVT": strict}).decode("EVT", base64.b64encode(b"x").decode(), 9)

        assert exc_info.value.reason == "not what I expected"


class TestMsgpackRecordDecoder:
    def test_named_after_record(self):
        assert msgpack_record_decoder(Transaction).__name__ == "decode_transaction"
