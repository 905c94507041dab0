"""Unit tests for the message codec.

Test Strategy:
- Block encoding: confirmations fixed to 1, input never mutated
- Notification encoding: contract/txid wrapping, ordered call rendering
- Parameter rendering for every supported kind, including nesting
- EncodingError for unrepresentable kinds, type mismatches and cycles
"""

import json

import pytest

from neo_pubsub.ledger.codec import encode_block, encode_notification, encode_parameter
from neo_pubsub.protocols import (
    BLOCK_CONFIRMATIONS,
    Block,
    BlockMessage,
    ContractParameter,
    EncodingError,
    NotificationMessage,
    ParameterType,
)


# =============================================================================
# Block Tests
# =============================================================================

class TestEncodeBlock:
    """Test block encoding."""

    def test_confirmations_is_one(self, sample_block):
        message = encode_block(sample_block)

        assert isinstance(message, BlockMessage)
        assert message.confirmations == BLOCK_CONFIRMATIONS == 1
        assert message.to_dict()["confirmations"] == 1

    def test_native_fields_preserved(self, sample_block):
        data = encode_block(sample_block).to_dict()

        assert data["hash"] == "0xAA"
        assert data["index"] == 100
        assert data["script"] == {"invocation": "40aa", "verification": "5521"}
        assert data["tx"] == [{"txid": "0xT1", "type": "InvocationTransaction"}]

    def test_accepts_mapping(self):
        data = encode_block({"hash": "0x01", "index": 7}).to_dict()

        assert data == {"hash": "0x01", "index": 7, "confirmations": 1}

    def test_does_not_mutate_mapping(self):
        native = {"hash": "0x01", "tx": [{"txid": "a"}], "confirmations": 12}

        message = encode_block(native)
        message.fields["tx"].append({"txid": "b"})

        assert native == {"hash": "0x01", "tx": [{"txid": "a"}], "confirmations": 12}

    def test_existing_confirmations_overridden(self):
        data = encode_block({"hash": "0x01", "confirmations": 12}).to_dict()

        assert data["confirmations"] == 1

    def test_to_json_is_valid_json(self, sample_block):
        payload = json.loads(encode_block(sample_block).to_json())

        assert payload["hash"] == "0xAA"
        assert payload["confirmations"] == 1

    def test_rejects_unknown_object(self):
        with pytest.raises(EncodingError):
            encode_block(object())

    def test_unserializable_field_raises(self):
        block = Block(hash="0xAA", index=1, tx=[{"txid": "0xT1", "attributes": b"\x01\x02"}])

        with pytest.raises(EncodingError) as exc_info:
            encode_block(block)

        assert isinstance(exc_info.value.__cause__, TypeError)


# =============================================================================
# Notification Tests
# =============================================================================

class TestEncodeNotification:
    """Test notification encoding."""

    def test_wraps_contract_and_txid(self):
        message = encode_notification("0xCC", "0xT1", [ContractParameter.string("hello")])

        assert isinstance(message, NotificationMessage)
        assert message.to_dict() == {
            "contract": "0xCC",
            "txid": "0xT1",
            "call": [{"type": "String", "value": "hello"}],
        }

    def test_call_preserves_order(self):
        state = [
            ContractParameter.string("transfer"),
            ContractParameter.byte_array(b"\x01\x02"),
            ContractParameter.integer(100),
        ]

        call = encode_notification("0xCC", "0xT1", state).call

        assert [p["type"] for p in call] == ["String", "ByteArray", "Integer"]
        assert [p["value"] for p in call] == ["transfer", "0102", "100"]

    def test_empty_state(self):
        assert encode_notification("0xCC", "0xT1", []).call == []

    @pytest.mark.parametrize("contract,txid", [("", "0xT1"), ("0xCC", ""), (None, "0xT1")])
    def test_missing_identifiers_raise(self, contract, txid):
        with pytest.raises(EncodingError):
            encode_notification(contract, txid, [])

    def test_unrepresentable_parameter_raises(self):
        state = [
            ContractParameter.string("ok"),
            ContractParameter(ParameterType.INTEROP_INTERFACE, object()),
        ]

        with pytest.raises(EncodingError) as exc_info:
            encode_notification("0xCC", "0xT1", state)

        assert exc_info.value.parameter_type == "InteropInterface"

    def test_to_json_matches_wire_contract(self):
        payload = encode_notification("0xCC", "0xT1", [ContractParameter.string("hello")]).to_json()

        assert json.loads(payload) == {
            "contract": "0xCC",
            "txid": "0xT1",
            "call": [{"type": "String", "value": "hello"}],
        }


# =============================================================================
# Parameter Tests
# =============================================================================

class TestEncodeParameter:
    """Test rendering of individual parameter kinds."""

    @pytest.mark.parametrize("parameter,expected", [
        (ContractParameter.string("hi"), {"type": "String", "value": "hi"}),
        (ContractParameter.boolean(True), {"type": "Boolean", "value": True}),
        (ContractParameter.integer(-5), {"type": "Integer", "value": "-5"}),
        (ContractParameter.integer(2 ** 80), {"type": "Integer", "value": str(2 ** 80)}),
        (ContractParameter.byte_array(b"\xca\xfe"), {"type": "ByteArray", "value": "cafe"}),
        (ContractParameter(ParameterType.PUBLIC_KEY, b"\x02\xab"), {"type": "PublicKey", "value": "02ab"}),
        (ContractParameter(ParameterType.SIGNATURE, bytearray(b"\x00")), {"type": "Signature", "value": "00"}),
        (ContractParameter(ParameterType.VOID), {"type": "Void"}),
    ])
    def test_scalar_kinds(self, parameter, expected):
        assert encode_parameter(parameter) == expected

    def test_hash160_bytes_rendered_big_endian(self):
        raw = bytes(range(20))

        rendered = encode_parameter(ContractParameter(ParameterType.HASH160, raw))

        assert rendered == {"type": "Hash160", "value": "0x" + raw[::-1].hex()}

    def test_hash256_string_kept(self):
        rendered = encode_parameter(ContractParameter(ParameterType.HASH256, "ab" * 32))

        assert rendered["value"] == "0x" + "ab" * 32

    def test_hash160_string_with_prefix_kept(self):
        rendered = encode_parameter(ContractParameter(ParameterType.HASH160, "0x" + "Cd" * 20))

        assert rendered["value"] == "0x" + "Cd" * 20

    @pytest.mark.parametrize("kind,value", [
        (ParameterType.HASH160, "hello"),
        (ParameterType.HASH160, "0x" + "ab" * 19),
        (ParameterType.HASH256, "ab" * 20),
        (ParameterType.HASH256, "zz" * 32),
        (ParameterType.HASH256, "0x" + "ab " * 21 + "a"),
    ])
    def test_hash_string_must_be_hex_of_width(self, kind, value):
        with pytest.raises(EncodingError) as exc_info:
            encode_parameter(ContractParameter(kind, value))

        assert exc_info.value.parameter_type == kind.value

    def test_hash_wrong_length_raises(self):
        with pytest.raises(EncodingError):
            encode_parameter(ContractParameter(ParameterType.HASH256, b"\x00" * 20))

    def test_nested_array(self):
        parameter = ContractParameter.array([
            ContractParameter.integer(1),
            ContractParameter.array([ContractParameter.string("deep")]),
        ])

        assert encode_parameter(parameter) == {
            "type": "Array",
            "value": [
                {"type": "Integer", "value": "1"},
                {"type": "Array", "value": [{"type": "String", "value": "deep"}]},
            ],
        }

    def test_map(self):
        parameter = ContractParameter(ParameterType.MAP, [
            (ContractParameter.string("k"), ContractParameter.boolean(False)),
        ])

        assert encode_parameter(parameter) == {
            "type": "Map",
            "value": [{
                "key": {"type": "String", "value": "k"},
                "value": {"type": "Boolean", "value": False},
            }],
        }

    def test_type_given_as_string(self):
        assert encode_parameter(ContractParameter("String", "x")) == {"type": "String", "value": "x"}

    @pytest.mark.parametrize("parameter", [
        ContractParameter(ParameterType.INTEGER, True),
        ContractParameter(ParameterType.INTEGER, "12"),
        ContractParameter(ParameterType.BOOLEAN, 1),
        ContractParameter(ParameterType.STRING, b"bytes"),
        ContractParameter(ParameterType.BYTE_ARRAY, "cafe"),
        ContractParameter(ParameterType.ARRAY, "not a list"),
        ContractParameter(ParameterType.MAP, [("only-key",)]),
        ContractParameter("Float", 1.5),
    ])
    def test_mismatched_values_raise(self, parameter):
        with pytest.raises(EncodingError):
            encode_parameter(parameter)

    def test_recursive_array_raises(self):
        parameter = ContractParameter.array([])
        parameter.value.append(parameter)

        with pytest.raises(EncodingError):
            encode_parameter(parameter)

    def test_same_child_twice_is_not_a_cycle(self):
        child = ContractParameter.array([ContractParameter.integer(1)])
        parameter = ContractParameter.array([child, child])

        rendered = encode_parameter(parameter)

        assert rendered["value"][0] == rendered["value"][1]

    def test_non_parameter_raises(self):
        with pytest.raises(EncodingError):
            encode_parameter({"type": "String", "value": "x"})
