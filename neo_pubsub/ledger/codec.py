"""Message codec: ledger objects to wire-ready structures.

Every function here is deterministic and side-effect free. Inputs are never
mutated; outputs share no mutable state with inputs.

Parameter rendering follows the ledger's own JSON form:

    {"type": "String",    "value": "hello"}
    {"type": "Integer",   "value": "42"}          # decimal string
    {"type": "ByteArray", "value": "cafe"}        # hex
    {"type": "Hash160",   "value": "0x..."}       # big-endian hex
    {"type": "Array",     "value": [ ... ]}
    {"type": "Map",       "value": [{"key": ..., "value": ...}]}
    {"type": "Void"}
"""

import copy
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Sequence, Set, Union

from neo_pubsub.protocols import (
    BLOCK_CONFIRMATIONS,
    BlockLike,
    BlockMessage,
    ContractParameter,
    EncodingError,
    NotificationMessage,
    ParameterType,
)

_HASH_SIZES = {
    ParameterType.HASH160: 20,
    ParameterType.HASH256: 32,
}


# =============================================================================
# BLOCKS
# =============================================================================

def encode_block(block: Union[BlockLike, Mapping]) -> BlockMessage:
    """Render a persisted block as a BlockMessage with one confirmation.

    Args:
        block: Any object exposing ``to_dict()``, or a mapping of block fields

    Returns:
        BlockMessage carrying a private copy of the block fields

    Raises:
        EncodingError: If the block is not block-like or any of its fields
            has no JSON form
    """
    if isinstance(block, Mapping):
        native = block
    elif callable(getattr(block, "to_dict", None)):
        native = block.to_dict()
    else:
        raise EncodingError(f"Cannot encode block of type {type(block).__name__}")

    fields = copy.deepcopy(dict(native))
    fields.pop("confirmations", None)
    message = BlockMessage(fields=fields, confirmations=BLOCK_CONFIRMATIONS)
    try:
        message.to_json()
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Block fields are not JSON serializable: {e}") from e
    return message


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def encode_notification(
    contract: str,
    txid: str,
    state: Sequence[ContractParameter],
) -> NotificationMessage:
    """Render one contract notification.

    Args:
        contract: Script hash of the notifying contract
        txid: Hash of the transaction that raised the notification
        state: Ordered notification parameters

    Raises:
        EncodingError: If any parameter cannot be rendered, or the
            contract/txid identifiers are missing
    """
    if not isinstance(contract, str) or not contract:
        raise EncodingError("notification contract must be a non-empty string")
    if not isinstance(txid, str) or not txid:
        raise EncodingError("notification txid must be a non-empty string")

    call = [encode_parameter(p) for p in state]
    return NotificationMessage(contract=contract, txid=txid, call=call)


def encode_parameter(parameter: ContractParameter) -> Dict[str, Any]:
    """Render a single contract parameter (recursively for Array/Map).

    Raises:
        EncodingError: If the kind is unrepresentable, the value does not
            match its kind, or a container references itself
    """
    return _encode(parameter, set())


def _encode(parameter: Any, seen: Set[int]) -> Dict[str, Any]:
    if not isinstance(parameter, ContractParameter):
        raise EncodingError(f"Expected ContractParameter, got {type(parameter).__name__}")

    try:
        kind = ParameterType(parameter.type)
    except ValueError:
        raise EncodingError(f"Unknown parameter type: {parameter.type!r}") from None

    if kind is ParameterType.VOID:
        return {"type": kind.value}

    encoder = _ENCODERS.get(kind)
    if encoder is None:
        raise EncodingError(f"{kind.value} parameters cannot be rendered", parameter_type=kind.value)

    if kind in (ParameterType.ARRAY, ParameterType.MAP):
        marker = id(parameter)
        if marker in seen:
            raise EncodingError(f"Recursive {kind.value} parameter", parameter_type=kind.value)
        seen = seen | {marker}

    return {"type": kind.value, "value": encoder(parameter.value, kind, seen)}


def _mismatch(kind: ParameterType, value: Any) -> EncodingError:
    return EncodingError(
        f"{kind.value} parameter cannot hold a {type(value).__name__}",
        parameter_type=kind.value,
    )


def _encode_boolean(value: Any, kind: ParameterType, seen: Set[int]) -> bool:
    if not isinstance(value, bool):
        raise _mismatch(kind, value)
    return value


def _encode_integer(value: Any, kind: ParameterType, seen: Set[int]) -> str:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise _mismatch(kind, value)
    return str(value)


def _encode_string(value: Any, kind: ParameterType, seen: Set[int]) -> str:
    if not isinstance(value, str):
        raise _mismatch(kind, value)
    return value


def _encode_bytes(value: Any, kind: ParameterType, seen: Set[int]) -> str:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise _mismatch(kind, value)
    return bytes(value).hex()


def _encode_hash(value: Any, kind: ParameterType, seen: Set[int]) -> str:
    size = _HASH_SIZES[kind]
    if isinstance(value, str):
        digits = value[2:] if value.startswith("0x") else value
        try:
            valid = len(digits) == size * 2 and len(bytes.fromhex(digits)) == size
        except ValueError:
            valid = False
        if not valid:
            raise EncodingError(
                f"{kind.value} must be {size * 2} hex digits, got {value!r}",
                parameter_type=kind.value,
            )
        return f"0x{digits}"
    if not isinstance(value, (bytes, bytearray)):
        raise _mismatch(kind, value)
    if len(value) != size:
        raise EncodingError(
            f"{kind.value} must be {size} bytes, got {len(value)}",
            parameter_type=kind.value,
        )
    # Hashes are stored little-endian and displayed big-endian
    return "0x" + bytes(value)[::-1].hex()


def _encode_array(value: Any, kind: ParameterType, seen: Set[int]) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        raise _mismatch(kind, value)
    return [_encode(item, seen) for item in value]


def _encode_map(value: Any, kind: ParameterType, seen: Set[int]) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        raise _mismatch(kind, value)
    entries = []
    for entry in value:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise EncodingError("Map entries must be (key, value) pairs", parameter_type=kind.value)
        key, item = entry
        entries.append({"key": _encode(key, seen), "value": _encode(item, seen)})
    return entries


_ENCODERS: Dict[ParameterType, Callable[[Any, ParameterType, Set[int]], Any]] = {
    ParameterType.BOOLEAN: _encode_boolean,
    ParameterType.INTEGER: _encode_integer,
    ParameterType.STRING: _encode_string,
    ParameterType.BYTE_ARRAY: _encode_bytes,
    ParameterType.PUBLIC_KEY: _encode_bytes,
    ParameterType.SIGNATURE: _encode_bytes,
    ParameterType.HASH160: _encode_hash,
    ParameterType.HASH256: _encode_hash,
    ParameterType.ARRAY: _encode_array,
    ParameterType.MAP: _encode_map,
}


__all__ = ["encode_block", "encode_notification", "encode_parameter"]
