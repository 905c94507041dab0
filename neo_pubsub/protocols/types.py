"""Type definitions shared by the publisher, relay and gateway.

Ledger-side inputs (what a commit hands to the publisher):
- Block, ExecutionRecord, Notification, ContractParameter, VMState

Wire-side outputs (what travels over the bus and to clients):
- BlockMessage, NotificationMessage, Envelope, Channel
"""

import json
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Dict, List, Optional, Sequence, Tuple

# A freshly persisted block has exactly one confirmation. There is no notion
# of reorganization depth here.
BLOCK_CONFIRMATIONS = 1


# =============================================================================
# ENUMS
# =============================================================================

class Channel(str, Enum):
    """Publish/subscribe channel names. The set is fixed."""
    BLOCKS = "blocks"
    EVENTS = "events"

    @classmethod
    def parse(cls, name: str) -> "Channel":
        """Resolve a channel from its wire name.

        Raises:
            ValueError: If the name is not a known channel
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown channel: {name!r}") from None


ALL_CHANNELS: Tuple[Channel, ...] = (Channel.BLOCKS, Channel.EVENTS)


class VMState(IntFlag):
    """Final state of a virtual machine execution."""
    NONE = 0
    HALT = 1
    FAULT = 2
    BREAK = 4


class ParameterType(str, Enum):
    """Kinds of typed values a contract notification can carry."""
    SIGNATURE = "Signature"
    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    HASH160 = "Hash160"
    HASH256 = "Hash256"
    BYTE_ARRAY = "ByteArray"
    PUBLIC_KEY = "PublicKey"
    STRING = "String"
    ARRAY = "Array"
    MAP = "Map"
    INTEROP_INTERFACE = "InteropInterface"
    VOID = "Void"


# =============================================================================
# LEDGER INPUTS
# =============================================================================

@dataclass
class ContractParameter:
    """A typed value emitted by a contract.

    ``value`` depends on ``type``:
        Boolean -> bool, Integer -> int, String -> str,
        ByteArray/PublicKey/Signature -> bytes,
        Hash160/Hash256 -> bytes or "0x..." str,
        Array -> list of ContractParameter,
        Map -> list of (key, value) ContractParameter pairs,
        Void -> None
    """
    type: ParameterType
    value: Any = None

    @classmethod
    def string(cls, value: str) -> "ContractParameter":
        return cls(ParameterType.STRING, value)

    @classmethod
    def integer(cls, value: int) -> "ContractParameter":
        return cls(ParameterType.INTEGER, value)

    @classmethod
    def boolean(cls, value: bool) -> "ContractParameter":
        return cls(ParameterType.BOOLEAN, value)

    @classmethod
    def byte_array(cls, value: bytes) -> "ContractParameter":
        return cls(ParameterType.BYTE_ARRAY, value)

    @classmethod
    def array(cls, items: Sequence["ContractParameter"]) -> "ContractParameter":
        return cls(ParameterType.ARRAY, list(items))


@dataclass
class Notification:
    """A notification raised by a contract during execution."""
    contract: str
    state: List[ContractParameter] = field(default_factory=list)


@dataclass
class ExecutionRecord:
    """Outcome of executing one transaction within a committed block."""
    txid: str
    state: VMState = VMState.HALT
    notifications: List[Notification] = field(default_factory=list)

    @property
    def faulted(self) -> bool:
        return bool(self.state & VMState.FAULT)

    @classmethod
    def create(
        cls,
        txid: str,
        notifications: Optional[List[Notification]] = None,
        *,
        faulted: bool = False,
    ) -> "ExecutionRecord":
        """Build a record from a plain fault flag."""
        state = VMState.FAULT if faulted else VMState.HALT
        return cls(txid=txid, state=state, notifications=list(notifications or []))


@dataclass(frozen=True)
class Block:
    """A persisted block as the ledger describes it."""
    hash: str
    index: int
    size: int = 0
    version: int = 0
    previousblockhash: str = ""
    merkleroot: str = ""
    time: int = 0
    nonce: str = ""
    nextconsensus: str = ""
    script: Dict[str, Any] = field(default_factory=dict)
    tx: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Render the native block fields."""
        return {
            "hash": self.hash,
            "size": self.size,
            "version": self.version,
            "previousblockhash": self.previousblockhash,
            "merkleroot": self.merkleroot,
            "time": self.time,
            "index": self.index,
            "nonce": self.nonce,
            "nextconsensus": self.nextconsensus,
            "script": dict(self.script),
            "tx": [dict(t) for t in self.tx],
        }


# =============================================================================
# WIRE MESSAGES
# =============================================================================

def _dumps(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class BlockMessage:
    """Block announcement published on the ``blocks`` channel."""
    fields: Dict[str, Any]
    confirmations: int = BLOCK_CONFIRMATIONS

    def to_dict(self) -> Dict[str, Any]:
        return {**self.fields, "confirmations": self.confirmations}

    def to_json(self) -> str:
        return _dumps(self.to_dict())


@dataclass(frozen=True)
class NotificationMessage:
    """Contract notification published on the ``events`` channel."""
    contract: str
    txid: str
    call: List[Dict[str, Any]]

    def __post_init__(self) -> None:
        if not isinstance(self.contract, str) or not self.contract:
            raise ValueError("contract is required and must be a non-empty string")
        if not isinstance(self.txid, str) or not self.txid:
            raise ValueError("txid is required and must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        return {"contract": self.contract, "txid": self.txid, "call": self.call}

    def to_json(self) -> str:
        return _dumps(self.to_dict())


@dataclass(frozen=True)
class Envelope:
    """Tagged wrapper pushed to every client connection."""
    type: Channel
    data: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": self.data}

    def to_json(self) -> str:
        return _dumps(self.to_dict())


__all__ = [
    "BLOCK_CONFIRMATIONS",
    "ALL_CHANNELS",
    "Channel",
    "VMState",
    "ParameterType",
    "ContractParameter",
    "Notification",
    "ExecutionRecord",
    "Block",
    "BlockMessage",
    "NotificationMessage",
    "Envelope",
]
