"""
UserOperation model, wire format conversion and Kernel call encoding
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Union

from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from exceptions import DecodeError, EncodingError

logger = logging.getLogger(__name__)

# Function selector for execute(bytes32,bytes)
EXECUTE_SELECTOR = bytes(Web3.keccak(text="execute(bytes32,bytes)")[:4])

# Single call, default exec type, no selector or payload
DEFAULT_EXEC_MODE = b"\x00" * 32

QUANTITY = "quantity"
DATA = "data"
ADDRESS = "address"

# (attribute, JSON key, kind) in wire order
WIRE_FIELDS = (
    ("sender", "sender", ADDRESS),
    ("nonce", "nonce", QUANTITY),
    ("call_data", "callData", DATA),
    ("call_gas_limit", "callGasLimit", QUANTITY),
    ("verification_gas_limit", "verificationGasLimit", QUANTITY),
    ("pre_verification_gas", "preVerificationGas", QUANTITY),
    ("max_fee_per_gas", "maxFeePerGas", QUANTITY),
    ("max_priority_fee_per_gas", "maxPriorityFeePerGas", QUANTITY),
    ("paymaster", "paymaster", ADDRESS),
    ("paymaster_data", "paymasterData", DATA),
    ("paymaster_verification_gas_limit", "paymasterVerificationGasLimit", QUANTITY),
    ("paymaster_post_op_gas_limit", "paymasterPostOpGasLimit", QUANTITY),
    ("signature", "signature", DATA),
)

QUANTITY_FIELDS = frozenset(attr for attr, _, kind in WIRE_FIELDS if kind == QUANTITY)


def encode_quantity(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return hex(value)


def decode_quantity(value: Union[str, int, None]) -> Optional[int]:
    """Decode a hex-encoded big integer, ``None`` when absent"""
    if value is None or value == "":
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise DecodeError(f"Expected hex quantity, got {type(value).__name__}")
    if value in ("0x", "0X"):
        return 0
    try:
        return int(value, 16)
    except ValueError as e:
        raise DecodeError(f"Invalid hex quantity: {value!r}") from e


def encode_bytes(value: Optional[bytes]) -> Optional[str]:
    if not value:
        return None
    return "0x" + bytes(value).hex()


def decode_bytes(value: Union[str, bytes, None]) -> Optional[bytes]:
    """Decode 0x-prefixed hex into bytes, ``None`` when absent"""
    if value is None or value == "":
        return None
    try:
        return bytes(HexBytes(value))
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid hex data: {value!r}") from e


@dataclass
class UserOperation:
    """ERC-4337 v0.7 user operation.

    Numeric fields stay ``None`` until the pipeline stage that owns them
    fills them in; ``None`` hashes as zero and is omitted on the wire.
    """

    sender: Optional[str] = None
    nonce: Optional[int] = None
    call_data: bytes = b""
    call_gas_limit: Optional[int] = None
    verification_gas_limit: Optional[int] = None
    pre_verification_gas: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    paymaster: Optional[str] = None
    paymaster_data: Optional[bytes] = None
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    signature: Optional[bytes] = None

    def __setattr__(self, name, value):
        # runs for __init__ and for every later stage assignment
        if name in QUANTITY_FIELDS and value is not None and value < 0:
            raise EncodingError(f"{name} must not be negative: {value}")
        super().__setattr__(name, value)

    def to_rpc_dict(self) -> Dict[str, str]:
        """Convert to the camelCase hex format bundlers and paymasters expect"""
        rpc_dict = {}
        for attr, key, kind in WIRE_FIELDS:
            value = getattr(self, attr)
            if kind == QUANTITY:
                encoded = encode_quantity(value)
            elif kind == DATA:
                encoded = encode_bytes(value)
            else:
                encoded = value or None
            if encoded is not None:
                rpc_dict[key] = encoded

        # callData is mandatory on the wire even when empty
        rpc_dict.setdefault("callData", "0x")
        return rpc_dict

    @classmethod
    def from_rpc_dict(cls, payload: Dict[str, Any]) -> "UserOperation":
        if not isinstance(payload, dict):
            raise DecodeError("UserOperation payload must be an object")

        values = {}
        for attr, key, kind in WIRE_FIELDS:
            raw = payload.get(key)
            if kind == QUANTITY:
                values[attr] = decode_quantity(raw)
            elif kind == DATA:
                values[attr] = decode_bytes(raw)
            else:
                values[attr] = raw or None
        values["call_data"] = values["call_data"] or b""
        return cls(**values)

    def copy(self) -> "UserOperation":
        return UserOperation(**{f.name: getattr(self, f.name) for f in fields(self)})


def encode_execute_call(to_address: str, value: int = 0, data: bytes = b"") -> bytes:
    """Encode a Kernel v3 execute(bytes32,bytes) single call"""
    if value < 0:
        raise EncodingError(f"Call value must not be negative: {value}")

    execution_calldata = (
        bytes(HexBytes(Web3.to_checksum_address(to_address)))
        + value.to_bytes(32, "big")
        + bytes(data)
    )
    calldata = EXECUTE_SELECTOR + encode(['bytes32', 'bytes'], [DEFAULT_EXEC_MODE, execution_calldata])

    logger.info(f"Encoded execute call: {value} wei to {to_address}")
    return calldata
