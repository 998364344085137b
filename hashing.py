"""
User operation hashing for EntryPoint v0.7 and the Kernel signature wrap.

Two independent hashes live here:

* ``compute_user_operation_hash`` is the hash the EntryPoint itself computes
  in ``getUserOpHash`` and binds an operation to an entrypoint and chain.
* ``wrap_hash_for_account`` re-hashes an arbitrary 32-byte hash under the
  smart account's EIP-712 domain, the way Kernel's ``isValidSignature``
  expects it before handing it to the validator.
"""

from typing import Optional

from eth_abi import encode
from eth_abi.exceptions import EncodingError as AbiEncodingError
from hexbytes import HexBytes
from web3 import Web3

from exceptions import EncodingError

WORD_SIZE = 32
HALF_WORD_SIZE = 16
MAX_UINT128 = 2**128 - 1

EMPTY_INIT_CODE_HASH = bytes(Web3.keccak(b""))
KERNEL_WRAPPER_TYPEHASH = bytes(Web3.keccak(text="Kernel(bytes32 hash)"))
EIP712_DOMAIN_TYPEHASH = bytes(Web3.keccak(
    text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
))

PACKED_USER_OPERATION_TYPES = [
    'address',  # sender
    'uint256',  # nonce
    'bytes32',  # keccak(initCode)
    'bytes32',  # keccak(callData)
    'bytes32',  # accountGasLimits
    'uint256',  # preVerificationGas
    'bytes32',  # gasFees
    'bytes32',  # keccak(paymasterAndData)
]


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def abi_encode(types, values) -> bytes:
    try:
        return encode(types, values)
    except AbiEncodingError as e:
        raise EncodingError(f"Cannot encode {types}: {e}") from e


def pad_uint128(value: Optional[int]) -> bytes:
    """Left pad an unsigned integer to 16 bytes, ``None`` meaning zero"""
    value = value or 0
    if value < 0 or value > MAX_UINT128:
        raise EncodingError(f"Value does not fit in 128 bits: {value}")
    return value.to_bytes(HALF_WORD_SIZE, "big")


def pack_uint128_pair(high: Optional[int], low: Optional[int]) -> bytes:
    """Pack two 128-bit values into one 32-byte word"""
    word = pad_uint128(high) + pad_uint128(low)
    if len(word) != WORD_SIZE:
        raise EncodingError(f"Packed word must be {WORD_SIZE} bytes, got {len(word)}")
    return word


def pack_account_gas_limits(op) -> bytes:
    return pack_uint128_pair(op.verification_gas_limit, op.call_gas_limit)


def pack_gas_fees(op) -> bytes:
    return pack_uint128_pair(op.max_priority_fee_per_gas, op.max_fee_per_gas)


def pack_paymaster_and_data(op) -> bytes:
    """paymaster ++ verification gas (16) ++ post-op gas (16) ++ paymaster data.

    Without a paymaster the field is empty, as the EntryPoint packs it.
    """
    if not op.paymaster:
        return b""

    paymaster = bytes(HexBytes(op.paymaster))
    if len(paymaster) != 20:
        raise EncodingError(f"Paymaster must be a 20-byte address: {op.paymaster}")
    return (
        paymaster
        + pad_uint128(op.paymaster_verification_gas_limit)
        + pad_uint128(op.paymaster_post_op_gas_limit)
        + bytes(op.paymaster_data or b"")
    )


def pack_user_operation(op) -> bytes:
    """ABI-encode the hashed fields of a user operation, without signature"""
    if op.sender is None:
        raise EncodingError("UserOperation sender is required for hashing")

    nonce = op.nonce or 0
    pre_verification_gas = op.pre_verification_gas or 0
    if nonce < 0 or pre_verification_gas < 0:
        raise EncodingError("nonce and preVerificationGas must not be negative")

    return abi_encode(PACKED_USER_OPERATION_TYPES, [
        Web3.to_checksum_address(op.sender),
        nonce,
        EMPTY_INIT_CODE_HASH,
        keccak(bytes(op.call_data or b"")),
        pack_account_gas_limits(op),
        pre_verification_gas,
        pack_gas_fees(op),
        keccak(pack_paymaster_and_data(op)),
    ])


def compute_user_operation_hash(op, entry_point_address: str, chain_id: int) -> bytes:
    """keccak(abi.encode(keccak(packedOp), entryPoint, chainId))"""
    packed_operation_hash = keccak(pack_user_operation(op))
    packed = abi_encode(['bytes32', 'address', 'uint256'], [
        packed_operation_hash,
        Web3.to_checksum_address(entry_point_address),
        chain_id,
    ])
    return keccak(packed)


def domain_separator(metadata) -> bytes:
    """EIP-712 domain separator over name, version, chainId and verifyingContract"""
    return keccak(abi_encode(['bytes32', 'bytes32', 'bytes32', 'uint256', 'address'], [
        EIP712_DOMAIN_TYPEHASH,
        keccak(metadata.name.encode("utf-8")),
        keccak(metadata.version.encode("utf-8")),
        metadata.chain_id,
        Web3.to_checksum_address(metadata.verifying_contract),
    ]))


def kernel_hash_wrap(raw_hash: bytes) -> bytes:
    if len(raw_hash) != WORD_SIZE:
        raise EncodingError(f"Hash must be {WORD_SIZE} bytes, got {len(raw_hash)}")
    return keccak(abi_encode(['bytes32', 'bytes32'], [KERNEL_WRAPPER_TYPEHASH, bytes(raw_hash)]))


def wrap_hash_for_account(metadata, raw_hash: bytes) -> bytes:
    """keccak(0x1901 ++ domainSeparator ++ kernelHashWrap(hash))"""
    return keccak(b"\x19\x01" + domain_separator(metadata) + kernel_hash_wrap(raw_hash))
