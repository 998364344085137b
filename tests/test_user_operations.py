import pytest
from eth_abi import decode

from exceptions import DecodeError, EncodingError
from user_operations import (
    EXECUTE_SELECTOR,
    UserOperation,
    decode_bytes,
    decode_quantity,
    encode_execute_call,
)


def test_to_rpc_dict_omits_absent_fields(smart_account_address):
    op = UserOperation(sender=smart_account_address, nonce=0, call_data=b"")

    assert op.to_rpc_dict() == {
        "sender": smart_account_address,
        "nonce": "0x0",
        "callData": "0x",
    }


def test_to_rpc_dict_encodes_hex(sponsored_user_operation):
    sponsored_user_operation.signature = b"\x01\x02"

    assert sponsored_user_operation.to_rpc_dict() == {
        "sender": "0xC81D8Fa063a7c73795C8455F6b766DD245d8F47a",
        "nonce": "0x5",
        "callData": "0xdeadbeef",
        "callGasLimit": "0x186a0",
        "verificationGasLimit": "0x30d40",
        "preVerificationGas": "0xc350",
        "maxFeePerGas": "0xa",
        "maxPriorityFeePerGas": "0x1",
        "paymaster": "0x3333333333333333333333333333333333333333",
        "paymasterData": "0xcafe",
        "paymasterVerificationGasLimit": "0x7530",
        "paymasterPostOpGasLimit": "0x3e8",
        "signature": "0x0102",
    }


def test_from_rpc_dict_restores_operation(sponsored_user_operation):
    sponsored_user_operation.signature = b"\x01" * 65

    assert UserOperation.from_rpc_dict(sponsored_user_operation.to_rpc_dict()) == sponsored_user_operation


def test_from_rpc_dict_rejects_malformed_hex(smart_account_address):
    with pytest.raises(DecodeError):
        UserOperation.from_rpc_dict({"sender": smart_account_address, "nonce": "0xzz", "callData": "0x"})


def test_negative_fields_are_rejected(smart_account_address):
    with pytest.raises(EncodingError):
        UserOperation(sender=smart_account_address, nonce=-1)


@pytest.mark.parametrize("attr", ["nonce", "call_gas_limit", "max_fee_per_gas", "paymaster_post_op_gas_limit"])
def test_negative_assignment_is_rejected(sponsored_user_operation, attr):
    with pytest.raises(EncodingError):
        setattr(sponsored_user_operation, attr, -1)

    assert getattr(sponsored_user_operation, attr) >= 0


def test_quantity_fields_accept_none_after_construction(sponsored_user_operation):
    sponsored_user_operation.call_gas_limit = None

    assert sponsored_user_operation.call_gas_limit is None


def test_copy_is_independent(sponsored_user_operation):
    copied = sponsored_user_operation.copy()
    copied.nonce = 99

    assert sponsored_user_operation.nonce == 5


@pytest.mark.parametrize("value, expected", [
    (None, None),
    ("", None),
    ("0x", 0),
    ("0x0", 0),
    ("0xff", 255),
    (7, 7),
])
def test_decode_quantity(value, expected):
    assert decode_quantity(value) == expected


@pytest.mark.parametrize("value", ["0xg1", "12z", [1]])
def test_decode_quantity_rejects_garbage(value):
    with pytest.raises(DecodeError):
        decode_quantity(value)


def test_decode_bytes():
    assert decode_bytes(None) is None
    assert decode_bytes("0x") == b""
    assert decode_bytes("0xdeadbeef") == b"\xde\xad\xbe\xef"
    with pytest.raises(DecodeError):
        decode_bytes("0xzz")


def test_encode_execute_call():
    to_address = "0x1111111111111111111111111111111111111111"
    call_data = encode_execute_call(to_address, 10**18, b"\x12\x34")

    assert call_data[:4] == EXECUTE_SELECTOR == bytes.fromhex("e9ae5c53")
    exec_mode, execution_calldata = decode(["bytes32", "bytes"], call_data[4:])
    assert exec_mode == b"\x00" * 32
    assert execution_calldata[:20] == b"\x11" * 20
    assert int.from_bytes(execution_calldata[20:52], "big") == 10**18
    assert execution_calldata[52:] == b"\x12\x34"


def test_encode_execute_call_rejects_negative_value():
    with pytest.raises(EncodingError):
        encode_execute_call("0x1111111111111111111111111111111111111111", -1)
