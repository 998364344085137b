"""
Shared fixtures: stub JSON-RPC transports, a stub web3 node and a
deterministic test key
"""

import itertools

import pytest
from eth_account import Account
from web3 import Web3
from web3.providers.base import BaseProvider

from user_operations import UserOperation

CHAIN_ID = 80002
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SMART_ACCOUNT_ADDRESS = "0xC81D8Fa063a7c73795C8455F6b766DD245d8F47a"
PAYMASTER_ADDRESS = "0x3333333333333333333333333333333333333333"

# eth_call output of eip712Domain() on a Kernel v0.3.1 account on Polygon Amoy
KERNEL_DOMAIN_RESPONSE = (
    "0x0f00000000000000000000000000000000000000000000000000000000000000"
    "00000000000000000000000000000000000000000000000000000000000000e0"
    "0000000000000000000000000000000000000000000000000000000000000120"
    "0000000000000000000000000000000000000000000000000000000000013882"
    "000000000000000000000000c81d8fa063a7c73795c8455f6b766dd245d8f47a"
    "0000000000000000000000000000000000000000000000000000000000000000"
    "0000000000000000000000000000000000000000000000000000000000000160"
    "0000000000000000000000000000000000000000000000000000000000000006"
    "4b65726e656c0000000000000000000000000000000000000000000000000000"
    "0000000000000000000000000000000000000000000000000000000000000005"
    "302e332e31000000000000000000000000000000000000000000000000000000"
    "0000000000000000000000000000000000000000000000000000000000000000"
)


class StubRPCClient:
    """Records calls and replays canned responses per method.

    A response may be a value, an exception instance (raised), a list
    (consumed one item per call) or a callable receiving the params.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.closed = False

    def call(self, method, *params):
        self.calls.append((method, params))
        response = self.responses[method]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(*params)
        return response

    def calls_to(self, method):
        return [params for name, params in self.calls if name == method]

    def close(self):
        self.closed = True


class StubProvider(BaseProvider):
    """web3 provider answering node requests from canned responses.

    Responses follow StubRPCClient rules; a dict with an ``error`` key is
    returned as a JSON-RPC error envelope. ``eth_chainId`` and
    ``eth_getCode`` have defaults since web3 asks for them on its own.
    """

    def __init__(self, responses=None):
        super().__init__()
        self.responses = {"eth_chainId": hex(CHAIN_ID), "eth_getCode": "0x"}
        self.responses.update(responses or {})
        self.calls = []
        self._ids = itertools.count(1)

    def make_request(self, method, params):
        self.calls.append((method, tuple(params)))
        response = self.responses[method]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(*params)

        envelope = {"jsonrpc": "2.0", "id": next(self._ids)}
        if isinstance(response, dict) and "error" in response:
            envelope["error"] = response["error"]
        else:
            envelope["result"] = response
        return envelope

    def is_connected(self, show_traceback=False):
        return True

    def calls_to(self, method):
        return [params for name, params in self.calls if name == method]


def node_error(message, code=-32000, data=None):
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"error": error}


class CountingEvent:
    """Stands in for threading.Event so polling never actually sleeps"""

    def __init__(self, cancel_after=None):
        self.waits = []
        self.cancel_after = cancel_after

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.cancel_after is not None and len(self.waits) >= self.cancel_after


@pytest.fixture
def stub_rpc():
    return StubRPCClient


@pytest.fixture
def stub_node():
    def build(responses=None):
        return Web3(StubProvider(responses))
    return build


@pytest.fixture
def counting_event():
    return CountingEvent


@pytest.fixture
def private_key():
    return PRIVATE_KEY


@pytest.fixture
def key_address():
    return Account.from_key(PRIVATE_KEY).address


@pytest.fixture
def smart_account_address():
    return SMART_ACCOUNT_ADDRESS


@pytest.fixture
def kernel_domain_response():
    return KERNEL_DOMAIN_RESPONSE


@pytest.fixture
def sponsored_user_operation():
    return UserOperation(
        sender=SMART_ACCOUNT_ADDRESS,
        nonce=5,
        call_data=bytes.fromhex("deadbeef"),
        call_gas_limit=100_000,
        verification_gas_limit=200_000,
        pre_verification_gas=50_000,
        max_fee_per_gas=10,
        max_priority_fee_per_gas=1,
        paymaster=PAYMASTER_ADDRESS,
        paymaster_data=bytes.fromhex("cafe"),
        paymaster_verification_gas_limit=30_000,
        paymaster_post_op_gas_limit=1_000,
    )
