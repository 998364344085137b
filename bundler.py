"""
ZeroDev bundler integration: fee tiers, submission and receipt polling
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import GAS_PRICE_TIERS, RECEIPT_POLL_ATTEMPTS, RECEIPT_POLL_INTERVAL
from exceptions import (
    ConfigurationError,
    DecodeError,
    ReceiptPollCancelled,
    ReceiptTimeoutError,
)
from user_operations import UserOperation, decode_bytes, decode_quantity

logger = logging.getLogger(__name__)


@dataclass
class GasPrice:
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "GasPrice":
        if not isinstance(payload, dict):
            raise DecodeError("Gas price tier must be an object")
        return cls(
            max_fee_per_gas=decode_quantity(payload.get('maxFeePerGas')) or 0,
            max_priority_fee_per_gas=decode_quantity(payload.get('maxPriorityFeePerGas')) or 0,
        )


@dataclass
class GasPriceTiers:
    slow: GasPrice
    standard: GasPrice
    fast: GasPrice

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "GasPriceTiers":
        if not isinstance(payload, dict):
            raise DecodeError("Bundler returned an invalid gas price payload")
        return cls(**{tier: GasPrice.from_rpc(payload.get(tier)) for tier in GAS_PRICE_TIERS})

    def tier(self, name: str) -> GasPrice:
        if name not in GAS_PRICE_TIERS:
            raise ConfigurationError(f"Unknown gas price tier: {name}")
        return getattr(self, name)


@dataclass
class TransactionReceipt:
    """Receipt of the bundle transaction that included a user operation"""

    transaction_hash: Optional[bytes] = None
    transaction_index: Optional[int] = None
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    cumulative_gas_used: Optional[int] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)
    logs_bloom: Optional[bytes] = None
    status: Optional[int] = None
    effective_gas_price: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: Optional[Dict[str, Any]]) -> "TransactionReceipt":
        payload = payload or {}
        if not isinstance(payload, dict):
            raise DecodeError("Transaction receipt must be an object")
        return cls(
            transaction_hash=decode_bytes(payload.get('transactionHash')),
            transaction_index=decode_quantity(payload.get('transactionIndex')),
            block_hash=decode_bytes(payload.get('blockHash')),
            block_number=decode_quantity(payload.get('blockNumber')),
            from_address=payload.get('from'),
            to_address=payload.get('to'),
            cumulative_gas_used=decode_quantity(payload.get('cumulativeGasUsed')),
            gas_used=decode_quantity(payload.get('gasUsed')),
            contract_address=payload.get('contractAddress'),
            logs=list(payload.get('logs') or []),
            logs_bloom=decode_bytes(payload.get('logsBloom')),
            status=decode_quantity(payload.get('status')),
            effective_gas_price=decode_quantity(payload.get('effectiveGasPrice')),
        )


@dataclass
class UserOperationReceipt:
    """Result of eth_getUserOperationReceipt for an included operation"""

    user_op_hash: bytes
    entrypoint: Optional[str] = None
    sender: Optional[str] = None
    nonce: Optional[int] = None
    paymaster: Optional[str] = None
    actual_gas_used: Optional[int] = None
    actual_gas_cost: Optional[int] = None
    success: bool = False
    logs: List[Dict[str, Any]] = field(default_factory=list)
    receipt: TransactionReceipt = field(default_factory=TransactionReceipt)

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "UserOperationReceipt":
        return cls(
            user_op_hash=decode_bytes(payload.get('userOpHash')),
            entrypoint=payload.get('entryPoint') or payload.get('entrypoint'),
            sender=payload.get('sender'),
            nonce=decode_quantity(payload.get('nonce')),
            paymaster=payload.get('paymaster'),
            actual_gas_used=decode_quantity(payload.get('actualGasUsed')),
            actual_gas_cost=decode_quantity(payload.get('actualGasCost')),
            success=bool(payload.get('success')),
            logs=list(payload.get('logs') or []),
            receipt=TransactionReceipt.from_rpc(payload.get('receipt')),
        )


@dataclass
class ReceiptPollOptions:
    """How long to wait for a user operation to be included"""

    attempts: int = RECEIPT_POLL_ATTEMPTS
    poll_interval: float = RECEIPT_POLL_INTERVAL


class BundlerClient:
    """Client for interacting with the ZeroDev ERC-4337 bundler"""

    def __init__(self, rpc_client, entrypoint, chain_id: int):
        if entrypoint is None or chain_id is None:
            raise ConfigurationError("entrypoint and chain_id are required")
        self.rpc_client = rpc_client
        self.entrypoint = entrypoint
        self.chain_id = chain_id

    def get_user_operation_gas_price(self) -> GasPriceTiers:
        """Get current slow/standard/fast fee tiers"""
        return GasPriceTiers.from_rpc(self.rpc_client.call("zd_getUserOperationGasPrice"))

    def send_user_operation(self, user_operation: UserOperation) -> bytes:
        """Submit a signed UserOperation and return the bundler's identifier for it"""
        logger.info("Sending UserOperation to bundler...")

        user_op_dict = user_operation.to_rpc_dict()
        logger.debug(f"Full UserOp to bundler: {user_op_dict}")
        result = self.rpc_client.call("eth_sendUserOperation", user_op_dict, self.entrypoint.address)

        user_operation_hash = decode_bytes(result) if isinstance(result, str) else None
        if not user_operation_hash:
            raise DecodeError(f"Bundler returned an invalid userOp hash: {result!r}")

        logger.info(f"UserOperation sent successfully: 0x{user_operation_hash.hex()}")
        return user_operation_hash

    def get_user_operation_receipt(
        self,
        user_operation_hash: bytes,
        options: Optional[ReceiptPollOptions] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> UserOperationReceipt:
        """Poll until the operation is included.

        A ``null`` result means the bundler does not know the operation yet;
        the lookup is retried after ``poll_interval`` seconds, at most
        ``attempts`` times. RPC failures are raised immediately. Setting
        ``cancel_event`` stops the wait early.

        There is no wait after the final miss, so the defaults (24 attempts,
        10 s apart) give up after 23 waits, roughly 230 s, rather than 240 s.
        """
        opts = options or ReceiptPollOptions()
        cancel_event = cancel_event or threading.Event()
        hash_hex = "0x" + bytes(user_operation_hash).hex()

        for attempt in range(1, opts.attempts + 1):
            response = self.rpc_client.call("eth_getUserOperationReceipt", hash_hex)
            if response is not None and not isinstance(response, dict):
                raise DecodeError(f"Bundler returned an invalid receipt payload: {response!r}")
            if response and response.get('userOpHash'):
                receipt = UserOperationReceipt.from_rpc(response)
                logger.info(f"UserOperation {hash_hex} included, success={receipt.success}")
                return receipt

            if attempt == opts.attempts:
                break
            logger.debug(f"Receipt for {hash_hex} not available yet (attempt {attempt}/{opts.attempts})")
            if cancel_event.wait(opts.poll_interval):
                raise ReceiptPollCancelled(hash_hex)

        raise ReceiptTimeoutError(hash_hex)

    def close(self) -> None:
        self.rpc_client.close()
