"""
Main user operation client orchestration
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from web3 import Web3

from bundler import BundlerClient, ReceiptPollOptions, UserOperationReceipt
from config import DEFAULT_GAS_PRICE_TIER, GAS_PRICE_TIERS, ClientConfig
from entrypoint import create_entrypoint
from exceptions import ConfigurationError
from paymaster import PaymasterClient
from rpc import JsonRpcClient, connect_node
from user_operations import UserOperation, encode_execute_call

logger = logging.getLogger(__name__)


@dataclass
class UserOperationResult:
    user_operation_hash: bytes
    user_operation: UserOperation
    receipt: Optional[UserOperationReceipt] = None


class UserOperationClient:
    """Builds, sponsors, signs and submits user operations.

    One submission runs nonce -> gas price -> sponsorship -> hash -> sign ->
    send, and optionally waits for the receipt. Any failing stage aborts
    the submission with that stage's error; retrying means running the
    whole pipeline again from a fresh nonce.
    """

    def __init__(self, sender: str, signer, entrypoint, paymaster: PaymasterClient,
                 bundler: BundlerClient, chain_id: int,
                 gas_price_tier: str = DEFAULT_GAS_PRICE_TIER,
                 receipt_options: Optional[ReceiptPollOptions] = None):
        if sender is None or signer is None or entrypoint is None or paymaster is None \
                or bundler is None or chain_id is None:
            raise ConfigurationError("sender, signer, entrypoint, paymaster, bundler and chain_id are required")
        if gas_price_tier not in GAS_PRICE_TIERS:
            raise ConfigurationError(f"Unknown gas price tier: {gas_price_tier}")

        self.sender = Web3.to_checksum_address(sender)
        self.signer = signer
        self.entrypoint = entrypoint
        self.paymaster = paymaster
        self.bundler = bundler
        self.chain_id = chain_id
        self.gas_price_tier = gas_price_tier
        self.receipt_options = receipt_options or ReceiptPollOptions()

        logger.info(f"User operation client initialized for {self.sender} on chain {chain_id}")

    @classmethod
    def from_config(cls, config: ClientConfig) -> "UserOperationClient":
        config.validate()

        node = connect_node(config.rpc_url, timeout=config.request_timeout)
        paymaster_rpc = JsonRpcClient(config.paymaster_url, timeout=config.request_timeout)
        bundler_rpc = JsonRpcClient(config.bundler_url, timeout=config.request_timeout)

        entrypoint = create_entrypoint(config.entry_point_version, node, config.chain_id)
        return cls(
            sender=config.sender,
            signer=config.sender_signer,
            entrypoint=entrypoint,
            paymaster=PaymasterClient(paymaster_rpc, entrypoint, config.chain_id),
            bundler=BundlerClient(bundler_rpc, entrypoint, config.chain_id),
            chain_id=config.chain_id,
            gas_price_tier=config.gas_price_tier,
            receipt_options=ReceiptPollOptions(
                attempts=config.receipt_poll_attempts,
                poll_interval=config.receipt_poll_interval,
            ),
        )

    def get_user_operation_and_hash_to_sign(self, sender: str, call_data: bytes) -> Tuple[UserOperation, bytes]:
        """Build a sponsored UserOperation for ``sender`` and return it with its hash.

        The caller signs the hash however it likes, sets ``signature`` on the
        returned operation and submits it with send_signed_user_operation.
        """
        sender = Web3.to_checksum_address(sender)
        user_operation = UserOperation(
            sender=sender,
            nonce=self.entrypoint.get_nonce(sender),
            call_data=bytes(call_data),
        )

        gas_price = self.bundler.get_user_operation_gas_price().tier(self.gas_price_tier)
        user_operation.max_fee_per_gas = gas_price.max_fee_per_gas
        user_operation.max_priority_fee_per_gas = gas_price.max_priority_fee_per_gas
        logger.info(
            f"Using {self.gas_price_tier} gas price: maxFee={gas_price.max_fee_per_gas}, "
            f"maxPriorityFee={gas_price.max_priority_fee_per_gas}"
        )

        sponsorship = self.paymaster.sponsor_user_operation(user_operation)
        sponsorship.apply_to(user_operation)

        user_operation_hash = self.entrypoint.get_user_operation_hash(user_operation)
        logger.info(f"UserOperation hash to sign: 0x{user_operation_hash.hex()}")
        return user_operation, user_operation_hash

    def send_signed_user_operation(self, signed_user_operation: UserOperation,
                                   wait_for_receipt: bool = False,
                                   cancel_event: Optional[threading.Event] = None) -> UserOperationResult:
        """Submit an already signed UserOperation"""
        user_operation_hash = self.bundler.send_user_operation(signed_user_operation)
        result = UserOperationResult(
            user_operation_hash=user_operation_hash,
            user_operation=signed_user_operation,
        )
        if wait_for_receipt:
            result.receipt = self.wait_for_receipt(user_operation_hash, cancel_event=cancel_event)
        return result

    def send_user_operation(self, call_data: bytes, wait_for_receipt: bool = False,
                            cancel_event: Optional[threading.Event] = None) -> UserOperationResult:
        """Build, sign with the client's signer and submit a UserOperation for the client's sender"""
        user_operation, user_operation_hash = self.get_user_operation_and_hash_to_sign(self.sender, call_data)
        user_operation.signature = self.signer.sign_user_operation_hash(user_operation_hash)
        return self.send_signed_user_operation(
            user_operation, wait_for_receipt=wait_for_receipt, cancel_event=cancel_event
        )

    def send_transaction(self, to_address: str, value: int = 0, data: bytes = b"",
                         wait_for_receipt: bool = False,
                         cancel_event: Optional[threading.Event] = None) -> UserOperationResult:
        """Execute a single call from the smart account"""
        call_data = encode_execute_call(to_address, value, data)
        return self.send_user_operation(call_data, wait_for_receipt=wait_for_receipt, cancel_event=cancel_event)

    def wait_for_receipt(self, user_operation_hash: bytes,
                         cancel_event: Optional[threading.Event] = None) -> UserOperationReceipt:
        return self.bundler.get_user_operation_receipt(
            user_operation_hash, options=self.receipt_options, cancel_event=cancel_event
        )

    def close(self) -> None:
        self.paymaster.close()
        self.bundler.close()


def create_user_operation_client(config: ClientConfig) -> UserOperationClient:
    """Create a user operation client from configuration"""
    return UserOperationClient.from_config(config)
