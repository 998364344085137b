"""
ZeroDev Kernel User Operation Client

Builds, sponsors, signs and submits ERC-4337 (EntryPoint v0.7) user
operations for Kernel smart accounts via a ZeroDev paymaster and bundler.
"""

# Main client
from smart_account import UserOperationClient, UserOperationResult, create_user_operation_client

# Configuration
from config import ClientConfig

# Signers
from signer import AccountSigner, PrivateKeySigner, SmartAccountPrivateKeySigner
from validator import Validator, ecdsa_validator

# Individual components for advanced usage
from account_metadata import AccountMetadata, get_account_metadata
from bundler import BundlerClient, GasPrice, GasPriceTiers, ReceiptPollOptions, UserOperationReceipt
from entrypoint import EntrypointClient, create_entrypoint
from hashing import compute_user_operation_hash, wrap_hash_for_account
from paymaster import PaymasterClient, SponsorshipResult
from rpc import JsonRpcClient, connect_node
from user_operations import UserOperation, encode_execute_call

# Errors
from exceptions import (
    ConfigurationError,
    DecodeError,
    EncodingError,
    ReceiptPollCancelled,
    ReceiptTimeoutError,
    RPCError,
    UserOperationError,
)

__version__ = "1.0.0"

__all__ = [
    "UserOperationClient",
    "UserOperationResult",
    "create_user_operation_client",
    "ClientConfig",
    "AccountSigner",
    "PrivateKeySigner",
    "SmartAccountPrivateKeySigner",
    "Validator",
    "ecdsa_validator",
    "AccountMetadata",
    "get_account_metadata",
    "BundlerClient",
    "GasPrice",
    "GasPriceTiers",
    "ReceiptPollOptions",
    "UserOperationReceipt",
    "EntrypointClient",
    "create_entrypoint",
    "compute_user_operation_hash",
    "wrap_hash_for_account",
    "PaymasterClient",
    "SponsorshipResult",
    "JsonRpcClient",
    "connect_node",
    "UserOperation",
    "encode_execute_call",
    "ConfigurationError",
    "DecodeError",
    "EncodingError",
    "ReceiptPollCancelled",
    "ReceiptTimeoutError",
    "RPCError",
    "UserOperationError",
]
