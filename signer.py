"""
Signers for user operations and smart account messages
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data

from account_metadata import AccountMetadata, get_account_metadata
from exceptions import EncodingError
from hashing import WORD_SIZE, keccak, wrap_hash_for_account
from validator import Validator, ecdsa_validator

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65
RECOVERY_ID_OFFSET = 27


def typed_data_hash(typed_data: Dict[str, Any]) -> bytes:
    """EIP-712 digest of a full typed data message (types, domain, primaryType, message)"""
    signable = encode_typed_data(full_message=typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def sign_hash_with_key(account, message_hash: bytes) -> bytes:
    """Sign a 32-byte hash and return r ++ s ++ v with a 27-based v"""
    if len(message_hash) != WORD_SIZE:
        raise EncodingError(f"Hash must be {WORD_SIZE} bytes, got {len(message_hash)}")

    signature = bytearray(account.unsafe_sign_hash(bytes(message_hash)).signature)
    if signature[64] < RECOVERY_ID_OFFSET:
        signature[64] += RECOVERY_ID_OFFSET
    return bytes(signature)


class AccountSigner(ABC):
    """Capability every signer exposes to the user operation client"""

    @property
    @abstractmethod
    def address(self) -> str:
        ...

    @abstractmethod
    def sign_message(self, message: bytes) -> bytes:
        ...

    @abstractmethod
    def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        ...

    @abstractmethod
    def sign_hash(self, message_hash: bytes) -> bytes:
        ...

    @abstractmethod
    def sign_user_operation_hash(self, user_operation_hash: bytes) -> bytes:
        ...


class PrivateKeySigner(AccountSigner):
    """Signs hashes directly with an externally owned account key"""

    def __init__(self, private_key):
        self.account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address

    def sign_message(self, message: bytes) -> bytes:
        return self.sign_hash(keccak(message))

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        return self.sign_hash(typed_data_hash(typed_data))

    def sign_hash(self, message_hash: bytes) -> bytes:
        return sign_hash_with_key(self.account, message_hash)

    def sign_user_operation_hash(self, user_operation_hash: bytes) -> bytes:
        return self.sign_hash(user_operation_hash)


class SmartAccountPrivateKeySigner(AccountSigner):
    """Signs on behalf of a Kernel smart account through one of its validators.

    Message hashes are wrapped into the account's EIP-712 domain before
    signing and the result is prefixed with the validator identifier, which
    is what the account's ``isValidSignature`` expects. User operation
    hashes are checked by the validator during ``validateUserOp`` and are
    signed as-is.

    The account domain is fetched on first use and cached for the lifetime
    of the signer.
    """

    def __init__(self, web3, address: str, private_key, validator: Optional[Validator] = None):
        self.web3 = web3
        self._address = address
        self.account = Account.from_key(private_key)
        self.validator = validator or ecdsa_validator()
        self._account_metadata: Optional[AccountMetadata] = None
        self._metadata_lock = threading.Lock()

    @property
    def address(self) -> str:
        return self._address

    @property
    def account_metadata(self) -> AccountMetadata:
        metadata = self._account_metadata
        if metadata is not None:
            return metadata

        with self._metadata_lock:
            if self._account_metadata is None:
                logger.info(f"Fetching EIP-712 domain for smart account {self._address}")
                self._account_metadata = get_account_metadata(self.web3, self._address)
            return self._account_metadata

    def invalidate_account_metadata(self) -> None:
        with self._metadata_lock:
            self._account_metadata = None

    def sign_message(self, message: bytes) -> bytes:
        return self.sign_hash(keccak(message))

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        return self.sign_hash(typed_data_hash(typed_data))

    def sign_hash(self, message_hash: bytes) -> bytes:
        final_hash = wrap_hash_for_account(self.account_metadata, message_hash)
        signature = sign_hash_with_key(self.account, final_hash)
        return self.validator.identifier + signature

    def sign_user_operation_hash(self, user_operation_hash: bytes) -> bytes:
        return sign_hash_with_key(self.account, user_operation_hash)
