"""
Configuration for ZeroDev Kernel user operations
"""

import os
from dataclasses import dataclass
from typing import Any, Optional

from exceptions import ConfigurationError

# Network constants
ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"
ENTRYPOINT_V07 = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
ENTRYPOINT_VERSION_07 = "0.7"

CHAIN_POLYGON = 137
CHAIN_POLYGON_AMOY = 80_002

# Signature used when asking the paymaster to estimate gas
SIGNATURE_DUMMY = (
    "0xfffffffffffffffffffffffffffffff0000000000000000000000000000000007a"
    "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa1c"
)

# Kernel validator types
VALIDATOR_TYPE_SUDO = b"\x00"
VALIDATOR_TYPE_SECONDARY = b"\x01"
VALIDATOR_TYPE_PERMISSION = b"\x02"

ECDSA_VALIDATOR_ADDRESS = "0x845ADb2C711129d4f3966735eD98a9F09fC4cE57"

# Receipt polling defaults: 24 attempts, 10 seconds apart
RECEIPT_POLL_ATTEMPTS = 24
RECEIPT_POLL_INTERVAL = 10.0

GAS_PRICE_TIERS = ("slow", "standard", "fast")
DEFAULT_GAS_PRICE_TIER = "fast"

DEFAULT_REQUEST_TIMEOUT = 30


@dataclass
class ClientConfig:
    """Everything needed to build a UserOperationClient"""

    sender: Optional[str] = None
    sender_signer: Any = None
    rpc_url: Optional[str] = None
    paymaster_url: Optional[str] = None
    bundler_url: Optional[str] = None
    chain_id: Optional[int] = None
    entry_point_version: str = ENTRYPOINT_VERSION_07
    gas_price_tier: str = DEFAULT_GAS_PRICE_TIER
    receipt_poll_attempts: int = RECEIPT_POLL_ATTEMPTS
    receipt_poll_interval: float = RECEIPT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def validate(self) -> None:
        """Fail fast before any network activity"""
        missing = [
            name for name in ("sender", "sender_signer", "rpc_url", "paymaster_url", "bundler_url", "chain_id")
            if getattr(self, name) is None
        ]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
        if self.entry_point_version != ENTRYPOINT_VERSION_07:
            raise ConfigurationError(f"Unsupported entrypoint version: {self.entry_point_version}")
        if self.gas_price_tier not in GAS_PRICE_TIERS:
            raise ConfigurationError(f"Unknown gas price tier: {self.gas_price_tier}")
        if self.receipt_poll_attempts < 1:
            raise ConfigurationError("receipt_poll_attempts must be at least 1")
        if self.receipt_poll_interval < 0:
            raise ConfigurationError("receipt_poll_interval must not be negative")

    @classmethod
    def from_env(cls, sender_signer: Any) -> "ClientConfig":
        """Build configuration from ZERODEV_* environment variables"""
        chain_id = os.environ.get('ZERODEV_CHAIN_ID')
        try:
            chain_id = int(chain_id, 0) if chain_id else CHAIN_POLYGON_AMOY
        except ValueError as e:
            raise ConfigurationError(f"Invalid ZERODEV_CHAIN_ID: {chain_id}") from e

        config = cls(
            sender=os.environ.get('ZERODEV_SENDER'),
            sender_signer=sender_signer,
            rpc_url=os.environ.get('ZERODEV_RPC_URL'),
            paymaster_url=os.environ.get('ZERODEV_PAYMASTER_URL'),
            bundler_url=os.environ.get('ZERODEV_BUNDLER_URL'),
            chain_id=chain_id,
            gas_price_tier=os.environ.get('ZERODEV_GAS_PRICE_TIER', DEFAULT_GAS_PRICE_TIER),
        )
        config.validate()
        return config
