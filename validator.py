"""
Kernel validator identity prefixed to smart account signatures
"""

from dataclasses import dataclass

from hexbytes import HexBytes
from web3 import Web3

from config import (
    ECDSA_VALIDATOR_ADDRESS,
    VALIDATOR_TYPE_PERMISSION,
    VALIDATOR_TYPE_SECONDARY,
    VALIDATOR_TYPE_SUDO,
)
from exceptions import ConfigurationError

VALIDATOR_TYPES = (VALIDATOR_TYPE_SUDO, VALIDATOR_TYPE_SECONDARY, VALIDATOR_TYPE_PERMISSION)


@dataclass(frozen=True)
class Validator:
    type: bytes
    address: str

    def __post_init__(self):
        if self.type not in VALIDATOR_TYPES:
            raise ConfigurationError(f"Unknown validator type: 0x{self.type.hex()}")
        if not Web3.is_address(self.address):
            raise ConfigurationError(f"Invalid validator address: {self.address}")

    @property
    def identifier(self) -> bytes:
        """type byte ++ 20-byte address"""
        return self.type + bytes(HexBytes(self.address))


def ecdsa_validator() -> Validator:
    return Validator(type=VALIDATOR_TYPE_SECONDARY, address=ECDSA_VALIDATOR_ADDRESS)
