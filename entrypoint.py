"""
EntryPoint v0.7 reads and user operation hashing
"""

import logging

from web3 import Web3

from config import ENTRYPOINT_V07, ENTRYPOINT_VERSION_07
from exceptions import ConfigurationError
from hashing import compute_user_operation_hash
from rpc import call_view
from user_operations import UserOperation

logger = logging.getLogger(__name__)

GET_NONCE_ABI = [{
    "inputs": [{"name": "sender", "type": "address"}, {"name": "key", "type": "uint192"}],
    "name": "getNonce",
    "outputs": [{"name": "nonce", "type": "uint256"}],
    "stateMutability": "view",
    "type": "function"
}]


def nonce_key(account: str) -> int:
    """Nonce key the Kernel SDK derives for ``account``.

    Built from characters 5-10 of the checksummed address text wrapped in
    '>' and '<', not from the address bytes. Accounts sharing that slice
    share a key.
    """
    address_text = Web3.to_checksum_address(account)
    return int.from_bytes((">" + address_text[5:10] + "<").encode("ascii"), "big")


class EntrypointClient:
    """Read-only client for the v0.7 EntryPoint bound to one chain"""

    version = ENTRYPOINT_VERSION_07

    def __init__(self, web3: Web3, chain_id: int, address: str = ENTRYPOINT_V07):
        if chain_id is None:
            raise ConfigurationError("chain_id is required")
        self.web3 = web3
        self.chain_id = chain_id
        self.address = Web3.to_checksum_address(address)
        self.contract = web3.eth.contract(address=self.address, abi=GET_NONCE_ABI)

    def get_nonce(self, account: str) -> int:
        """Get current nonce for ``account`` from the EntryPoint"""
        account = Web3.to_checksum_address(account)
        nonce = call_view(self.contract.functions.getNonce(account, nonce_key(account)))

        logger.info(f"Current nonce for {account}: {nonce}")
        return nonce

    def get_user_operation_hash(self, user_operation: UserOperation) -> bytes:
        return compute_user_operation_hash(user_operation, self.address, self.chain_id)


def create_entrypoint(version: str, web3: Web3, chain_id: int) -> EntrypointClient:
    if version != ENTRYPOINT_VERSION_07:
        raise ConfigurationError(f"Unsupported entrypoint version: {version}")
    return EntrypointClient(web3, chain_id)
