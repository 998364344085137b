"""
Reads a smart account's EIP-712 domain via eip712Domain()
"""

import logging
from dataclasses import dataclass, field
from typing import List

from web3 import Web3

from rpc import call_view

logger = logging.getLogger(__name__)

# ERC-5267 eip712Domain()
EIP712_DOMAIN_ABI = [{
    "inputs": [],
    "name": "eip712Domain",
    "outputs": [
        {"name": "fields", "type": "bytes1"},
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
        {"name": "salt", "type": "bytes32"},
        {"name": "extensions", "type": "uint256[]"}
    ],
    "stateMutability": "view",
    "type": "function"
}]


@dataclass(frozen=True)
class AccountMetadata:
    """EIP-5267 domain of a smart account"""

    fields: bytes
    name: str
    version: str
    chain_id: int
    verifying_contract: str
    salt: bytes = b"\x00" * 32
    extensions: List[int] = field(default_factory=list)


def get_account_metadata(web3: Web3, address: str) -> AccountMetadata:
    """Fetch and decode eip712Domain() of the account at ``address``"""
    account_contract = web3.eth.contract(
        address=Web3.to_checksum_address(address),
        abi=EIP712_DOMAIN_ABI
    )

    fields, name, version, chain_id, verifying_contract, salt, extensions = call_view(
        account_contract.functions.eip712Domain()
    )
    metadata = AccountMetadata(
        fields=bytes(fields),
        name=name,
        version=version,
        chain_id=chain_id,
        verifying_contract=Web3.to_checksum_address(verifying_contract),
        salt=bytes(salt),
        extensions=list(extensions),
    )

    logger.info(f"Account {address} domain: {metadata.name} v{metadata.version} on chain {metadata.chain_id}")
    return metadata
