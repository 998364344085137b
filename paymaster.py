"""
ZeroDev paymaster sponsorship
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import SIGNATURE_DUMMY
from exceptions import ConfigurationError, DecodeError
from user_operations import UserOperation, decode_bytes, decode_quantity

logger = logging.getLogger(__name__)


@dataclass
class SponsorshipResult:
    """Gas limits and paymaster fields returned by zd_sponsorUserOperation"""

    call_gas_limit: Optional[int] = None
    verification_gas_limit: Optional[int] = None
    pre_verification_gas: Optional[int] = None
    paymaster: Optional[str] = None
    paymaster_data: Optional[bytes] = None
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "SponsorshipResult":
        if not isinstance(payload, dict):
            raise DecodeError("Paymaster returned an invalid sponsorship payload")

        return cls(
            call_gas_limit=decode_quantity(payload.get('callGasLimit')),
            verification_gas_limit=decode_quantity(payload.get('verificationGasLimit')),
            pre_verification_gas=decode_quantity(payload.get('preVerificationGas')),
            paymaster=payload.get('paymaster') or None,
            paymaster_data=decode_bytes(payload.get('paymasterData')),
            paymaster_verification_gas_limit=decode_quantity(payload.get('paymasterVerificationGasLimit')),
            paymaster_post_op_gas_limit=decode_quantity(payload.get('paymasterPostOpGasLimit')),
            max_fee_per_gas=decode_quantity(payload.get('maxFeePerGas')),
            max_priority_fee_per_gas=decode_quantity(payload.get('maxPriorityFeePerGas')),
        )

    def apply_to(self, user_operation: UserOperation) -> UserOperation:
        """Copy gas limits and paymaster fields onto ``user_operation``"""
        user_operation.paymaster = self.paymaster
        user_operation.paymaster_data = self.paymaster_data
        user_operation.pre_verification_gas = self.pre_verification_gas
        user_operation.verification_gas_limit = self.verification_gas_limit
        user_operation.paymaster_verification_gas_limit = self.paymaster_verification_gas_limit
        user_operation.paymaster_post_op_gas_limit = self.paymaster_post_op_gas_limit
        user_operation.call_gas_limit = self.call_gas_limit
        return user_operation


class PaymasterClient:
    """Client for the ZeroDev paymaster RPC"""

    def __init__(self, rpc_client, entrypoint, chain_id: int):
        if entrypoint is None or chain_id is None:
            raise ConfigurationError("entrypoint and chain_id are required")
        self.rpc_client = rpc_client
        self.entrypoint = entrypoint
        self.chain_id = chain_id

    def sponsor_user_operation(self, user_operation: UserOperation) -> SponsorshipResult:
        """Request sponsorship; overwrites the operation signature with the dummy one"""
        user_operation.signature = decode_bytes(SIGNATURE_DUMMY)

        request = {
            "chainId": self.chain_id,
            "userOp": user_operation.to_rpc_dict(),
            "entryPointAddress": self.entrypoint.address,
            "shouldOverrideFee": False,
            "shouldConsume": True,
        }
        logger.debug(f"Sponsorship request: {request}")

        result = SponsorshipResult.from_rpc(self.rpc_client.call("zd_sponsorUserOperation", request))
        logger.info(f"UserOperation sponsored by paymaster {result.paymaster}")
        return result

    def close(self) -> None:
        self.rpc_client.close()
