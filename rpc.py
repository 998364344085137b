"""
Transports: web3 for the state-reading node, plain JSON-RPC for the
paymaster and bundler
"""

import itertools
import logging
from typing import Any, Dict, Optional

import requests
from web3 import Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    BadResponseFormat,
    ContractLogicError,
    Web3Exception,
    Web3RPCError,
)

from config import DEFAULT_REQUEST_TIMEOUT
from exceptions import DecodeError, RPCError

logger = logging.getLogger(__name__)


def connect_node(rpc_url: str, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> Web3:
    """Web3 connection to the node used for contract reads"""
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout}))


def call_view(contract_function, block_identifier='latest') -> Any:
    """Run a bound contract view function through eth_call.

    Undecodable return data raises DecodeError; node, revert and transport
    failures raise RPCError carrying the node's message and code.
    """
    name = contract_function.fn_name
    try:
        return contract_function.call(block_identifier=block_identifier)
    except (BadFunctionCallOutput, BadResponseFormat) as e:
        raise DecodeError(f"improperly formatted {name} output: {e}") from e
    except ContractLogicError as e:
        logger.error(f"{name} reverted: {e.message}")
        raise RPCError(f"{name} reverted: {e.message}", method="eth_call", data=e.data) from e
    except Web3RPCError as e:
        error = (e.rpc_response or {}).get('error') or {}
        message = error.get('message') or e.message
        logger.error(f"RPC error from eth_call {name}: {message}")
        raise RPCError(message, method="eth_call", code=error.get('code'), data=error.get('data')) from e
    except (Web3Exception, requests.RequestException) as e:
        logger.error(f"eth_call {name} failed: {e}")
        raise RPCError(f"eth_call {name} failed: {e}", method="eth_call") from e


class JsonRpcClient:
    """Blocking JSON-RPC client bound to a single endpoint.

    Each instance owns its own HTTP session, so the paymaster and bundler
    never share a connection.
    """

    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None,
                 timeout: float = DEFAULT_REQUEST_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if headers:
            self.session.headers.update(headers)
        self._ids = itertools.count(1)

    def call(self, method: str, *params: Any) -> Any:
        """Issue a JSON-RPC request and return its ``result`` member"""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids)
        }
        logger.debug(f"RPC request to {self.url}: {payload}")

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request {method} failed: {e}")
            raise RPCError(f"{method} request failed: {e}", method=method) from e

        # error bodies on 4xx/5xx carry the remote message, so parse first
        try:
            result = response.json()
        except ValueError as e:
            self._raise_for_status(method, response)
            raise DecodeError(f"{method} returned a non-JSON response") from e

        if isinstance(result, dict) and result.get('error'):
            error = result['error']
            if not isinstance(error, dict):
                error = {'message': str(error)}
            message = error.get('message', 'Unknown error')
            logger.error(f"RPC error from {method}: {message}")
            raise RPCError(message, method=method, code=error.get('code'), data=error.get('data'))

        self._raise_for_status(method, response)
        if not isinstance(result, dict):
            raise DecodeError(f"{method} returned an invalid JSON-RPC envelope")

        return result.get('result')

    def _raise_for_status(self, method: str, response) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"Request {method} failed: {e}")
            raise RPCError(f"{method} request failed: {e}", method=method) from e

    def close(self) -> None:
        self.session.close()
