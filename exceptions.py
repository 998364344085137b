"""
Error types raised by the user operation client
"""

from typing import Any, Optional


class UserOperationError(Exception):
    """Base class for every error raised by this package"""


class ConfigurationError(UserOperationError, ValueError):
    """Raised when required construction parameters are missing or unsupported"""


class RPCError(UserOperationError):
    """Raised when a remote JSON-RPC call fails or the transport is unusable"""

    def __init__(self, message: str, *, method: Optional[str] = None,
                 code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.method = method
        self.code = code
        self.data = data


class EncodingError(UserOperationError, ValueError):
    """Raised when a value cannot be packed into its canonical byte layout"""


class DecodeError(UserOperationError, ValueError):
    """Raised when a remote response is malformed"""


class ReceiptTimeoutError(UserOperationError):
    """Raised when a user operation receipt never became available"""

    def __init__(self, user_operation_hash: str, message: Optional[str] = None):
        super().__init__(message or f"failed to get receipt for user operation: {user_operation_hash}")
        self.user_operation_hash = user_operation_hash


class ReceiptPollCancelled(ReceiptTimeoutError):
    """Raised when receipt polling was cancelled before a receipt arrived"""

    def __init__(self, user_operation_hash: str):
        super().__init__(
            user_operation_hash,
            f"receipt polling cancelled for user operation: {user_operation_hash}",
        )
