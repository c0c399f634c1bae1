"""
Error Definitions

Defines custom exception classes raised by hash record operations.

A missing record or field is never an error: it is reported as ``None``.
"""

from typing import Any, Optional


class HashCacheError(Exception):
    """
    Library Base Exception

    Base class for all custom exceptions, containing error message, type, and code.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "hashcache_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details (record key, command, field...)
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format (for structured logs)

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class ConnectivityError(HashCacheError):
    """
    Connectivity Error

    Raised when the store is unreachable or a request timed out.
    The state of the remote record is unknown; the request is not retried.
    """

    def __init__(
        self,
        message: str = "Store unreachable",
        code: str = "connectivity_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="connectivity_error",
            code=code,
            details=details,
        )


class ProtocolError(HashCacheError):
    """
    Protocol Error

    Raised when the store rejects a command or replies with an unexpected shape,
    including script results of the wrong type.
    """

    def __init__(
        self,
        message: str = "Unexpected store response",
        code: str = "protocol_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="protocol_error",
            code=code,
            details=details,
        )


class DecodeError(HashCacheError):
    """
    Decode Error

    Raised when stored bytes cannot be turned back into the requested type
    (e.g. the record was written with an older schema). Never treated as a cache miss.
    """

    def __init__(
        self,
        message: str = "Failed to decode stored value",
        code: str = "decode_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="decode_error",
            code=code,
            details=details,
        )
