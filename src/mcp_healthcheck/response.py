"""Standard response envelope and error codes."""

from typing import Any


class ResponseEnvelope:
    """Standard response envelope for tool and command results."""

    @staticmethod
    def success(message: str, data: Any = None) -> dict:
        """Create a success response."""
        return {
            "ok": True,
            "error": None,
            "message": message,
            "data": data or {}
        }

    @staticmethod
    def error(code: str, message: str, data: Any = None) -> dict:
        """Create an error response."""
        return {
            "ok": False,
            "error": code,
            "message": message,
            "data": data or {}
        }


class ErrorCodes:
    """Error codes returned in response envelopes."""
    UNEXPECTED_EXCEPTION = "unexpected_exception"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"
    NONZERO_EXIT = "nonzero_exit"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
