"""
Common response envelope helpers
"""
from typing import Any, Optional, Dict


def success_response(message: Optional[str] = None, **payload: Any) -> Dict[str, Any]:
    """
    Build a success envelope

    Args:
        message: optional human readable message
        **payload: keys merged into the envelope (e.g. report=..., cases=...)

    Returns:
        Success response dictionary
    """
    response = {"success": True}
    response.update(payload)

    if message:
        response["message"] = message

    return response


def error_response(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """
    Build an error envelope

    Args:
        message: human readable error message
        details: additional detail (omitted when None)

    Returns:
        Error response dictionary
    """
    response = {
        "success": False,
        "error": message,
    }

    if details is not None:
        response["details"] = details

    return response
