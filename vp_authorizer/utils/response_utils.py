"""
Response utilities for Lambda invocations.
"""
import json
from typing import Any, Dict, Optional

from vp_authorizer.errors import (
    AuthorizerError,
    CanaryError,
    ConflictError,
    RetryableError,
    StoreError,
)


def status_for_error(exc: BaseException) -> int:
    """Map an exception to the HTTP-style status returned by the handler."""
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, RetryableError):
        return 503
    if isinstance(exc, CanaryError):
        return 422
    if isinstance(exc, StoreError):
        return 500
    if isinstance(exc, AuthorizerError):
        return 400
    return 500


def build_response(data: Any = None, *, status: int = 200, error: Optional[str] = None,
                   details: Any = None) -> Dict[str, Any]:
    """
    Build a standard response with a JSON body.
    """
    if error:
        body = {"error": error}
        if details is not None:
            body["details"] = details
        if status == 200:
            status = 400
    else:
        body = data or {}

    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }
