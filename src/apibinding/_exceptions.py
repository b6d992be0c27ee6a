from __future__ import annotations

from typing import Any
from typing_extensions import Literal

import httpx

__all__ = [
    "ApiBindingError",
    "UnauthorizedError",
    "APIError",
    "TransportFailureError",
    "TransportTimeoutError",
    "RemoteRejectionError",
    "BadRequestError",
    "AuthenticationRejectedError",
    "PermissionDeniedError",
    "NotFoundError",
    "RateLimitError",
    "InternalServerError",
    "DecodeFailureError",
    "TokenStorageError",
    "LookupFailureError",
]


class ApiBindingError(Exception):
    pass


class UnauthorizedError(ApiBindingError):
    """The binding holds no access token.

    Raised before any bytes are sent. Hosting code usually answers this by
    sending the user back through login.
    """

    def __init__(self, message: str = "No access token is bound; refusing to send an unauthenticated request.") -> None:
        super().__init__(message)
        self.message = message


class APIError(ApiBindingError):
    message: str
    request: httpx.Request

    def __init__(self, message: str, request: httpx.Request) -> None:
        super().__init__(message)
        self.message = message
        self.request = request


class TransportFailureError(APIError):
    """The remote API could not be reached."""

    def __init__(self, *, message: str = "Connection error.", request: httpx.Request) -> None:
        super().__init__(message, request)


class TransportTimeoutError(TransportFailureError):
    def __init__(self, request: httpx.Request) -> None:
        super().__init__(message="Request timed out.", request=request)


class RemoteRejectionError(APIError):
    """The remote API answered with a non-success status."""

    response: httpx.Response
    status_code: int
    body: object | None

    def __init__(self, message: str, *, response: httpx.Response, body: object | None) -> None:
        super().__init__(message, response.request)
        self.response = response
        self.status_code = response.status_code
        self.body = body


class BadRequestError(RemoteRejectionError):
    status_code: Literal[400] = 400  # pyright: ignore[reportIncompatibleVariableOverride]


class AuthenticationRejectedError(RemoteRejectionError):
    status_code: Literal[401] = 401  # pyright: ignore[reportIncompatibleVariableOverride]


class PermissionDeniedError(RemoteRejectionError):
    status_code: Literal[403] = 403  # pyright: ignore[reportIncompatibleVariableOverride]


class NotFoundError(RemoteRejectionError):
    status_code: Literal[404] = 404  # pyright: ignore[reportIncompatibleVariableOverride]


class RateLimitError(RemoteRejectionError):
    status_code: Literal[429] = 429  # pyright: ignore[reportIncompatibleVariableOverride]


class InternalServerError(RemoteRejectionError):
    pass


class DecodeFailureError(APIError):
    """The response body did not have the expected structure."""

    body: object | None

    def __init__(self, message: str, *, request: httpx.Request, body: object | None = None) -> None:
        super().__init__(message, request)
        self.body = body


class TokenStorageError(ApiBindingError):
    pass


class LookupFailureError(TokenStorageError):
    """The token store itself failed.

    Distinct from "no token on record", which is a plain ``None`` result.
    """


def status_error_for(response: httpx.Response, body: Any) -> RemoteRejectionError:
    """Map a non-success response to the matching ``RemoteRejectionError`` subclass."""
    message = _error_message(response, body)
    status = response.status_code

    if status == 400:
        return BadRequestError(message, response=response, body=body)
    if status == 401:
        return AuthenticationRejectedError(message, response=response, body=body)
    if status == 403:
        return PermissionDeniedError(message, response=response, body=body)
    if status == 404:
        return NotFoundError(message, response=response, body=body)
    if status == 429:
        return RateLimitError(message, response=response, body=body)
    if status >= 500:
        return InternalServerError(message, response=response, body=body)
    return RemoteRejectionError(message, response=response, body=body)


def _error_message(response: httpx.Response, body: Any) -> str:
    # Graph-style APIs nest the detail under {"error": {"message": ...}}
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"Error code: {response.status_code} - {error['message']}"
        if isinstance(error, str):
            return f"Error code: {response.status_code} - {error}"
    return f"Error code: {response.status_code}"
