from __future__ import annotations

import json
from typing import Any, Mapping, TypeVar, Callable, Generator, overload
from types import TracebackType
from typing_extensions import Self, override

import httpx

from ._logs import get_logger
from ._types import (
    NOT_GIVEN,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    Timeout,
    NotGiven,
    AccessToken,
    Authorized,
    BindingState,
    state_for,
)
from ._exceptions import (
    DecodeFailureError,
    UnauthorizedError,
    TransportTimeoutError,
    TransportFailureError,
    status_error_for,
)

log = get_logger(__name__)

_T = TypeVar("_T")


class BearerTokenAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` to every request.

    Runs after the request headers are merged, so a caller-supplied
    ``Authorization`` header is always replaced.
    """

    def __init__(self, token: str) -> None:
        self._token = token

    @override
    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


class RejectingAuth(httpx.Auth):
    """Refuse every request before it reaches the transport."""

    @override
    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        log.debug("binding.rejected", method=request.method, url=str(request.url))
        raise UnauthorizedError()
        yield request  # pragma: no cover


def auth_for(state: BindingState) -> httpx.Auth:
    if isinstance(state, Authorized):
        return BearerTokenAuth(state.token)
    return RejectingAuth()


def _timeout_arg(timeout: Timeout | None | NotGiven) -> Any:
    if isinstance(timeout, NotGiven):
        return httpx.USE_CLIENT_DEFAULT
    return timeout


def _error_body(response: httpx.Response) -> object | None:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _process_response(
    request: httpx.Request,
    response: httpx.Response,
    cast_to: Callable[[object], Any] | None,
) -> Any:
    if not response.is_success:
        body = _error_body(response)
        log.debug("binding.remote_rejection", status_code=response.status_code, url=str(request.url))
        raise status_error_for(response, body)

    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise DecodeFailureError(
            f"Could not decode response body as JSON: {err}",
            request=request,
            body=response.text,
        ) from err

    if cast_to is None:
        return body
    try:
        return cast_to(body)
    except (KeyError, TypeError, ValueError) as err:
        raise DecodeFailureError(
            f"Unexpected response shape from {request.url.path}: {err}",
            request=request,
            body=body,
        ) from err


def _headers(default_headers: Mapping[str, str] | None) -> dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": DEFAULT_USER_AGENT}
    if default_headers:
        headers.update(default_headers)
    return headers


class ApiBinding:
    """An HTTP client bound to one access token, or deliberately to none.

    The request decoration rule is chosen once, at construction: an
    authorized binding attaches its bearer token to every request, an
    unauthorized one raises ``UnauthorizedError`` before anything is sent.
    Bindings are never mutated; use ``with_token`` to get a new one.
    """

    _state: BindingState
    _client: httpx.Client

    def __init__(
        self,
        token: str | AccessToken | None,
        *,
        base_url: str | httpx.URL,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        default_headers: Mapping[str, str] | None = None,
        transport_factory: Callable[[], httpx.BaseTransport] | None = None,
    ) -> None:
        self._state = state_for(token)
        self._timeout = timeout
        self._default_headers = dict(default_headers) if default_headers else None
        self._transport_factory = transport_factory
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth_for(self._state),
            timeout=timeout,
            headers=_headers(default_headers),
            transport=transport_factory() if transport_factory is not None else None,
        )
        log.debug("binding.created", authorized=self.is_authorized, base_url=str(self._client.base_url))

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def is_authorized(self) -> bool:
        return isinstance(self._state, Authorized)

    @property
    def base_url(self) -> httpx.URL:
        return self._client.base_url

    def with_token(self, token: str | AccessToken | None) -> ApiBinding:
        """Build a new binding with the same settings and a different token."""
        return ApiBinding(
            token,
            base_url=self._client.base_url,
            timeout=self._timeout,
            default_headers=self._default_headers,
            transport_factory=self._transport_factory,
        )

    @overload
    def get(
        self,
        path: str,
        *,
        cast_to: Callable[[object], _T],
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> _T: ...

    @overload
    def get(
        self,
        path: str,
        *,
        cast_to: None = None,
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> object: ...

    def get(
        self,
        path: str,
        *,
        cast_to: Callable[[object], Any] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> Any:
        """Issue one GET to ``base_url + path`` and return the decoded body.

        ``cast_to`` turns the decoded JSON into a result type; a ``KeyError``,
        ``TypeError`` or ``ValueError`` raised by it becomes a
        ``DecodeFailureError``. ``timeout`` overrides the binding's default
        for this call only.
        """
        request = self._client.build_request("GET", path, params=params, timeout=_timeout_arg(timeout))
        log.debug("binding.request", method=request.method, url=str(request.url))
        try:
            response = self._client.send(request)
        except httpx.TimeoutException as err:
            raise TransportTimeoutError(request=request) from err
        except httpx.TransportError as err:
            raise TransportFailureError(message=f"Connection error: {err}", request=request) from err

        return _process_response(request, response, cast_to)

    def close(self) -> None:
        self._client.close()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @override
    def __repr__(self) -> str:
        state = "authorized" if self.is_authorized else "unauthorized"
        return f"<{self.__class__.__name__} {state} base_url={str(self.base_url)!r}>"


class AsyncApiBinding:
    _state: BindingState
    _client: httpx.AsyncClient

    def __init__(
        self,
        token: str | AccessToken | None,
        *,
        base_url: str | httpx.URL,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        default_headers: Mapping[str, str] | None = None,
        transport_factory: Callable[[], httpx.AsyncBaseTransport] | None = None,
    ) -> None:
        self._state = state_for(token)
        self._timeout = timeout
        self._default_headers = dict(default_headers) if default_headers else None
        self._transport_factory = transport_factory
        self._client = httpx.AsyncClient(
            base_url=base_url,
            auth=auth_for(self._state),
            timeout=timeout,
            headers=_headers(default_headers),
            transport=transport_factory() if transport_factory is not None else None,
        )
        log.debug("binding.created", authorized=self.is_authorized, base_url=str(self._client.base_url))

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def is_authorized(self) -> bool:
        return isinstance(self._state, Authorized)

    @property
    def base_url(self) -> httpx.URL:
        return self._client.base_url

    def with_token(self, token: str | AccessToken | None) -> AsyncApiBinding:
        return AsyncApiBinding(
            token,
            base_url=self._client.base_url,
            timeout=self._timeout,
            default_headers=self._default_headers,
            transport_factory=self._transport_factory,
        )

    @overload
    async def get(
        self,
        path: str,
        *,
        cast_to: Callable[[object], _T],
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> _T: ...

    @overload
    async def get(
        self,
        path: str,
        *,
        cast_to: None = None,
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> object: ...

    async def get(
        self,
        path: str,
        *,
        cast_to: Callable[[object], Any] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: Timeout | None | NotGiven = NOT_GIVEN,
    ) -> Any:
        request = self._client.build_request("GET", path, params=params, timeout=_timeout_arg(timeout))
        log.debug("binding.request", method=request.method, url=str(request.url))
        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as err:
            raise TransportTimeoutError(request=request) from err
        except httpx.TransportError as err:
            raise TransportFailureError(message=f"Connection error: {err}", request=request) from err

        return _process_response(request, response, cast_to)

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @override
    def __repr__(self) -> str:
        state = "authorized" if self.is_authorized else "unauthorized"
        return f"<{self.__class__.__name__} {state} base_url={str(self.base_url)!r}>"
