from __future__ import annotations

import inspect
import dataclasses
from typing import Union, Callable, Iterator, AsyncIterator
from contextlib import contextmanager, asynccontextmanager

import httpx

from ._logs import get_logger
from ._types import (
    DEFAULT_TIMEOUT,
    DEFAULT_REGISTRATION_ID,
    Timeout,
    AccessToken,
    ProviderIdentity,
    ProviderRegistration,
)
from ._binding import ApiBinding, AsyncApiBinding
from ._exceptions import LookupFailureError
from ._token_storage import TokenStore, AsyncTokenStore

log = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class OAuth2Authentication:
    """A principal that logged in through an external OAuth2 provider."""

    registration_id: str
    principal_name: str

    @property
    def identity(self) -> ProviderIdentity:
        return ProviderIdentity(self.registration_id, self.principal_name)


@dataclasses.dataclass(frozen=True)
class LocalAuthentication:
    """A principal authenticated by the hosting application itself."""

    principal_name: str


Authentication = Union[OAuth2Authentication, LocalAuthentication, None]


def resolve_identity(authentication: Authentication, registration_id: str) -> ProviderIdentity | None:
    """Return the identity to look up, or ``None`` when no token can apply.

    Anonymous and locally authenticated principals have no provider token,
    and a token issued by a different provider is never used for this one.
    """
    if not isinstance(authentication, OAuth2Authentication):
        return None
    if authentication.registration_id != registration_id:
        log.debug(
            "factory.registration_mismatch",
            expected=registration_id,
            actual=authentication.registration_id,
        )
        return None
    return authentication.identity


class BindingFactory:
    """Build a fresh ``ApiBinding`` for each unit of work.

    Missing authorization never raises here. The binding it returns is
    unauthorized and fails at first use instead.
    """

    def __init__(
        self,
        token_store: TokenStore,
        registration_id: str = DEFAULT_REGISTRATION_ID,
        *,
        base_url: str | httpx.URL,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        transport_factory: Callable[[], httpx.BaseTransport] | None = None,
    ) -> None:
        self._token_store = token_store
        self._registration_id = registration_id
        self._base_url = base_url
        self._timeout = timeout
        self._transport_factory = transport_factory

    @classmethod
    def from_registration(
        cls,
        token_store: TokenStore,
        registration: ProviderRegistration,
        *,
        base_url: str | httpx.URL | None = None,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        transport_factory: Callable[[], httpx.BaseTransport] | None = None,
    ) -> BindingFactory:
        url = base_url or registration.api_base_url
        if not url:
            raise ValueError(f"No API base URL configured for registration {registration.registration_id!r}")
        return cls(
            token_store,
            registration.registration_id,
            base_url=url,
            timeout=timeout,
            transport_factory=transport_factory,
        )

    @property
    def registration_id(self) -> str:
        return self._registration_id

    def lookup_token(self, authentication: Authentication) -> AccessToken | None:
        identity = resolve_identity(authentication, self._registration_id)
        if identity is None:
            return None

        log.debug("factory.lookup", registration_id=identity.registration_id)
        try:
            return self._token_store.lookup(identity.registration_id, identity.principal_name)
        except LookupFailureError:
            raise
        except Exception as e:
            raise LookupFailureError(f"Token lookup failed: {e}") from e

    def __call__(self, authentication: Authentication) -> ApiBinding:
        token = self.lookup_token(authentication)
        return ApiBinding(
            token,
            base_url=self._base_url,
            timeout=self._timeout,
            transport_factory=self._transport_factory,
        )


class AsyncBindingFactory:
    """Async counterpart of ``BindingFactory``.

    Accepts either a ``TokenStore`` or an ``AsyncTokenStore``.
    """

    def __init__(
        self,
        token_store: TokenStore | AsyncTokenStore,
        registration_id: str = DEFAULT_REGISTRATION_ID,
        *,
        base_url: str | httpx.URL,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        transport_factory: Callable[[], httpx.AsyncBaseTransport] | None = None,
    ) -> None:
        self._token_store = token_store
        self._registration_id = registration_id
        self._base_url = base_url
        self._timeout = timeout
        self._transport_factory = transport_factory

    @classmethod
    def from_registration(
        cls,
        token_store: TokenStore | AsyncTokenStore,
        registration: ProviderRegistration,
        *,
        base_url: str | httpx.URL | None = None,
        timeout: Timeout | None = DEFAULT_TIMEOUT,
        transport_factory: Callable[[], httpx.AsyncBaseTransport] | None = None,
    ) -> AsyncBindingFactory:
        url = base_url or registration.api_base_url
        if not url:
            raise ValueError(f"No API base URL configured for registration {registration.registration_id!r}")
        return cls(
            token_store,
            registration.registration_id,
            base_url=url,
            timeout=timeout,
            transport_factory=transport_factory,
        )

    @property
    def registration_id(self) -> str:
        return self._registration_id

    async def lookup_token(self, authentication: Authentication) -> AccessToken | None:
        identity = resolve_identity(authentication, self._registration_id)
        if identity is None:
            return None

        log.debug("factory.lookup", registration_id=identity.registration_id)
        try:
            result = self._token_store.lookup(identity.registration_id, identity.principal_name)
            if inspect.isawaitable(result):
                result = await result
            return result
        except LookupFailureError:
            raise
        except Exception as e:
            raise LookupFailureError(f"Token lookup failed: {e}") from e

    async def __call__(self, authentication: Authentication) -> AsyncApiBinding:
        token = await self.lookup_token(authentication)
        return AsyncApiBinding(
            token,
            base_url=self._base_url,
            timeout=self._timeout,
            transport_factory=self._transport_factory,
        )


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Everything one unit of work needs, passed explicitly to handlers."""

    authentication: Authentication
    binding: ApiBinding


@dataclasses.dataclass(frozen=True)
class AsyncRequestContext:
    authentication: Authentication
    binding: AsyncApiBinding


@contextmanager
def request_scope(factory: BindingFactory, authentication: Authentication) -> Iterator[RequestContext]:
    """Create a request context and close its binding when the request ends.

    >>> with request_scope(factory, OAuth2Authentication("facebook", "alice")) as ctx:
    ...     feed = Facebook(ctx.binding).get_feed()
    """
    binding = factory(authentication)
    try:
        yield RequestContext(authentication=authentication, binding=binding)
    finally:
        binding.close()


@asynccontextmanager
async def async_request_scope(
    factory: AsyncBindingFactory, authentication: Authentication
) -> AsyncIterator[AsyncRequestContext]:
    binding = await factory(authentication)
    try:
        yield AsyncRequestContext(authentication=authentication, binding=binding)
    finally:
        await binding.close()
