from __future__ import annotations

import os
import time
import dataclasses
from typing import Union
from typing_extensions import Literal, override

import httpx

DEFAULT_TIMEOUT = httpx.Timeout(timeout=30.0, connect=5.0)
DEFAULT_USER_AGENT = "apibinding-python/0.1.0"
DEFAULT_REGISTRATION_ID = "facebook"
EXPIRY_BUFFER_SECONDS = 300


class NotGiven:
    """Sentinel for an omitted argument where ``None`` is a meaningful value.

    ``timeout=None`` disables the timeout, ``timeout=NOT_GIVEN`` keeps the
    binding's default.
    """

    def __bool__(self) -> Literal[False]:
        return False

    @override
    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN = NotGiven()

Timeout = Union[float, httpx.Timeout]


@dataclasses.dataclass(frozen=True)
class AccessToken:
    value: str
    token_type: str = "bearer"
    expires_at: float | None = None
    scopes: tuple[str, ...] = ()

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.time() + EXPIRY_BUFFER_SECONDS >= self.expires_at

    @classmethod
    def from_token_response(cls, data: dict[str, object]) -> AccessToken:
        expires_in = data.get("expires_in")
        expires_at = time.time() + int(str(expires_in)) if expires_in is not None else None
        scope = str(data.get("scope", ""))
        return cls(
            value=str(data["access_token"]),
            token_type=str(data.get("token_type", "bearer")),
            expires_at=expires_at,
            scopes=tuple(scope.split()),
        )

    @override
    def __repr__(self) -> str:
        # keep the credential out of tracebacks and logs
        return f"AccessToken(token_type={self.token_type!r}, expires_at={self.expires_at!r}, scopes={self.scopes!r})"


@dataclasses.dataclass(frozen=True)
class ProviderIdentity:
    registration_id: str
    principal_name: str


@dataclasses.dataclass(frozen=True)
class AuthorizedClient:
    identity: ProviderIdentity
    access_token: AccessToken


@dataclasses.dataclass
class ProviderRegistration:
    registration_id: str = DEFAULT_REGISTRATION_ID
    client_id: str = ""
    client_secret: str = dataclasses.field(default="", repr=False)
    scopes: tuple[str, ...] = ()
    api_base_url: str | None = None

    @classmethod
    def from_env(cls, registration_id: str = DEFAULT_REGISTRATION_ID) -> ProviderRegistration:
        """Load a provider registration from ``<ID>_*`` environment variables.

        Reads ``<ID>_CLIENT_ID``, ``<ID>_CLIENT_SECRET``, ``<ID>_SCOPES`` (comma
        or whitespace separated) and ``<ID>_API_BASE_URL``, where ``<ID>`` is
        the upper-cased registration id.
        """
        prefix = registration_id.upper().replace("-", "_")
        raw_scopes = os.environ.get(f"{prefix}_SCOPES", "")
        scopes = tuple(s for s in raw_scopes.replace(",", " ").split() if s)
        return cls(
            registration_id=registration_id,
            client_id=os.environ.get(f"{prefix}_CLIENT_ID", ""),
            client_secret=os.environ.get(f"{prefix}_CLIENT_SECRET", ""),
            scopes=scopes,
            api_base_url=os.environ.get(f"{prefix}_API_BASE_URL") or None,
        )


@dataclasses.dataclass(frozen=True)
class Authorized:
    token: str = dataclasses.field(repr=False)


@dataclasses.dataclass(frozen=True)
class Unauthorized:
    pass


BindingState = Union[Authorized, Unauthorized]


def state_for(token: str | AccessToken | None) -> BindingState:
    """Resolve a token (or its absence) to the binding state it produces.

    An empty token value counts as absent.
    """
    if isinstance(token, AccessToken):
        token = token.value
    if not token:
        return Unauthorized()
    return Authorized(token)
