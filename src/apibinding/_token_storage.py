from __future__ import annotations

import os
import json
import threading
from typing import Any, Dict, cast
from pathlib import Path
from typing_extensions import Protocol, runtime_checkable

from ._logs import get_logger
from ._types import AccessToken, AuthorizedClient
from ._exceptions import TokenStorageError, LookupFailureError

log = get_logger(__name__)

_DEFAULT_TOKEN_PATH = os.path.join(os.path.expanduser("~"), ".apibinding", "authorized_clients.json")


@runtime_checkable
class TokenStore(Protocol):
    def lookup(self, registration_id: str, principal_name: str) -> AccessToken | None:
        """Return the access token on record for this principal, or ``None``.

        Raises ``LookupFailureError`` when the store itself cannot answer.
        """
        ...


@runtime_checkable
class AsyncTokenStore(Protocol):
    async def lookup(self, registration_id: str, principal_name: str) -> AccessToken | None: ...


def _key(registration_id: str, principal_name: str) -> str:
    return f"{registration_id}:{principal_name}"


class InMemoryTokenStore:
    """Process-local authorized clients, keyed by registration id and principal."""

    def __init__(self) -> None:
        self._clients: dict[str, AuthorizedClient] = {}
        self._lock = threading.Lock()

    def save(self, client: AuthorizedClient) -> None:
        with self._lock:
            self._clients[_key(client.identity.registration_id, client.identity.principal_name)] = client

    def remove(self, registration_id: str, principal_name: str) -> None:
        with self._lock:
            self._clients.pop(_key(registration_id, principal_name), None)

    def lookup(self, registration_id: str, principal_name: str) -> AccessToken | None:
        with self._lock:
            client = self._clients.get(_key(registration_id, principal_name))
        return client.access_token if client is not None else None


def _token_to_dict(token: AccessToken) -> dict[str, object]:
    return {
        "access_token": token.value,
        "token_type": token.token_type,
        "expires_at": token.expires_at,
        "scopes": list(token.scopes),
    }


def _token_from_dict(data: dict[str, Any]) -> AccessToken:
    expires_at = data.get("expires_at")
    return AccessToken(
        value=str(data["access_token"]),
        token_type=str(data.get("token_type", "bearer")),
        expires_at=float(expires_at) if expires_at is not None else None,
        scopes=tuple(str(s) for s in data.get("scopes", [])),
    )


class JsonFileTokenStore:
    """JSON file-based persistence of authorized clients."""

    def __init__(self, path: str | None = None) -> None:
        self._path = Path(path or _DEFAULT_TOKEN_PATH)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LookupFailureError(f"Failed to read token file: {e}") from e
        if not isinstance(data, dict):
            raise LookupFailureError("Failed to read token file: expected a JSON object")
        return cast(Dict[str, Any], data)

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.chmod(self._path, 0o600)
        except OSError as e:
            raise TokenStorageError(f"Failed to save tokens: {e}") from e

    def save(self, client: AuthorizedClient) -> None:
        """Save an authorized client; the file is written with 0600 permissions."""
        with self._lock:
            try:
                data = self._read()
            except LookupFailureError as e:
                raise TokenStorageError(f"Failed to save tokens: {e}") from e
            data[_key(client.identity.registration_id, client.identity.principal_name)] = _token_to_dict(
                client.access_token
            )
            self._write(data)
        log.debug("token_store.saved", registration_id=client.identity.registration_id)

    def lookup(self, registration_id: str, principal_name: str) -> AccessToken | None:
        with self._lock:
            entry = self._read().get(_key(registration_id, principal_name))
        if entry is None:
            return None
        try:
            return _token_from_dict(cast(Dict[str, Any], entry))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise LookupFailureError(f"Failed to load token: {e}") from e

    def remove(self, registration_id: str, principal_name: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(_key(registration_id, principal_name), None) is not None:
                self._write(data)

    def clear(self) -> None:
        """Delete the token file."""
        with self._lock:
            try:
                if self._path.exists():
                    self._path.unlink()
            except OSError as e:
                raise TokenStorageError(f"Failed to clear tokens: {e}") from e

    def exists(self) -> bool:
        return self._path.exists()


def load_token_from_env() -> AccessToken | None:
    """Load an access token from environment variables.

    Reads APIBINDING_ACCESS_TOKEN and the optional APIBINDING_TOKEN_EXPIRES_AT
    (unix timestamp).
    """
    value = os.environ.get("APIBINDING_ACCESS_TOKEN")
    if not value:
        return None

    expires_at_str = os.environ.get("APIBINDING_TOKEN_EXPIRES_AT")
    expires_at = float(expires_at_str) if expires_at_str else None

    return AccessToken(value=value, expires_at=expires_at)
