from __future__ import annotations

from typing import Any
from types import TracebackType
from typing_extensions import Self

from ._types import DEFAULT_BASE_URL, Post, Profile
from ..._types import NOT_GIVEN, Timeout, NotGiven, AccessToken
from ..._models import list_of
from ..._binding import ApiBinding, AsyncApiBinding
from ..._token_storage import load_token_from_env


class Facebook:
    """Typed operations on the Facebook Graph API.

    Every call goes through the wrapped ``ApiBinding``, so an unauthorized
    binding raises ``UnauthorizedError`` before any request is sent.
    """

    def __init__(self, binding: ApiBinding) -> None:
        self._binding = binding

    @classmethod
    def from_token(cls, token: str | AccessToken | None, **kwargs: Any) -> Facebook:
        kwargs.setdefault("base_url", DEFAULT_BASE_URL)
        return cls(ApiBinding(token, **kwargs))

    @classmethod
    def from_env(cls, **kwargs: Any) -> Facebook:
        return cls.from_token(load_token_from_env(), **kwargs)

    @property
    def binding(self) -> ApiBinding:
        return self._binding

    def get_profile(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> Profile:
        return self._binding.get("/me", cast_to=Profile.from_response, timeout=timeout)

    def get_feed(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> list[Post]:
        """Posts on the user's feed, unwrapped from the ``data`` envelope."""
        return self._binding.get("/me/feed", cast_to=list_of(Post.from_response), timeout=timeout)

    def get_friends(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> list[Profile]:
        return self._binding.get("/me/friends", cast_to=list_of(Profile.from_response), timeout=timeout)

    def close(self) -> None:
        self._binding.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncFacebook:
    def __init__(self, binding: AsyncApiBinding) -> None:
        self._binding = binding

    @classmethod
    def from_token(cls, token: str | AccessToken | None, **kwargs: Any) -> AsyncFacebook:
        kwargs.setdefault("base_url", DEFAULT_BASE_URL)
        return cls(AsyncApiBinding(token, **kwargs))

    @classmethod
    def from_env(cls, **kwargs: Any) -> AsyncFacebook:
        return cls.from_token(load_token_from_env(), **kwargs)

    @property
    def binding(self) -> AsyncApiBinding:
        return self._binding

    async def get_profile(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> Profile:
        return await self._binding.get("/me", cast_to=Profile.from_response, timeout=timeout)

    async def get_feed(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> list[Post]:
        return await self._binding.get("/me/feed", cast_to=list_of(Post.from_response), timeout=timeout)

    async def get_friends(self, *, timeout: Timeout | None | NotGiven = NOT_GIVEN) -> list[Profile]:
        return await self._binding.get("/me/friends", cast_to=list_of(Profile.from_response), timeout=timeout)

    async def close(self) -> None:
        await self._binding.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
