from __future__ import annotations

import time

import httpx
import respx
import pytest

from apibinding import (
    AccessToken,
    ApiBinding,
    BindingFactory,
    AuthorizedClient,
    ProviderIdentity,
    UnauthorizedError,
    DecodeFailureError,
    InMemoryTokenStore,
    OAuth2Authentication,
    RemoteRejectionError,
    TransportFailureError,
    AuthenticationRejectedError,
    request_scope,
)
from apibinding.lib.facebook import DEFAULT_SCOPES, DEFAULT_BASE_URL, Post, Profile, Facebook, AsyncFacebook

POST_1 = {"id": "10_1", "message": "hello", "created_time": "2018-03-01T10:00:00+0000"}
POST_2 = {"id": "10_2", "story": "Alice shared a photo.", "created_time": "2018-03-02T10:00:00+0000"}


class TestModels:
    def test_profile_from_response(self) -> None:
        assert Profile.from_response({"id": "1", "name": "Alice"}) == Profile(id="1", name="Alice")

    def test_post_optional_fields(self) -> None:
        post = Post.from_response({"id": "10_3"})
        assert post == Post(id="10_3")

    def test_post_requires_id(self) -> None:
        with pytest.raises(KeyError):
            Post.from_response({"message": "orphan"})

    def test_default_scopes_cover_profile_and_feed(self) -> None:
        assert {"public_profile", "user_posts"} <= set(DEFAULT_SCOPES)


class TestFacebook:
    def test_feed_for_stored_principal(self) -> None:
        store = InMemoryTokenStore()
        store.save(AuthorizedClient(ProviderIdentity("facebook", "alice"), AccessToken(value="XYZ123")))
        factory = BindingFactory(store, "facebook", base_url=DEFAULT_BASE_URL)

        with respx.mock:
            route = respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(
                json={"data": [POST_1, POST_2], "paging": {"next": f"{DEFAULT_BASE_URL}/me/feed?after=abc"}}
            )
            with request_scope(factory, OAuth2Authentication("facebook", "alice")) as ctx:
                feed = Facebook(ctx.binding).get_feed()

        assert route.call_count == 1
        request = route.calls.last.request
        assert request.method == "GET"
        assert request.headers["Authorization"] == "Bearer XYZ123"
        assert feed == [Post.from_response(POST_1), Post.from_response(POST_2)]
        assert feed[0].message == "hello"
        assert feed[1].story == "Alice shared a photo."

    @respx.mock
    def test_get_profile(self) -> None:
        route = respx.get(f"{DEFAULT_BASE_URL}/me").respond(json={"id": "1", "name": "Alice"})
        with Facebook.from_token("tok") as facebook:
            assert facebook.get_profile() == Profile(id="1", name="Alice")
        assert route.calls.last.request.headers["Authorization"] == "Bearer tok"

    @respx.mock
    def test_get_friends_unwraps_envelope(self) -> None:
        respx.get(f"{DEFAULT_BASE_URL}/me/friends").respond(
            json={"data": [{"id": "2", "name": "Bob"}], "summary": {"total_count": 120}}
        )
        facebook = Facebook.from_token("tok")
        assert facebook.get_friends() == [Profile(id="2", name="Bob")]

    @respx.mock
    def test_empty_feed(self) -> None:
        respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json={"data": []})
        assert Facebook.from_token("tok").get_feed() == []

    @pytest.mark.parametrize(
        "body",
        [
            {"posts": []},
            {"data": {"id": "1"}},
            {"data": [{"message": "no id"}]},
            [POST_1],
        ],
    )
    @respx.mock
    def test_unexpected_envelope_is_decode_failure(self, body: object) -> None:
        respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json=body)
        with pytest.raises(DecodeFailureError):
            Facebook.from_token("tok").get_feed()

    def test_unauthorized_sends_nothing(self) -> None:
        with respx.mock(assert_all_called=False):
            routes = [
                respx.get(f"{DEFAULT_BASE_URL}/me").respond(json={"id": "1", "name": "Alice"}),
                respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json={"data": []}),
                respx.get(f"{DEFAULT_BASE_URL}/me/friends").respond(json={"data": []}),
            ]
            facebook = Facebook.from_token(None)
            for operation in (facebook.get_profile, facebook.get_feed, facebook.get_friends):
                with pytest.raises(UnauthorizedError):
                    operation()
            assert all(route.call_count == 0 for route in routes)

    @respx.mock
    def test_error_kinds_are_distinct(self) -> None:
        respx.get(f"{DEFAULT_BASE_URL}/me").respond(
            401, json={"error": {"message": "Error validating access token", "type": "OAuthException", "code": 190}}
        )
        respx.get(f"{DEFAULT_BASE_URL}/me/feed").mock(side_effect=httpx.ConnectError)
        respx.get(f"{DEFAULT_BASE_URL}/me/friends").respond(200, text="<!doctype html>")
        facebook = Facebook.from_token("expired")

        with pytest.raises(AuthenticationRejectedError) as rejected:
            facebook.get_profile()
        with pytest.raises(TransportFailureError) as unreachable:
            facebook.get_feed()
        with pytest.raises(DecodeFailureError) as garbled:
            facebook.get_friends()

        assert not isinstance(unreachable.value, RemoteRejectionError)
        assert not isinstance(garbled.value, (RemoteRejectionError, TransportFailureError))
        assert "Error validating access token" in rejected.value.message

    @respx.mock
    def test_per_operation_timeout(self) -> None:
        route = respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json={"data": []})
        Facebook.from_token("tok").get_feed(timeout=1.5)
        assert route.calls.last.request.extensions["timeout"]["read"] == 1.5

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIBINDING_ACCESS_TOKEN", "env-token")
        monkeypatch.setenv("APIBINDING_TOKEN_EXPIRES_AT", str(time.time() + 3600))
        facebook = Facebook.from_env()
        assert facebook.binding.is_authorized

    def test_from_env_without_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APIBINDING_ACCESS_TOKEN", raising=False)
        assert not Facebook.from_env().binding.is_authorized

    def test_wraps_existing_binding(self) -> None:
        binding = ApiBinding("tok", base_url="https://graph.example.test/v3.0")
        facebook = Facebook(binding)
        assert facebook.binding is binding
        assert str(facebook.binding.base_url) == "https://graph.example.test/v3.0/"


class TestAsyncFacebook:
    async def test_get_feed(self) -> None:
        async with respx.mock:
            route = respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json={"data": [POST_1, POST_2]})
            async with AsyncFacebook.from_token("XYZ123") as facebook:
                feed = await facebook.get_feed()
            assert route.calls.last.request.headers["Authorization"] == "Bearer XYZ123"
        assert [post.id for post in feed] == ["10_1", "10_2"]

    async def test_get_profile_and_friends(self) -> None:
        async with respx.mock:
            respx.get(f"{DEFAULT_BASE_URL}/me").respond(json={"id": "1", "name": "Alice"})
            respx.get(f"{DEFAULT_BASE_URL}/me/friends").respond(json={"data": [{"id": "2", "name": "Bob"}]})
            async with AsyncFacebook.from_token("tok") as facebook:
                assert await facebook.get_profile() == Profile(id="1", name="Alice")
                assert await facebook.get_friends() == [Profile(id="2", name="Bob")]

    async def test_unauthorized(self) -> None:
        async with respx.mock(assert_all_called=False):
            route = respx.get(f"{DEFAULT_BASE_URL}/me/feed").respond(json={"data": []})
            async with AsyncFacebook.from_token(None) as facebook:
                with pytest.raises(UnauthorizedError):
                    await facebook.get_feed()
            assert route.call_count == 0
