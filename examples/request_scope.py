# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "apibinding",
# ]
#
# [tool.uv.sources]
# apibinding = { path = "../", editable = true }
# ///

"""One binding per request, built from whoever is logged in.

The login callback stores the authorized client; every later request asks
the factory for a fresh binding scoped to that request. Principals without a
Facebook login get an unauthorized binding and are sent back to log in.

Usage:
    FACEBOOK_API_BASE_URL=https://graph.facebook.com/v2.12 uv run examples/request_scope.py
"""

import os
import dataclasses

from apibinding import (
    AccessToken,
    Authentication,
    BindingFactory,
    AuthorizedClient,
    ProviderIdentity,
    UnauthorizedError,
    JsonFileTokenStore,
    LocalAuthentication,
    OAuth2Authentication,
    ProviderRegistration,
    request_scope,
)
from apibinding.lib.facebook import DEFAULT_SCOPES, DEFAULT_BASE_URL, Facebook

store = JsonFileTokenStore()
registration = ProviderRegistration.from_env("facebook")
registration = dataclasses.replace(registration, scopes=registration.scopes or DEFAULT_SCOPES)
factory = BindingFactory.from_registration(store, registration, base_url=registration.api_base_url or DEFAULT_BASE_URL)

# What the OAuth2 login callback would do after the code exchange
token = os.environ.get("APIBINDING_ACCESS_TOKEN")
if token:
    store.save(AuthorizedClient(ProviderIdentity("facebook", "alice"), AccessToken(value=token)))


def handle_feed_request(authentication: Authentication) -> str:
    with request_scope(factory, authentication) as ctx:
        try:
            posts = Facebook(ctx.binding).get_feed()
        except UnauthorizedError:
            return f"302 -> /oauth2/authorization/facebook?scope={','.join(registration.scopes)}"
        return f"200 ({len(posts)} posts)"


print("alice (facebook):", handle_feed_request(OAuth2Authentication("facebook", "alice")))
print("bob (google):    ", handle_feed_request(OAuth2Authentication("google", "bob")))
print("carol (local):   ", handle_feed_request(LocalAuthentication("carol")))
