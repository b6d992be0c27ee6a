# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "apibinding",
# ]
#
# [tool.uv.sources]
# apibinding = { path = "../", editable = true }
# ///

"""Read the current user's Facebook feed with a token from the environment.

Usage:
    APIBINDING_ACCESS_TOKEN=... uv run examples/facebook_feed.py
"""

from apibinding import UnauthorizedError, RemoteRejectionError, configure_logging
from apibinding.lib.facebook import Facebook

configure_logging()

with Facebook.from_env() as facebook:
    try:
        profile = facebook.get_profile()
        feed = facebook.get_feed()
    except UnauthorizedError:
        print("No access token. Set APIBINDING_ACCESS_TOKEN and try again.")
    except RemoteRejectionError as err:
        # an expired or revoked token ends up here as a 401
        print(f"Facebook refused the request: {err.message}")
    else:
        print(f"Feed for {profile.name}:")
        for post in feed:
            print(f"  {post.created_time}  {post.message or post.story or ''}")
