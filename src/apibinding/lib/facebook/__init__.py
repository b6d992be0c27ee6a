from ._types import (
    DEFAULT_SCOPES as DEFAULT_SCOPES,
    DEFAULT_BASE_URL as DEFAULT_BASE_URL,
    Post as Post,
    Profile as Profile,
)
from ._client import Facebook as Facebook, AsyncFacebook as AsyncFacebook
