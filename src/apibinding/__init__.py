from ._logs import configure_logging as configure_logging
from ._types import (
    NOT_GIVEN as NOT_GIVEN,
    DEFAULT_TIMEOUT as DEFAULT_TIMEOUT,
    DEFAULT_REGISTRATION_ID as DEFAULT_REGISTRATION_ID,
    Timeout as Timeout,
    NotGiven as NotGiven,
    Authorized as Authorized,
    AccessToken as AccessToken,
    BindingState as BindingState,
    Unauthorized as Unauthorized,
    AuthorizedClient as AuthorizedClient,
    ProviderIdentity as ProviderIdentity,
    ProviderRegistration as ProviderRegistration,
)
from ._models import list_of as list_of, unwrap_envelope as unwrap_envelope
from ._binding import (
    ApiBinding as ApiBinding,
    RejectingAuth as RejectingAuth,
    AsyncApiBinding as AsyncApiBinding,
    BearerTokenAuth as BearerTokenAuth,
)
from ._factory import (
    Authentication as Authentication,
    RequestContext as RequestContext,
    BindingFactory as BindingFactory,
    LocalAuthentication as LocalAuthentication,
    AsyncRequestContext as AsyncRequestContext,
    AsyncBindingFactory as AsyncBindingFactory,
    OAuth2Authentication as OAuth2Authentication,
    request_scope as request_scope,
    async_request_scope as async_request_scope,
)
from ._exceptions import (
    APIError as APIError,
    NotFoundError as NotFoundError,
    RateLimitError as RateLimitError,
    ApiBindingError as ApiBindingError,
    BadRequestError as BadRequestError,
    TokenStorageError as TokenStorageError,
    UnauthorizedError as UnauthorizedError,
    DecodeFailureError as DecodeFailureError,
    LookupFailureError as LookupFailureError,
    InternalServerError as InternalServerError,
    PermissionDeniedError as PermissionDeniedError,
    RemoteRejectionError as RemoteRejectionError,
    TransportFailureError as TransportFailureError,
    TransportTimeoutError as TransportTimeoutError,
    AuthenticationRejectedError as AuthenticationRejectedError,
)
from ._token_storage import (
    TokenStore as TokenStore,
    AsyncTokenStore as AsyncTokenStore,
    JsonFileTokenStore as JsonFileTokenStore,
    InMemoryTokenStore as InMemoryTokenStore,
    load_token_from_env as load_token_from_env,
)

__version__ = "0.1.0"
