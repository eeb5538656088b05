"""
The main module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubetyped._cogs.clients.api import (
    APIClient,
)
from kubetyped._cogs.clients.auth import (
    APIContext,
)
from kubetyped._cogs.clients.deleting import (
    ObjectReturned,
    StatusReturned,
    DeletionOutcome,
    resolve_deletion,
)
from kubetyped._cogs.clients.errors import (
    ConfigError,
    SerializationError,
    DecodeError,
    APINetworkError,
    APIError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIValidationError,
)
from kubetyped._cogs.clients.piggybacking import (
    login_with_kubeconfig,
    login_with_service_account,
)
from kubetyped._cogs.clients.requests import (
    RequestBuilder,
    RequestDescriptor,
)
from kubetyped._cogs.clients.serializing import (
    RawPayload,
    ObjectPayload,
)
from kubetyped._cogs.clients.watching import (
    Added,
    Modified,
    Deleted,
    Errored,
    Bookmarked,
    WatchEvent,
    decode_event,
    decode_events,
)
from kubetyped._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    WatchingSettings,
)
from kubetyped._cogs.helpers.loggers import (
    LogFormat,
    ObjectLogger,
    configure as configure_logging,
)
from kubetyped._cogs.helpers.typedefs import (
    Logger,
)
from kubetyped._cogs.helpers.versions import (
    version as __version__,
)
from kubetyped._cogs.structs.bodies import (
    RawBody,
    RawMeta,
    RawList,
    RawStatus,
    Status,
    ObjectList,
)
from kubetyped._cogs.structs.codecs import (
    Codec,
    RawCodec,
    FunctionCodec,
)
from kubetyped._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
    AiohttpSession,
)
from kubetyped._cogs.structs.params import (
    ListParams,
    PostParams,
    DeleteParams,
    PatchParams,
    PatchStrategy,
    PropagationPolicy,
)
from kubetyped._cogs.structs.references import (
    Resource,
    guess_resource,
)
from kubetyped._core.apis.typed import (
    Api,
)

# The names of the errors as they are known in the API documentation.
NetworkError = APINetworkError
HttpStatusError = APIError

__all__ = [
    'APIClient',
    'APIContext',
    'ObjectReturned',
    'StatusReturned',
    'DeletionOutcome',
    'resolve_deletion',
    'ConfigError',
    'SerializationError',
    'DecodeError',
    'APINetworkError',
    'APIError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'APIValidationError',
    'NetworkError',
    'HttpStatusError',
    'login_with_kubeconfig',
    'login_with_service_account',
    'RequestBuilder',
    'RequestDescriptor',
    'RawPayload',
    'ObjectPayload',
    'Added',
    'Modified',
    'Deleted',
    'Errored',
    'Bookmarked',
    'WatchEvent',
    'decode_event',
    'decode_events',
    'ClientSettings',
    'NetworkingSettings',
    'WatchingSettings',
    'LogFormat',
    'ObjectLogger',
    'configure_logging',
    'Logger',
    '__version__',
    'RawBody',
    'RawMeta',
    'RawList',
    'RawStatus',
    'Status',
    'ObjectList',
    'Codec',
    'RawCodec',
    'FunctionCodec',
    'LoginError',
    'ConnectionInfo',
    'AiohttpSession',
    'ListParams',
    'PostParams',
    'DeleteParams',
    'PatchParams',
    'PatchStrategy',
    'PropagationPolicy',
    'Resource',
    'guess_resource',
    'Api',
]
