"""
All configuration flags, options, settings to fine-tune the API client.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

In this library, they are called *"settings"* (plural).
Combined, they form a *"configuration"* (singular).

Some of the settings are optional, some are not (but all of them have
reasonable defaults). The settings are passed to the client explicitly;
there are no global or implicit settings::

    settings = kubetyped.ClientSettings()
    settings.watching.server_timeout = 300
    client = kubetyped.APIClient(info, settings=settings)
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout (in seconds) for all one-shot API calls: get, create, list, etc.

    The watch-streams have their own timeouts (see `WatchingSettings`).
    """

    connect_timeout: Optional[float] = None
    """
    A timeout (in seconds) for establishing a connection to the API server.

    If not set, only the total timeout of the request applies.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as requested from the server.
    Passed as ``timeoutSeconds`` unless the listing params have their own one.
    The server closes the stream gracefully when it is over.
    """

    client_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as enforced by the client.
    When reached, the stream ends with a network error (unlike the server-side
    timeout). It is a safeguard for the connections that are silently gone.
    """

    connect_timeout: Optional[float] = None
    """
    The maximum duration of connecting before the streaming request fails.
    If not set, the networking's connect timeout is used, then the request one.
    """

    chunk_size: int = 1024 * 1024
    """
    The size of chunks (in bytes) to read from the stream at once.
    Big objects (secrets, configmaps) can be much longer than one chunk;
    this only affects how many iterations are needed to read them.
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
