"""
Authentication-related structures.

A minimally sufficient data structure is introduced to bring all
the credentials together in a structured and type-annotated way.

The "rudimentary" is defined as the information passed to the HTTP protocol
and TCP/SSL connection only, i.e. everything usable in a generic HTTP client,
and nothing more than that:

* TCP server host & port.
* SSL verification/ignorance flag.
* SSL certificate authority.
* SSL client certificate and its private key.
* HTTP ``Authorization: Basic username:password``.
* HTTP ``Authorization: Bearer token`` (or other schemes: Bearer, Digest, etc).
* URL's default namespace for the cases when this is implied.

.. seealso::
    :mod:`piggybacking` for loading these from the usual places.
"""
import dataclasses
from typing import Optional, Union

import aiohttp


class LoginError(Exception):
    """ Raised when the credentials cannot be loaded or are not usable. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[bytes] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[bytes] = None
    default_namespace: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class AiohttpSession:
    """
    A pre-configured session to use as is, e.g. with custom auth or connectors.

    The session is owned by the caller: it is not closed by the client.
    """
    aiohttp_session: aiohttp.ClientSession
    server: str
    default_namespace: Optional[str] = None


KubeContext = Union[ConnectionInfo, AiohttpSession]
