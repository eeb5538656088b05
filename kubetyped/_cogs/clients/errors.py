"""
K8s API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code in the library.
Hence, we have our own hierarchy of exceptions for K8s API errors.

Unlike in the operator-side code, the low-level errors (connectivity issues,
timeouts, truncated payloads) are not escalated as is: the typed handles promise
a closed set of failure kinds to their callers, so these errors are wrapped
into `APINetworkError`. The original errors of the client library are chained
as the causes of our own errors -- for better explainability in stack traces.

Some selected reasons of K8s API errors are made into their own classes,
so that they could be intercepted and handled by the callers. All other reasons
are raised as the base error class and are indistinguishable from each other
(except via the exception's fields).

Unlike the underlying client library's errors, the K8s API errors contain more
information about the reasons -- as provided by K8s API in its response bodies,
not guessed only by HTTP statuses alone.

The errors raised before any network activity (`ConfigError`,
`SerializationError`) are also here, so that all failures of the typed handles
can be imported from one place.
"""
import collections.abc
import json
from typing import Optional

import aiohttp

from kubetyped._cogs.structs import bodies


class ConfigError(ValueError):
    """ Raised when a request cannot be built: bad names, bad scopes, bad params. """


class SerializationError(Exception):
    """ Raised when a payload cannot be encoded; nothing is sent in that case. """


class DecodeError(Exception):
    """ Raised when a response does not match any of the expected shapes. """


class APINetworkError(Exception):
    """ Raised on transport-level failures: connections, timeouts, broken payloads. """


class APIError(Exception):

    def __init__(
            self,
            payload: Optional[bodies.RawStatus],
            *,
            status: int,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def reason(self) -> Optional[str]:
        return self._payload.get('reason') if self._payload else None

    @property
    def details(self) -> Optional[bodies.RawStatusDetails]:
        return self._payload.get('details') if self._payload else None


class APIUnauthorizedError(APIError):
    pass


class APIForbiddenError(APIError):
    pass


class APINotFoundError(APIError):
    pass


class APIConflictError(APIError):
    pass


class APIValidationError(APIError):
    pass


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Check for specialised K8s errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[bodies.RawStatus]
        try:
            payload = await response.json(content_type=None)
        except (json.JSONDecodeError, UnicodeDecodeError,
                aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
            payload = None

        # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
        if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
            payload = None

        cls = (
            APIUnauthorizedError if response.status == 401 else
            APIForbiddenError if response.status == 403 else
            APINotFoundError if response.status == 404 else
            APIConflictError if response.status == 409 else
            APIValidationError if response.status == 422 else
            APIError
        )

        # Raise the library-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise cls(payload, status=response.status) from e


async def parse_response(
        response: aiohttp.ClientResponse,
) -> object:
    """
    Check the response for errors, and either raise or return the parsed data.
    """
    await check_response(response)
    try:
        return await response.json(content_type=None)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"The response is not a valid JSON: {e}") from e
