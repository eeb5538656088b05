"""
The transport: executing the request descriptors over HTTP.

The client is shared by all the typed handles derived from it, and is used
by them read-only. It holds the session (via the API context) and the settings,
and nothing else: no per-request state is kept between the calls.

Three entry points are used by the handles:

* `APIClient.request` -- a one-shot call returning the parsed JSON body.
* `APIClient.request_status` -- the same, but the body can be either an object
  or a ``Status`` (the distinction is made by the caller, not here).
* `APIClient.request_events` -- a streaming call yielding the raw frames
  (newline-delimited lines) as they arrive.

No requests are retried: the first failure is escalated to the caller.
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Mapping, Optional

import aiohttp

from kubetyped._cogs.clients import auth, errors, piggybacking, requests
from kubetyped._cogs.configs import configuration
from kubetyped._cogs.helpers import typedefs
from kubetyped._cogs.structs import credentials

# The errors of the underlying library that mean the network/transport issues.
NETWORK_ERRORS = (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    what = f"{method.upper()} {url}"
    logger.debug(f"Requesting: {what}")
    try:
        response = await context.session.request(
            method=method,
            url=url,
            data=payload,
            headers=headers,
            timeout=timeout,
        )
    except NETWORK_ERRORS as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise errors.APINetworkError(f"Request failed: {what} -> {e!r}") from e

    context.track_response(response)
    try:
        await errors.check_response(response)  # but do not parse it!
    except NETWORK_ERRORS as e:
        response.close()
        raise errors.APINetworkError(f"Response failed: {what} -> {e!r}") from e
    return response


async def read_json(response: aiohttp.ClientResponse) -> Any:
    async with response:
        try:
            return await errors.parse_response(response)
        except NETWORK_ERRORS as e:
            raise errors.APINetworkError(f"Response reading failed: {e!r}") from e


async def stream(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
) -> AsyncIterator[bytes]:
    """
    Stream the raw lines of a long-lived response until it is closed.

    The response is closed when the stream is exhausted, when the consumer
    closes the generator (explicitly or by garbage-collecting it),
    or when the transport fails (which is escalated as a network error).
    """
    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )
    response = await request(
        method='get',
        url=url,
        headers=headers,
        context=context,
        settings=settings,
        logger=logger,
        timeout=aiohttp.ClientTimeout(
            total=settings.watching.client_timeout,
            sock_connect=connect_timeout,
        ),
    )
    try:
        async with response:
            async for line in iter_jsonlines(response.content, chunk_size=settings.watching.chunk_size):
                yield line
    except NETWORK_ERRORS as e:
        raise errors.APINetworkError(f"The stream is broken: {e!r}") from e


async def iter_jsonlines(
        content: aiohttp.StreamReader,
        chunk_size: int = 1024 * 1024,
) -> AsyncIterator[bytes]:
    """
    Iterate line by line over the response's content.

    Usage::

        async for line in iter_jsonlines(response.content):
            pass

    This is an equivalent of::

        async for line in response.content:
            pass

    Except that the aiohttp's line iteration fails if the accumulated buffer
    length is above 2**17 bytes, i.e. 128 KB (`aiohttp.streams.DEFAULT_LIMIT`
    for the buffer's low-watermark, multiplied by 2 for the high-watermark).
    Kubernetes secrets and other fields can be much longer, up to MBs in length.
    """

    # Minimize the memory footprint by keeping at most 2 copies of a yielded line in memory
    # (in the buffer and as a yielded value), and at most 1 copy of other lines (in the buffer).
    buffer = b''
    async for data in content.iter_chunked(chunk_size):
        buffer += data
        del data

        start = 0
        index = buffer.find(b'\n', start)
        while index >= 0:
            line = buffer[start:index]
            if line.strip():
                yield line
            del line
            start = index + 1
            index = buffer.find(b'\n', start)

        if start > 0:
            buffer = buffer[start:]

    if buffer.strip():
        yield buffer


class APIClient:
    """
    A shared HTTP client for all the typed handles of one API server.

    The session is created lazily on the first request (so that the client
    can be created outside of the event loop), and is closed with the client::

        async with kubetyped.APIClient.from_kubeconfig() as client:
            pods = kubetyped.Api.pods(client).within('default')
            pod = await pods.get('my-pod')
    """

    def __init__(
            self,
            info: credentials.KubeContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.info = info
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.logger: typedefs.Logger = logger if logger is not None else logging.getLogger(__name__)
        self._context: Optional[auth.APIContext] = None

    @classmethod
    def from_kubeconfig(cls, **kwargs: Any) -> "APIClient":
        info = piggybacking.login_with_kubeconfig()
        if info is None:
            raise credentials.LoginError("No kubeconfig is found.")
        return cls(info, **kwargs)

    @classmethod
    def from_service_account(cls, **kwargs: Any) -> "APIClient":
        info = piggybacking.login_with_service_account()
        if info is None:
            raise credentials.LoginError("No service account is found.")
        return cls(info, **kwargs)

    @property
    def default_namespace(self) -> Optional[str]:
        return self.info.default_namespace

    @property
    def context(self) -> auth.APIContext:
        if self._context is None:
            self._context = auth.APIContext(self.info)
        return self._context

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def request(self, descriptor: requests.RequestDescriptor) -> Any:
        response = await request(
            method=descriptor.method,
            url=descriptor.url,
            payload=descriptor.body,
            headers=descriptor.headers,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return await read_json(response)

    async def request_status(self, descriptor: requests.RequestDescriptor) -> Any:
        # The same as a regular request: the payload's shape is resolved by the caller.
        return await self.request(descriptor)

    async def request_events(self, descriptor: requests.RequestDescriptor) -> AsyncIterator[bytes]:
        if descriptor.method.lower() != 'get':
            raise errors.ConfigError(f"Only GET requests can be streamed, got {descriptor.method}.")
        async for line in stream(
            url=descriptor.url,
            headers=descriptor.headers,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        ):
            yield line
