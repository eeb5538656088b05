"""
The aiohttp sessions of the clients, as made from the connection info.

A session is configured once per client: the server's CA, the client's
certificates, the token or basic auth. The typed handles never see it,
they only build the requests; the client executes them within the session.
"""
import base64
import contextlib
import ssl
import tempfile
from typing import Dict, List, Optional, Union

import aiohttp

from kubetyped._cogs.helpers import versions
from kubetyped._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the contextual info of the server.

    If the session was provided by the caller, it is not closed with the context:
    the caller owns it. The open responses are closed in both cases.
    """

    session: aiohttp.ClientSession
    server: str
    default_namespace: Optional[str]

    # Whether the session is created here and closed here (or provided by the caller).
    owned: bool

    # The streaming responses, which can outlive the requests that started them.
    responses: List[aiohttp.ClientResponse]

    def __init__(
            self,
            info: credentials.KubeContext,
    ) -> None:
        super().__init__()
        if isinstance(info, credentials.ConnectionInfo):
            self.session = make_session(info)
            self.owned = True
        elif isinstance(info, credentials.AiohttpSession):
            self.session = info.aiohttp_session
            self.owned = False
        else:
            raise TypeError(f"Unsupported credentials type: {info!r}")

        if self.session.headers.get('User-Agent') is None:
            self.session.headers['User-Agent'] = f'kubetyped/{versions.version or "unknown"}'

        self.server = info.server
        self.default_namespace = info.default_namespace
        self.responses = []

    def track_response(self, response: aiohttp.ClientResponse) -> None:
        self.responses[:] = [r for r in self.responses if not r.closed]
        if not response.closed:
            self.responses.append(response)

    async def close(self) -> None:
        # The responses go first: closing the session does not close them.
        for response in self.responses:
            if not response.closed:
                response.close()
        self.responses.clear()
        if self.owned:
            await self.session.close()


def make_session(info: credentials.ConnectionInfo) -> aiohttp.ClientSession:
    connector = aiohttp.TCPConnector(limit=0, ssl=make_ssl_context(info))
    return aiohttp.ClientSession(
        connector=connector,
        headers=make_auth_headers(info),
        auth=make_basic_auth(info),
    )


def make_ssl_context(info: credentials.ConnectionInfo) -> ssl.SSLContext:
    """
    Verify the server with the CA (if any), and identify with the client certificate (if any).

    The in-memory certificates & keys go through the temporary files, which exist
    only while the context loads them. Nothing is written if only the paths are known.
    """
    context = ssl.create_default_context(
        purpose=ssl.Purpose.SERVER_AUTH,
        cafile=info.ca_path,
        cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
    )

    with contextlib.ExitStack() as stack:
        cert_path = _materialize(stack, info.certificate_path, info.certificate_data)
        pkey_path = _materialize(stack, info.private_key_path, info.private_key_data)
        if cert_path and pkey_path:
            context.load_cert_chain(certfile=cert_path, keyfile=pkey_path)

    if info.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def make_auth_headers(info: credentials.ConnectionInfo) -> Dict[str, str]:
    if info.scheme and info.token:
        return {'Authorization': f'{info.scheme} {info.token}'}
    elif info.scheme:
        return {'Authorization': info.scheme}
    elif info.token:
        return {'Authorization': f'Bearer {info.token}'}
    else:
        return {}


def make_basic_auth(info: credentials.ConnectionInfo) -> Optional[aiohttp.BasicAuth]:
    if info.username and info.password:
        return aiohttp.BasicAuth(info.username, info.password)
    return None


def _materialize(
        stack: contextlib.ExitStack,
        path: Optional[str],
        data: Optional[Union[str, bytes]],
) -> Optional[str]:
    if path:
        return path
    elif data:
        file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
        file.write(decode_to_pem(data).encode('ascii'))
        return file.name
    else:
        return None


def decode_to_pem(data: Union[str, bytes]) -> str:
    if isinstance(data, str) and data.startswith('-----BEGIN '):
        return data
    elif isinstance(data, bytes) and data.startswith(b'-----BEGIN '):
        return data.decode('ascii')
    else:
        return base64.b64decode(data).decode('ascii')
