import logging
from typing import Any, AsyncIterator, List

import aresponses as aresponses_module
import pytest

from kubetyped._cogs.clients.api import APIClient
from kubetyped._cogs.clients.requests import RequestDescriptor
from kubetyped._cogs.configs.configuration import ClientSettings
from kubetyped._cogs.helpers.loggers import _KubetypedStreamHandler
from kubetyped._cogs.structs.credentials import ConnectionInfo
from kubetyped._cogs.structs.references import Resource


def pytest_configure(config):
    # Unexpected warnings should fail the tests. Use `-Wignore` to explicitly disable it.
    config.addinivalue_line('filterwarnings', 'error')

    # Warnings from the testing tools out of our control should not fail the tests.
    config.addinivalue_line('filterwarnings', 'ignore::DeprecationWarning:aresponses')
    config.addinivalue_line('filterwarnings', 'ignore:The loop argument:DeprecationWarning:aiohttp')


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubetyped.tests')


@pytest.fixture(params=[True, False], ids=['namespaced', 'cluster'])
def resource(request):
    return Resource('kubetyped.dev', 'v1', 'kubetypedexamples', namespaced=request.param)


@pytest.fixture()
def namespace(resource):
    return 'ns1' if resource.namespaced else None


@pytest.fixture(autouse=True)
def _clean_logging_handlers():
    """ Remove the handlers added by the CLI runs, which stream into the closed streams. """
    yield
    root = logging.getLogger()
    root.handlers[:] = [h for h in root.handlers if not isinstance(h, _KubetypedStreamHandler)]


#
# Mocks for the API server. The unit-tests must be fully isolated from the environment:
# no external calls must be made under any circumstances.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
async def aresponses():
    """ The same as the plugin's fixture, but bound to the current running loop. """
    async with aresponses_module.ResponsesMockServer() as server:
        yield server


@pytest.fixture()
def fake_info(hostname):
    return ConnectionInfo(server=f'http://{hostname}', default_namespace='default')


@pytest.fixture()
async def fake_client(fake_info, settings, aresponses):
    client = APIClient(fake_info, settings=settings)
    try:
        yield client
    finally:
        await client.close()


class StubTransport:
    """
    A transport with the pre-scripted responses, which records the requests.

    The responses are returned in order; the exceptions among them are raised.
    The frames are streamed for every watch request; the exceptions are raised
    in place. The number of the released streams is counted.
    """

    def __init__(self, settings: ClientSettings) -> None:
        super().__init__()
        self.settings = settings
        self.default_namespace = None
        self.requests: List[RequestDescriptor] = []
        self.responses: List[Any] = []
        self.frames: List[Any] = []
        self.released = 0

    def _respond(self) -> Any:
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def request(self, descriptor: RequestDescriptor) -> Any:
        self.requests.append(descriptor)
        return self._respond()

    async def request_status(self, descriptor: RequestDescriptor) -> Any:
        self.requests.append(descriptor)
        return self._respond()

    async def request_events(self, descriptor: RequestDescriptor) -> AsyncIterator[bytes]:
        self.requests.append(descriptor)
        try:
            for frame in self.frames:
                if isinstance(frame, BaseException):
                    raise frame
                yield frame
        finally:
            self.released += 1


@pytest.fixture()
def transport(settings):
    return StubTransport(settings)
