import asyncio
import logging

import pytest

from kubetyped._cogs.helpers.loggers import LogFormat, ObjectJsonFormatter, \
                                            _KubetypedStreamHandler, configure


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    asyncio_logger = logging.getLogger('asyncio')
    asyncio_handlers, asyncio_propagate = list(asyncio_logger.handlers), asyncio_logger.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    asyncio_logger.handlers[:] = asyncio_handlers
    asyncio_logger.propagate = asyncio_propagate


def _own_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, _KubetypedStreamHandler)]


@pytest.mark.parametrize('kwargs, level', [
    (dict(), logging.INFO),
    (dict(verbose=True), logging.DEBUG),
    (dict(debug=True), logging.DEBUG),
    (dict(quiet=True), logging.WARNING),
])
def test_levels(kwargs, level):
    configure(**kwargs)
    assert logging.getLogger().level == level


def test_reconfiguring_replaces_own_handlers():
    configure()
    configure(log_format=LogFormat.JSON)
    handlers = _own_handlers()
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, ObjectJsonFormatter)


def test_asyncio_is_silenced_unless_debugging():
    configure()
    assert logging.getLogger('asyncio').propagate is False
    configure(debug=True)
    assert logging.getLogger('asyncio').propagate is True
