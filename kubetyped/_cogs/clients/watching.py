"""
Decoding the watch-streams into the typed events.

The watch-stream is a long-lived HTTP response with newline-delimited JSON
frames, each being an envelope with the event type and the object::

    {"type": "ADDED", "object": {"apiVersion": "v1", "kind": "Pod", ...}}
    {"type": "MODIFIED", "object": {...}}
    {"type": "ERROR", "object": {"kind": "Status", "code": 410, ...}}

Every valid frame becomes one typed event, in the order of arrival.
The events are produced lazily: the next frame is not even read from the
connection until the consumer asks for the next event.

The frames that cannot be decoded (broken JSON, unknown event types,
objects that do not fit the resource kind's codec) are dropped from the stream:
the consumer sees neither an event nor an error for them. They are logged
as warnings, so that the protocol or encoding issues are still noticeable.

The stream ends when the server closes it (e.g. on the server-side timeout).
The transport failures end it with `APINetworkError`. There are no reconnects
at this level: to continue watching, call the watch again with the last seen
resource version (e.g. from a bookmark or from the objects' metadata).
"""
import dataclasses
import json
import logging
from typing import AsyncGenerator, AsyncIterable, Callable, ClassVar, Generic, Optional, TypeVar, Union

from kubetyped._cogs.clients import errors
from kubetyped._cogs.helpers import typedefs
from kubetyped._cogs.structs import bodies

logger = logging.getLogger(__name__)

_T = TypeVar('_T')


@dataclasses.dataclass(frozen=True)
class Added(Generic[_T]):
    type: ClassVar[str] = 'ADDED'
    object: _T


@dataclasses.dataclass(frozen=True)
class Modified(Generic[_T]):
    type: ClassVar[str] = 'MODIFIED'
    object: _T


@dataclasses.dataclass(frozen=True)
class Deleted(Generic[_T]):
    type: ClassVar[str] = 'DELETED'
    object: _T


@dataclasses.dataclass(frozen=True)
class Errored:
    """
    An error reported by the server within the stream, not a transport failure.

    The most common one is "410 Gone": the requested resource version is too old.
    The stream usually ends after that, and should be restarted from a fresh listing.
    """
    type: ClassVar[str] = 'ERROR'
    status: bodies.Status


@dataclasses.dataclass(frozen=True)
class Bookmarked:
    """
    A progress mark of the stream: no changes, only a newer resource version.

    Only sent if requested by ``ListParams(allow_bookmarks=True)``.
    """
    type: ClassVar[str] = 'BOOKMARK'
    resource_version: Optional[str]


WatchEvent = Union[Added[_T], Modified[_T], Deleted[_T], Errored, Bookmarked]

OBJECT_EVENTS = {cls.type: cls for cls in [Added, Modified, Deleted]}


def decode_event(
        frame: bytes,
        decode: Callable[[object], _T],
) -> "WatchEvent[_T]":
    """
    Decode one frame of the stream, or fail with `DecodeError`.
    """
    try:
        raw_input = json.loads(frame.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise errors.DecodeError(f"The frame is not a valid JSON: {e}") from e

    if not isinstance(raw_input, dict):
        raise errors.DecodeError(f"The frame is not an object: {raw_input!r}")
    if 'type' not in raw_input or 'object' not in raw_input:
        raise errors.DecodeError(f"The frame has no type or no object: {raw_input!r}")

    raw_type = raw_input['type']
    raw_object = raw_input['object']
    if not isinstance(raw_type, str):
        raise errors.DecodeError(f"The frame's type is not a string: {raw_type!r}")
    if raw_type in OBJECT_EVENTS:
        return OBJECT_EVENTS[raw_type](decode(raw_object))
    elif raw_type == Errored.type:
        return Errored(bodies.Status.from_raw(raw_object))
    elif raw_type == Bookmarked.type:
        if not isinstance(raw_object, dict):
            raise errors.DecodeError(f"The bookmark is not an object: {raw_object!r}")
        metadata = raw_object.get('metadata') or {}
        if not isinstance(metadata, dict):
            raise errors.DecodeError(f"The bookmark's metadata is not an object: {metadata!r}")
        return Bookmarked(resource_version=metadata.get('resourceVersion'))
    else:
        raise errors.DecodeError(f"Unsupported event type: {raw_type!r}")


async def decode_events(
        frames: AsyncIterable[bytes],
        decode: Callable[[object], _T],
        *,
        logger: typedefs.Logger = logger,
) -> AsyncGenerator["WatchEvent[_T]", None]:
    """
    Convert the raw frames into the typed events, dropping the undecodable ones.

    When this generator is closed (or garbage-collected) by the consumer,
    the underlying frames' generator (and so the connection) is closed too.
    """
    iterator = frames.__aiter__()
    try:
        async for frame in iterator:
            try:
                event = decode_event(frame, decode)
            except errors.DecodeError as e:
                logger.warning(f"Dropping an undecodable frame of the watch-stream: {e}")
                continue
            yield event
    finally:
        aclose = getattr(iterator, 'aclose', None)
        if aclose is not None:
            await aclose()
