"""
Resolving the ambiguous results of the deletions.

The deletion can return either the deleted object (or the list of them for the
collections), or a ``Status`` -- depending on the server's behaviour: e.g.,
if the object is deleted immediately, or if the deletion is pending due to the
finalizers or graceful termination. The call site cannot know which one it is.

The decision is made by the shape of the returned body, never by the HTTP
status code alone: the bodies with ``kind: Status`` are statuses; everything
else is an object if it can be decoded as such, and a status if not.
"""
import collections.abc
import dataclasses
from typing import Callable, Generic, TypeVar, Union

from kubetyped._cogs.clients import errors
from kubetyped._cogs.structs import bodies

_T = TypeVar('_T')


@dataclasses.dataclass(frozen=True)
class ObjectReturned(Generic[_T]):
    """ The deletion returned the deleted object(s). """
    object: _T


@dataclasses.dataclass(frozen=True)
class StatusReturned:
    """ The deletion returned a status of the operation instead of an object. """
    status: bodies.Status


DeletionOutcome = Union[ObjectReturned[_T], StatusReturned]


def resolve_deletion(
        raw: object,
        decode: Callable[[object], _T],
) -> "DeletionOutcome[_T]":
    """
    Tag the deletion's response as either an object or a status.

    The decoder is expected to raise `DecodeError` if the data do not fit.
    """
    if isinstance(raw, collections.abc.Mapping) and raw.get('kind') == 'Status':
        return StatusReturned(bodies.Status.from_raw(raw))

    try:
        return ObjectReturned(decode(raw))
    except errors.DecodeError as object_error:
        try:
            status = bodies.Status.from_raw(raw)
        except errors.DecodeError:
            raise object_error
        return StatusReturned(status)
