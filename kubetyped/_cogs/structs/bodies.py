"""
All the structures coming from/to the Kubernetes API.

Everything marked "raw" is plain unwrapped unprocessed data as JSON-decoded
from Kubernetes API, as retrieved in watching or fetching API calls.
"Input" is a parsed watch-frame as is, before it is converted to typed events.
All non-used payload falls into `Any`, and is not type-checked.

The non-raw classes are the decoded forms handed to the callers:
the lists of typed objects with their list-level metadata, and the statuses
of operations that did not return an object.
"""
import collections.abc
import dataclasses
from typing import Any, Collection, Generic, Iterator, List, Mapping, Optional, TypeVar

from typing_extensions import Literal, TypedDict

# Make sure every kwarg has a corresponding same-named type in the root package.
Labels = Mapping[str, str]
Annotations = Mapping[str, str]

RawInputType = Literal['ADDED', 'MODIFIED', 'DELETED', 'ERROR', 'BOOKMARK']

_T = TypeVar('_T')


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawListMeta(TypedDict, total=False):
    resourceVersion: str
    remainingItemCount: int
    # "continue" is a keyword; it is accessed via .get('continue') only.


class RawList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawListMeta
    items: List[RawBody]


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict, total=False):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.19/#status-v1-meta
class RawStatus(TypedDict, total=False):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


# As received from the stream before any processing of the errors and special cases.
class RawInput(TypedDict, total=True):
    type: RawInputType
    object: Any


@dataclasses.dataclass(frozen=True)
class Status:
    """
    An outcome of an operation as reported by the server, not a domain object.

    Returned by deletions that did not return the deleted object, and carried
    by the error events of the watch-streams.
    """
    code: Optional[int] = None
    message: Optional[str] = None
    reason: Optional[str] = None
    status: Optional[str] = None
    details: Optional[Mapping[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.status == 'Success'

    @classmethod
    def from_raw(cls, raw: object) -> "Status":
        # Imported here: the errors depend on the raw structures of this module.
        from kubetyped._cogs.clients import errors

        if not isinstance(raw, collections.abc.Mapping):
            raise errors.DecodeError(f"A status must be a mapping, got {type(raw).__name__}.")
        if not any(key in raw for key in ['code', 'status', 'reason', 'message']):
            raise errors.DecodeError("A status has none of the known fields: code, status, reason, message.")
        code = raw.get('code')
        if code is not None and (isinstance(code, bool) or not isinstance(code, int)):
            raise errors.DecodeError(f"A status code must be an integer, got {code!r}.")
        for key in ['status', 'reason', 'message']:
            if raw.get(key) is not None and not isinstance(raw.get(key), str):
                raise errors.DecodeError(f"A status {key} must be a string, got {raw.get(key)!r}.")
        details = raw.get('details')
        if details is not None and not isinstance(details, collections.abc.Mapping):
            raise errors.DecodeError(f"Status details must be a mapping, got {details!r}.")
        return cls(
            code=code,
            message=raw.get('message'),
            reason=raw.get('reason'),
            status=raw.get('status'),
            details=details,
        )


@dataclasses.dataclass(frozen=True)
class ObjectList(Generic[_T]):
    """
    A page of objects as listed, with the list-level metadata.

    The resource version is the point in time of the listing, and is usable
    as the starting point of the watch-stream. The continuation token is set
    only if there are more pages to fetch with the same params.
    """
    items: List[_T]
    resource_version: Optional[str] = None
    continue_token: Optional[str] = None
    remaining_item_count: Optional[int] = None

    def __iter__(self) -> Iterator[_T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
