"""
Codecs between the raw JSON-decoded bodies and the typed objects.

A handle of a resource kind is generic over the type of its objects (``K``).
The type itself has no runtime presence; the codec is what makes it real:
it decodes the raw bodies into the objects and encodes them back.

The simplest codec is the raw one: the objects are the dicts as they come
from the API. For own classes (e.g. dataclasses with ``from_raw``/``to_raw``),
a function-based codec can be used::

    codec = FunctionCodec(decode=MyThing.from_raw, encode=MyThing.to_raw)
    things = Api.custom_resource(client, 'mythings', codec=codec)

Whatever the codec raises on the typical "the data do not fit" errors
is converted into our own errors (`DecodeError`/`SerializationError`).
"""
import collections.abc
from typing import Any, Callable, Generic, Mapping, TypeVar, cast

from typing_extensions import Protocol

from kubetyped._cogs.clients import errors
from kubetyped._cogs.structs import bodies

K = TypeVar('K')

# The errors which mean "the data do not fit", not "the code is broken".
CODEC_ERRORS = (LookupError, TypeError, ValueError, AttributeError)


class Codec(Protocol[K]):
    def decode(self, raw: bodies.RawBody) -> K: ...
    def encode(self, obj: K) -> bodies.RawBody: ...


class RawCodec:
    """ The objects are the raw mappings themselves (shallow-copied on decoding). """

    def decode(self, raw: bodies.RawBody) -> bodies.RawBody:
        if not isinstance(raw, collections.abc.Mapping):
            raise TypeError(f"An object must be a mapping, got {type(raw).__name__}.")
        return cast(bodies.RawBody, dict(raw))

    def encode(self, obj: bodies.RawBody) -> bodies.RawBody:
        if not isinstance(obj, collections.abc.Mapping):
            raise TypeError(f"An object must be a mapping, got {type(obj).__name__}.")
        return obj

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}()'


class FunctionCodec(Generic[K]):
    """ The objects are converted by the arbitrary functions, e.g. classmethods. """

    def __init__(
            self,
            *,
            decode: Callable[[bodies.RawBody], K],
            encode: Callable[[K], Mapping[str, Any]],
    ) -> None:
        super().__init__()
        self._decode = decode
        self._encode = encode

    def decode(self, raw: bodies.RawBody) -> K:
        return self._decode(raw)

    def encode(self, obj: K) -> bodies.RawBody:
        return cast(bodies.RawBody, self._encode(obj))

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(decode={self._decode!r}, encode={self._encode!r})'


def decode(codec: "Codec[K]", raw: object) -> K:
    try:
        return codec.decode(cast(bodies.RawBody, raw))
    except CODEC_ERRORS as e:
        raise errors.DecodeError(f"Cannot decode the object: {e!r}") from e


def encode(codec: "Codec[K]", obj: K) -> bodies.RawBody:
    try:
        return codec.encode(obj)
    except CODEC_ERRORS as e:
        raise errors.SerializationError(f"Cannot encode the object: {e!r}") from e


def decode_list(codec: "Codec[K]", raw: object) -> bodies.ObjectList[K]:
    """
    Decode a listing response into a list of objects with its metadata.

    The items of the lists usually have no ``kind`` & ``apiVersion``,
    so they are restored from the list's own ones (``PodList`` → ``Pod``).
    """
    if not isinstance(raw, collections.abc.Mapping):
        raise errors.DecodeError(f"A list must be a mapping, got {type(raw).__name__}.")
    if 'items' not in raw:
        raise errors.DecodeError(f"A list must have the items, got {raw!r}.")
    raw_items = raw.get('items') or []
    raw_meta = raw.get('metadata') or {}
    if not isinstance(raw_items, collections.abc.Sequence) or isinstance(raw_items, (str, bytes)):
        raise errors.DecodeError(f"List items must be a sequence, got {raw_items!r}.")
    if not isinstance(raw_meta, collections.abc.Mapping):
        raise errors.DecodeError(f"List metadata must be a mapping, got {raw_meta!r}.")

    kind = raw.get('kind')
    item_kind = kind[:-4] if isinstance(kind, str) and kind.endswith('List') else kind
    items = []
    for raw_item in raw_items:
        if isinstance(raw_item, collections.abc.MutableMapping):
            if item_kind is not None:
                raw_item.setdefault('kind', item_kind)
            if 'apiVersion' in raw:
                raw_item.setdefault('apiVersion', raw['apiVersion'])
        items.append(decode(codec, raw_item))

    return bodies.ObjectList(
        items=items,
        resource_version=raw_meta.get('resourceVersion'),
        continue_token=raw_meta.get('continue') or None,
        remaining_item_count=raw_meta.get('remainingItemCount'),
    )

