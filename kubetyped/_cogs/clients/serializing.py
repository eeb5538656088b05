"""
Normalising the payloads of the write operations into bytes.

The writing operations (create, replace) accept either the typed objects,
which are encoded via the handle's codec, or the pre-encoded bytes,
which are sent as is -- e.g. when the payloads are prepared out of band
(rendered from templates, read from files, etc).

The payload is resolved to bytes before the request is even built,
so a non-encodable object fails with `SerializationError`
and no partial requests are sent.
"""
import json
from typing import Union

from typing_extensions import Protocol

from kubetyped._cogs.clients import errors
from kubetyped._cogs.structs import codecs


class Payload(Protocol):
    def produce_bytes(self) -> bytes: ...


class RawPayload:
    """ Pre-encoded bytes, passed through unchanged. Not type-safe. """

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        super().__init__()
        self.data = bytes(data)

    def produce_bytes(self) -> bytes:
        return self.data


class ObjectPayload:
    """ A typed object, encoded with the codec of the handle's resource kind. """

    def __init__(self, obj: object, codec: "codecs.Codec[object]") -> None:
        super().__init__()
        self.obj = obj
        self.codec = codec

    def produce_bytes(self) -> bytes:
        return serialize(self.obj, self.codec)


def serialize(obj: codecs.K, codec: "codecs.Codec[codecs.K]") -> bytes:
    raw = codecs.encode(codec, obj)
    try:
        return json.dumps(raw, allow_nan=False).encode('utf-8')
    except (TypeError, ValueError) as e:  # unsupported types, circular references, NaNs, etc.
        raise errors.SerializationError(f"Cannot serialize the object to JSON: {e}") from e


def as_payload(data: object, codec: "codecs.Codec[object]") -> Payload:
    if isinstance(data, (RawPayload, ObjectPayload)):
        return data
    elif isinstance(data, (bytes, bytearray, memoryview)):
        return RawPayload(data)
    else:
        return ObjectPayload(data, codec)
