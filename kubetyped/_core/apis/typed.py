"""
The typed handles of the resource kinds.

A handle binds three things together: the request builder (a resource kind
in a scope), the shared client (the transport), and the codec of the objects.
The handle is generic over the type of the objects (``K``), so the operations
return the typed objects, the typed lists, the typed deletion outcomes,
and the typed watch events::

    pods: Api[RawBody] = Api.pods(client).within('default')
    pod = await pods.get('my-pod')

    outcome = await pods.delete('my-pod', DeleteParams())
    if isinstance(outcome, ObjectReturned):
        print(f"Deleted: {outcome.object['metadata']['name']}")
    else:
        print(f"Deleting: {outcome.status.message}")

    listed = await pods.list(ListParams())
    async with contextlib.aclosing(pods.watch(ListParams(), listed.resource_version)) as events:
        async for event in events:
            ...

The handles hold no state besides their scope, and can be freely shared
between tasks. The scoping methods return new handles.
"""
import dataclasses
import logging
import warnings
from typing import Any, AsyncIterator, Generic, Optional, TypeVar, Union, cast

from typing_extensions import Protocol

from kubetyped._cogs.clients import deleting, requests, serializing, watching
from kubetyped._cogs.configs import configuration
from kubetyped._cogs.structs import bodies, codecs, params, references

logger = logging.getLogger(__name__)

K = TypeVar('K')

# The default codec: the objects are the raw dicts as they come from the API.
RAW_CODEC = cast("codecs.Codec[Any]", codecs.RawCodec())

# Either an object of the handle's type, or pre-encoded bytes (not type-safe).
Data = Union[K, bytes, bytearray, memoryview, serializing.RawPayload, serializing.ObjectPayload]


class Transport(Protocol):
    """ What is needed from the client by the handles. See `APIClient`. """
    settings: configuration.ClientSettings

    async def request(self, descriptor: requests.RequestDescriptor) -> object: ...
    async def request_status(self, descriptor: requests.RequestDescriptor) -> object: ...
    def request_events(self, descriptor: requests.RequestDescriptor) -> AsyncIterator[bytes]: ...


@dataclasses.dataclass(frozen=True)
class Api(Generic[K]):
    """
    A typed handle of a resource kind in a scope.
    """
    client: Transport
    builder: requests.RequestBuilder
    codec: "codecs.Codec[K]" = RAW_CODEC

    @classmethod
    def custom_resource(
            cls,
            client: Transport,
            plural: str,
            codec: "codecs.Codec[K]" = RAW_CODEC,
    ) -> "Api[K]":
        """
        A handle for a resource kind known only by its plural name.

        No schema or discovery is involved: the group & version are expected
        to be set via the scoping methods, e.g.
        ``Api.custom_resource(client, 'foos').group('example.com').version('v1')``.
        """
        return cls(client=client, builder=requests.RequestBuilder.custom_resource(plural), codec=codec)

    @classmethod
    def for_resource(
            cls,
            client: Transport,
            resource: references.Resource,
            codec: "codecs.Codec[K]" = RAW_CODEC,
    ) -> "Api[K]":
        return cls(client=client, builder=requests.RequestBuilder(resource=resource), codec=codec)

    @property
    def resource(self) -> references.Resource:
        return self.builder.resource

    @property
    def namespace(self) -> references.Namespace:
        return self.builder.namespace

    def within(self, namespace: str) -> "Api[K]":
        return dataclasses.replace(self, builder=self.builder.within(namespace))

    def group(self, group: str) -> "Api[K]":
        return dataclasses.replace(self, builder=self.builder.group(group))

    def version(self, version: str) -> "Api[K]":
        return dataclasses.replace(self, builder=self.builder.version(version))

    def _decode(self, raw: object) -> K:
        return codecs.decode(self.codec, raw)

    def _decode_list(self, raw: object) -> bodies.ObjectList[K]:
        return codecs.decode_list(self.codec, raw)

    async def get(self, name: str) -> K:
        req = self.builder.get(name)
        raw = await self.client.request(req)
        return self._decode(raw)

    async def create(self, pp: params.PostParams, data: Data[K]) -> K:
        payload = serializing.as_payload(data, self.codec).produce_bytes()
        req = self.builder.create(pp, payload)
        raw = await self.client.request(req)
        return self._decode(raw)

    async def replace(self, name: str, pp: params.PostParams, data: Data[K]) -> K:
        payload = serializing.as_payload(data, self.codec).produce_bytes()
        req = self.builder.replace(name, pp, payload)
        raw = await self.client.request(req)
        return self._decode(raw)

    async def patch(self, name: str, pp: params.PatchParams, patch: bytes) -> K:
        """
        Patch an object with a pre-encoded patch in the format of the params.

        Not type-safe: the patch's correctness is the caller's responsibility.
        """
        warnings.warn("Patching with raw bytes is not type-safe; "
                      "the patch's format is not verified.", DeprecationWarning, stacklevel=2)
        if not isinstance(patch, (bytes, bytearray, memoryview)):
            raise TypeError(f"Patches must be pre-encoded bytes, got {type(patch).__name__}.")
        req = self.builder.patch(name, pp, bytes(patch))
        raw = await self.client.request(req)
        return self._decode(raw)

    async def list(self, lp: params.ListParams) -> bodies.ObjectList[K]:
        req = self.builder.list(lp)
        raw = await self.client.request(req)
        return self._decode_list(raw)

    async def delete(self, name: str, dp: params.DeleteParams) -> "deleting.DeletionOutcome[K]":
        req = self.builder.delete(name, dp)
        raw = await self.client.request_status(req)
        return deleting.resolve_deletion(raw, self._decode)

    async def delete_collection(
            self,
            lp: params.ListParams,
    ) -> "deleting.DeletionOutcome[bodies.ObjectList[K]]":
        req = self.builder.delete_collection(lp)
        raw = await self.client.request_status(req)
        return deleting.resolve_deletion(raw, self._decode_list)

    async def watch(
            self,
            lp: params.ListParams,
            version: Optional[str],
    ) -> AsyncIterator["watching.WatchEvent[K]"]:
        """
        Stream the changes since the resource version, as the typed events.

        The connection is released when the stream ends, or when the consumer
        stops consuming and closes the generator (``aclose()``,
        `contextlib.aclosing`, or the garbage-collection of the generator).
        """
        timeout = self.client.settings.watching.server_timeout
        if lp.timeout is None and timeout is not None:
            lp = dataclasses.replace(lp, timeout=int(timeout))
        req = self.builder.watch(lp, version)
        where = f'in {self.namespace!r}' if self.namespace is not None else 'cluster-wide'
        logger.debug(f"Starting the watch-stream for {self.resource} {where} since {version!r}.")
        events = watching.decode_events(self.client.request_events(req), self._decode)
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()
            logger.debug(f"Stopping the watch-stream for {self.resource} {where}.")

    # Constructors of the well-known resource kinds, for convenience.

    @classmethod
    def namespaces(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.NAMESPACES, codec)

    @classmethod
    def nodes(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.NODES, codec)

    @classmethod
    def pods(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.PODS, codec)

    @classmethod
    def services(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.SERVICES, codec)

    @classmethod
    def config_maps(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.CONFIGMAPS, codec)

    @classmethod
    def secrets(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.SECRETS, codec)

    @classmethod
    def events(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.EVENTS, codec)

    @classmethod
    def deployments(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.DEPLOYMENTS, codec)

    @classmethod
    def stateful_sets(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.STATEFULSETS, codec)

    @classmethod
    def daemon_sets(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.DAEMONSETS, codec)

    @classmethod
    def jobs(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.JOBS, codec)

    @classmethod
    def cron_jobs(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.CRONJOBS, codec)

    @classmethod
    def custom_resource_definitions(cls, client: Transport, codec: "codecs.Codec[K]" = RAW_CODEC) -> "Api[K]":
        return cls.for_resource(client, references.CUSTOMRESOURCEDEFINITIONS, codec)
