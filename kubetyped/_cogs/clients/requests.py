"""
Building the requests for every operation of a resource kind in a scope.

The builder knows nothing about the types of the objects, about the transport,
and about the responses. It only converts the operation's intent
(verb, name, params, payload) into a descriptor of an HTTP request,
which is then executed by the client.

All the validation of the names & scopes happens here, before any network
activity, and is reported as `ConfigError`.
"""
import dataclasses
import json
from typing import Mapping, Optional

from kubetyped._cogs.clients import errors
from kubetyped._cogs.structs import params, references

JSON_CONTENT_TYPE = 'application/json'


@dataclasses.dataclass(frozen=True)
class RequestDescriptor:
    method: str
    url: str  # relative to the server/api root, with the query.
    body: Optional[bytes] = None
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class RequestBuilder:
    """
    A resource kind in a specific namespace (or cluster-wide), ready to build requests.

    The scoping methods return new builders, the original one is not modified.
    """
    resource: references.Resource
    namespace: references.Namespace = None

    @classmethod
    def custom_resource(cls, plural: str) -> "RequestBuilder":
        """
        A builder for a resource known only by its plural name.

        The group & version are expected to be set via the scoping methods:
        ``RequestBuilder.custom_resource('foos').group('example.com').version('v1')``.
        """
        references.check_name(plural, what='plural name')
        return cls(resource=references.Resource(group='', version='v1', plural=plural))

    def within(self, namespace: str) -> "RequestBuilder":
        references.check_name(namespace, what='namespace')
        return dataclasses.replace(self, namespace=references.NamespaceName(namespace))

    def group(self, group: str) -> "RequestBuilder":
        if not isinstance(group, str) or not group or references.UNSAFE_URL_CHARS.search(group):
            raise errors.ConfigError(f"The group must be a non-empty URL-safe string, got {group!r}.")
        return dataclasses.replace(self, resource=dataclasses.replace(self.resource, group=group))

    def version(self, version: str) -> "RequestBuilder":
        references.check_name(version, what='version')
        return dataclasses.replace(self, resource=dataclasses.replace(self.resource, version=version))

    def get(self, name: str) -> RequestDescriptor:
        references.check_name(name)
        return RequestDescriptor(
            method='get',
            url=self.resource.get_url(namespace=self.namespace, name=name),
        )

    def create(self, pp: params.PostParams, data: bytes) -> RequestDescriptor:
        return RequestDescriptor(
            method='post',
            url=self.resource.get_url(namespace=self.namespace, params=pp.as_query()),
            body=data,
            headers={'Content-Type': JSON_CONTENT_TYPE},
        )

    def replace(self, name: str, pp: params.PostParams, data: bytes) -> RequestDescriptor:
        references.check_name(name)
        return RequestDescriptor(
            method='put',
            url=self.resource.get_url(namespace=self.namespace, name=name, params=pp.as_query()),
            body=data,
            headers={'Content-Type': JSON_CONTENT_TYPE},
        )

    def patch(self, name: str, pp: params.PatchParams, patch: bytes) -> RequestDescriptor:
        references.check_name(name)
        return RequestDescriptor(
            method='patch',
            url=self.resource.get_url(namespace=self.namespace, name=name, params=pp.as_query()),
            body=patch,
            headers={'Content-Type': pp.content_type},
        )

    def delete(self, name: str, dp: params.DeleteParams) -> RequestDescriptor:
        references.check_name(name)
        return RequestDescriptor(
            method='delete',
            url=self.resource.get_url(namespace=self.namespace, name=name),
            body=json.dumps(dp.as_body()).encode('utf-8'),
            headers={'Content-Type': JSON_CONTENT_TYPE},
        )

    def list(self, lp: params.ListParams) -> RequestDescriptor:
        return RequestDescriptor(
            method='get',
            url=self.resource.get_url(namespace=self.namespace, params=lp.as_query()),
        )

    def delete_collection(self, lp: params.ListParams) -> RequestDescriptor:
        return RequestDescriptor(
            method='delete',
            url=self.resource.get_url(namespace=self.namespace, params=lp.as_query()),
        )

    def watch(self, lp: params.ListParams, version: Optional[str]) -> RequestDescriptor:
        query = dict(lp.as_query())
        query['watch'] = 'true'
        if version:
            query['resourceVersion'] = version
        return RequestDescriptor(
            method='get',
            url=self.resource.get_url(namespace=self.namespace, params=query),
        )
