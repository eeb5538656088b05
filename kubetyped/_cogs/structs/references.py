import dataclasses
import re
import urllib.parse
from typing import Iterator, List, Mapping, NewType, Optional

from kubetyped._cogs.clients import errors

# A specific really existing addressable namespace (at least, the one assumed to be so).
# Made as a NewType for stricter type-checking to avoid collisions with other strings.
NamespaceName = NewType('NamespaceName', str)

# A namespace reference usable in the API calls. `None` means cluster-wide API calls.
Namespace = Optional[NamespaceName]

# Detect conventional API versions: e.g. "v1", "v1alpha1", "v2beta3".
K8S_VERSION_PATTERN = re.compile(r'^v\d+(?:(?:alpha|beta)\d+)?$')

# The characters that end or escape a path segment, and the whitespace & control ones.
UNSAFE_URL_CHARS = re.compile(r'[/?#%\s\x00-\x1f\x7f]')


def check_name(name: Optional[str], *, what: str = 'name') -> None:
    """
    Ensure that the name is usable as a single segment of the URL path.

    This is not the full validation of the DNS-1123 names: the API server does
    it better. But we should not build the URLs that address something else.
    """
    if name is None:
        return
    if not isinstance(name, str) or not name:
        raise errors.ConfigError(f"The {what} must be a non-empty string, got {name!r}.")
    if name in ('.', '..') or UNSAFE_URL_CHARS.search(name):
        raise errors.ConfigError(f"The {what} cannot be used in a URL: {name!r}.")


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class Resource:
    """
    A reference to a very specific custom or built-in resource kind.

    It is used to form the K8s API URLs. Generally, K8s API only needs
    an API group, an API version, and a plural name of the resource.
    The kind is remembered for informational purposes only.

    The scope of the resource can be unknown (``namespaced=None``),
    e.g. for custom resources defined only by their plural names:
    in that case, the namespace is used if and only if it is set.
    """

    group: str
    """
    The resource's API group; e.g. ``"example.com"``, ``"apps"``, ``"batch"``.
    For Core v1 API resources, an empty string: ``""``.
    """

    version: str
    """
    The resource's API version; e.g. ``"v1"``, ``"v1beta1"``, etc.
    """

    plural: str
    """
    The resource's plural name; e.g. ``"pods"``, ``"jobs"``.
    It is used as an API endpoint, together with API group & version.
    """

    kind: Optional[str] = None
    """
    The resource's kind (as in YAML files); e.g. ``"Pod"``, ``"Job"``.
    """

    namespaced: Optional[bool] = None
    """
    Whether the resource is namespaced (``True``) or cluster-scoped (``False``).
    """

    def __hash__(self) -> int:
        return hash((self.group, self.version, self.plural))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Resource):
            self_tuple = (self.group, self.version, self.plural)
            other_tuple = (other.group, other.version, other.plural)
            return self_tuple == other_tuple
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return f'{self.plural}.{self.version}.{self.group}'.strip('.')

    # Mostly for tests and for printing.
    def __iter__(self) -> Iterator[str]:
        return iter((self.group, self.version, self.plural))

    @property
    def api_version(self) -> str:
        # Strip heading/trailing slashes if group is absent (e.g. for pods).
        return f'{self.group}/{self.version}'.strip('/')

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Namespace = None,
            name: Optional[str] = None,
            subresource: Optional[str] = None,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build a URL to be used with K8s API.

        If the namespace is not set, a cluster-wide URL is returned.

        If the name is not set, the URL for the resource list is returned.
        Otherwise (if set), the URL for the individual resource is returned.

        If subresource is set, that subresource's URL is returned,
        regardless of whether such a subresource is known or not.

        Params go to the query parameters (``?param1=value1&param2=value2...``).
        """
        check_name(self.plural, what='plural name')
        check_name(self.version, what='version')
        check_name(namespace, what='namespace')
        check_name(name, what='name')
        check_name(subresource, what='subresource')
        if self.group and UNSAFE_URL_CHARS.search(self.group):
            raise errors.ConfigError(f"The group cannot be used in a URL: {self.group!r}.")
        if subresource is not None and name is None:
            raise errors.ConfigError("Subresources can be used only with specific resources by their name.")
        if self.namespaced is False and namespace is not None:
            raise errors.ConfigError("Specific namespaces are not supported for cluster-scoped resources.")
        if self.namespaced and namespace is None and name is not None:
            raise errors.ConfigError("Specific namespaces are required for specific namespaced resources.")

        parts: List[Optional[str]] = [
            '/api' if self.group == '' and self.version == 'v1' else '/apis',
            self.group,
            self.version,
            'namespaces' if namespace is not None else None,
            namespace,
            self.plural,
            name,
            subresource,
        ]

        query = urllib.parse.urlencode(params, encoding='utf-8') if params else ''
        path = '/'.join([part for part in parts if part])
        url = path + ('?' if query else '') + query
        return url if server is None else server.rstrip('/') + '/' + url.lstrip('/')


# Some well-known resources, as a convenience for the typed handles and the CLI.
NAMESPACES = Resource('', 'v1', 'namespaces', kind='Namespace', namespaced=False)
NODES = Resource('', 'v1', 'nodes', kind='Node', namespaced=False)
PODS = Resource('', 'v1', 'pods', kind='Pod', namespaced=True)
SERVICES = Resource('', 'v1', 'services', kind='Service', namespaced=True)
CONFIGMAPS = Resource('', 'v1', 'configmaps', kind='ConfigMap', namespaced=True)
SECRETS = Resource('', 'v1', 'secrets', kind='Secret', namespaced=True)
EVENTS = Resource('', 'v1', 'events', kind='Event', namespaced=True)
SERVICEACCOUNTS = Resource('', 'v1', 'serviceaccounts', kind='ServiceAccount', namespaced=True)
PERSISTENTVOLUMES = Resource('', 'v1', 'persistentvolumes', kind='PersistentVolume', namespaced=False)
PERSISTENTVOLUMECLAIMS = Resource('', 'v1', 'persistentvolumeclaims', kind='PersistentVolumeClaim', namespaced=True)
DEPLOYMENTS = Resource('apps', 'v1', 'deployments', kind='Deployment', namespaced=True)
STATEFULSETS = Resource('apps', 'v1', 'statefulsets', kind='StatefulSet', namespaced=True)
DAEMONSETS = Resource('apps', 'v1', 'daemonsets', kind='DaemonSet', namespaced=True)
REPLICASETS = Resource('apps', 'v1', 'replicasets', kind='ReplicaSet', namespaced=True)
JOBS = Resource('batch', 'v1', 'jobs', kind='Job', namespaced=True)
CRONJOBS = Resource('batch', 'v1', 'cronjobs', kind='CronJob', namespaced=True)
CUSTOMRESOURCEDEFINITIONS = Resource('apiextensions.k8s.io', 'v1', 'customresourcedefinitions',
                                     kind='CustomResourceDefinition', namespaced=False)

WELL_KNOWN_RESOURCES: Mapping[str, Resource] = {
    resource.plural: resource
    for resource in [
        NAMESPACES, NODES, PODS, SERVICES, CONFIGMAPS, SECRETS, EVENTS, SERVICEACCOUNTS,
        PERSISTENTVOLUMES, PERSISTENTVOLUMECLAIMS,
        DEPLOYMENTS, STATEFULSETS, DAEMONSETS, REPLICASETS, JOBS, CRONJOBS,
        CUSTOMRESOURCEDEFINITIONS,
    ]
}


def guess_resource(
        spec: str,
        *,
        group: Optional[str] = None,
        version: Optional[str] = None,
) -> Resource:
    """
    Interpret a human-written resource reference, e.g. from the CLI.

    Accepted forms are ``plural``, ``plural.group``, ``plural.version.group``;
    the version is detected by its conventional name only (``v1``, ``v2beta1``).
    E.g. ``jobs``, ``jobs.batch``, ``jobs.v1.batch``, ``kubetypedexamples.kubetyped.dev``.
    Explicit group & version (if set) override the parsed ones.

    The well-known resources are recognised by their plural names (if the group
    is not overridden to something else), possibly with another version.
    Everything else is treated as a custom resource of an unknown scope.
    """
    plural, *rest = spec.split('.')
    parsed_version: Optional[str] = None
    if rest and K8S_VERSION_PATTERN.match(rest[0]):
        parsed_version, *rest = rest
    parsed_group = '.'.join(rest) if rest else None

    known = WELL_KNOWN_RESOURCES.get(plural)
    group = group if group is not None else parsed_group
    version = version if version is not None else parsed_version
    if known is not None and group in (None, known.group):
        return known if version in (None, known.version) else dataclasses.replace(known, version=version)
    return Resource(
        group=group if group is not None else '',
        version=version if version is not None else 'v1',
        plural=plural,
    )
