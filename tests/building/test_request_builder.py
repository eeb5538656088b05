import json

import pytest

from kubetyped._cogs.clients.errors import ConfigError
from kubetyped._cogs.clients.requests import RequestBuilder
from kubetyped._cogs.structs.params import DeleteParams, ListParams, PatchParams, \
                                           PatchStrategy, PostParams
from kubetyped._cogs.structs.references import PODS, Resource


@pytest.fixture()
def builder():
    return RequestBuilder(resource=PODS).within('ns1')


def test_scoping_returns_new_builders():
    builder1 = RequestBuilder(resource=PODS)
    builder2 = builder1.within('ns1')
    assert builder1.namespace is None
    assert builder2.namespace == 'ns1'
    assert builder2.resource is PODS


def test_custom_resource_is_core_v1_by_default():
    builder = RequestBuilder.custom_resource('kubetypedexamples')
    assert builder.resource == Resource('', 'v1', 'kubetypedexamples')


def test_custom_resource_group_and_version():
    builder = RequestBuilder.custom_resource('kubetypedexamples').group('kubetyped.dev').version('v1beta1')
    assert builder.resource == Resource('kubetyped.dev', 'v1beta1', 'kubetypedexamples')
    assert builder.list(ListParams()).url == '/apis/kubetyped.dev/v1beta1/kubetypedexamples'


@pytest.mark.parametrize('fn, arg', [
    (RequestBuilder.custom_resource, ''),
    (RequestBuilder.custom_resource, 'a/b'),
    (lambda plural: RequestBuilder(resource=PODS).within(plural), ''),
    (lambda plural: RequestBuilder(resource=PODS).within(plural), '..'),
    (lambda group: RequestBuilder(resource=PODS).group(group), ''),
    (lambda group: RequestBuilder(resource=PODS).group(group), 'a/b'),
    (lambda version: RequestBuilder(resource=PODS).version(version), ''),
])
def test_invalid_scopes(fn, arg):
    with pytest.raises(ConfigError):
        fn(arg)


def test_get(builder):
    req = builder.get('pod1')
    assert req.method == 'get'
    assert req.url == '/api/v1/namespaces/ns1/pods/pod1'
    assert req.body is None


def test_create(builder):
    req = builder.create(PostParams(dry_run=True), b'{}')
    assert req.method == 'post'
    assert req.url == '/api/v1/namespaces/ns1/pods?dryRun=All'
    assert req.body == b'{}'
    assert req.headers['Content-Type'] == 'application/json'


def test_replace(builder):
    req = builder.replace('pod1', PostParams(field_manager='me'), b'{}')
    assert req.method == 'put'
    assert req.url == '/api/v1/namespaces/ns1/pods/pod1?fieldManager=me'
    assert req.body == b'{}'


@pytest.mark.parametrize('strategy', list(PatchStrategy))
def test_patch(builder, strategy):
    req = builder.patch('pod1', PatchParams(strategy=strategy, field_manager='me'), b'[]')
    assert req.method == 'patch'
    assert req.url == '/api/v1/namespaces/ns1/pods/pod1?fieldManager=me'
    assert req.headers['Content-Type'] == strategy.value
    assert req.body == b'[]'


def test_delete(builder):
    req = builder.delete('pod1', DeleteParams(grace_period_seconds=5))
    assert req.method == 'delete'
    assert req.url == '/api/v1/namespaces/ns1/pods/pod1'
    assert json.loads(req.body) == {'apiVersion': 'v1', 'kind': 'DeleteOptions', 'gracePeriodSeconds': 5}


def test_list(builder):
    req = builder.list(ListParams(label_selector='a=b', limit=5))
    assert req.method == 'get'
    assert req.url == '/api/v1/namespaces/ns1/pods?labelSelector=a%3Db&limit=5'


def test_delete_collection(builder):
    req = builder.delete_collection(ListParams(label_selector='a=b'))
    assert req.method == 'delete'
    assert req.url == '/api/v1/namespaces/ns1/pods?labelSelector=a%3Db'


def test_watch_with_version(builder):
    req = builder.watch(ListParams(timeout=60), '123')
    assert req.method == 'get'
    assert req.url == '/api/v1/namespaces/ns1/pods?timeoutSeconds=60&watch=true&resourceVersion=123'


def test_watch_without_version(builder):
    req = builder.watch(ListParams(), None)
    assert req.url == '/api/v1/namespaces/ns1/pods?watch=true'


def test_cluster_wide_listing_of_namespaced_resources():
    req = RequestBuilder(resource=PODS).list(ListParams())
    assert req.url == '/api/v1/pods'


@pytest.mark.parametrize('call', [
    lambda b: b.get(''),
    lambda b: b.get('a/b'),
    lambda b: b.replace('..', PostParams(), b'{}'),
    lambda b: b.patch('', PatchParams(), b'{}'),
    lambda b: b.delete('a/b', DeleteParams()),
    lambda b: b.list(ListParams(limit=0)),
    lambda b: b.delete('pod1', DeleteParams(grace_period_seconds=-5)),
    lambda b: b.patch('pod1', PatchParams(force=True), b'{}'),
])
def test_config_errors_before_anything_is_built(builder, call):
    with pytest.raises(ConfigError):
        call(builder)


def test_named_requests_of_namespaced_resources_require_a_namespace():
    with pytest.raises(ConfigError):
        RequestBuilder(resource=PODS).get('pod1')


@pytest.mark.parametrize('name', ['x?watch=true', 'x#frag', 'x%2Fy', 'x y', 'x\n', 'x\x00'])
def test_names_which_address_something_else(builder, name):
    with pytest.raises(ConfigError):
        builder.get(name)


@pytest.mark.parametrize('namespace', ['ns?x=y', 'ns#x', 'ns 1'])
def test_namespaces_which_address_something_else(namespace):
    with pytest.raises(ConfigError):
        RequestBuilder(resource=PODS).within(namespace)
