import json

import yaml

from kubetyped._cogs.clients.errors import APINetworkError, APINotFoundError


def frame(type_, obj):
    return json.dumps({'type': type_, 'object': obj}).encode('utf-8')


def test_help(invoke):
    result = invoke(['--help'])
    assert result.exit_code == 0
    for command in ['get', 'list', 'delete', 'watch']:
        assert command in result.output


def test_get_as_yaml(invoke, transport):
    transport.responses.append({'kind': 'Pod', 'metadata': {'name': 'pod1'}})
    result = invoke(['get', 'pods', 'pod1', '-n', 'ns1'])
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.stdout) == {'kind': 'Pod', 'metadata': {'name': 'pod1'}}
    assert transport.requests[0].url == '/api/v1/namespaces/ns1/pods/pod1'


def test_get_as_json(invoke, transport):
    transport.responses.append({'kind': 'Pod', 'metadata': {'name': 'pod1'}})
    result = invoke(['get', 'pods', 'pod1', '-n', 'ns1', '-o', 'json'])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {'kind': 'Pod', 'metadata': {'name': 'pod1'}}


def test_get_of_custom_resources(invoke, transport):
    transport.responses.append({})
    result = invoke(['get', 'kubetypedexamples.kubetyped.dev', 'ex1', '-n', 'ns1', '-V', 'v2'])
    assert result.exit_code == 0, result.output
    assert transport.requests[0].url == '/apis/kubetyped.dev/v2/namespaces/ns1/kubetypedexamples/ex1'


def test_get_with_explicit_group(invoke, transport):
    transport.responses.append({})
    result = invoke(['get', 'kubetypedexamples', 'ex1', '-g', 'kubetyped.dev'])
    assert result.exit_code == 0, result.output
    assert transport.requests[0].url == '/apis/kubetyped.dev/v1/kubetypedexamples/ex1'


def test_default_namespace_of_the_client(invoke, transport):
    transport.default_namespace = 'ns0'
    transport.responses.append({})
    result = invoke(['get', 'pods', 'pod1'])
    assert result.exit_code == 0, result.output
    assert transport.requests[0].url == '/api/v1/namespaces/ns0/pods/pod1'


def test_api_errors_are_reported(invoke, transport):
    transport.responses.append(APINotFoundError({'kind': 'Status', 'message': 'pods "pod1" not found'}, status=404))
    result = invoke(['get', 'pods', 'pod1', '-n', 'ns1'])
    assert result.exit_code == 1
    assert 'APINotFoundError' in result.output
    assert 'not found' in result.output


def test_network_errors_are_reported(invoke, transport):
    transport.responses.append(APINetworkError("connection refused"))
    result = invoke(['get', 'pods', 'pod1', '-n', 'ns1'])
    assert result.exit_code == 1
    assert 'connection refused' in result.output


def test_config_errors_are_reported_before_the_network(invoke, transport):
    result = invoke(['get', 'pods', 'pod1'])  # no namespace for a namespaced resource
    assert result.exit_code == 1
    assert 'ConfigError' in result.output
    assert not transport.requests


def test_list(invoke, transport):
    transport.responses.append({
        'kind': 'PodList',
        'apiVersion': 'v1',
        'metadata': {'resourceVersion': '55', 'continue': 'tkn'},
        'items': [{'metadata': {'name': 'pod1'}}],
    })
    result = invoke(['list', 'pods', '-n', 'ns1', '-l', 'app=x', '--limit', '1'])
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.stdout) == {
        'kind': 'List',
        'metadata': {'resourceVersion': '55', 'continue': 'tkn'},
        'items': [{'metadata': {'name': 'pod1'}, 'kind': 'Pod', 'apiVersion': 'v1'}],
    }
    assert transport.requests[0].url == '/api/v1/namespaces/ns1/pods?labelSelector=app%3Dx&limit=1'


def test_list_cluster_wide(invoke, transport):
    transport.responses.append({'items': []})
    result = invoke(['list', 'nodes', '-o', 'json'])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)['items'] == []
    assert transport.requests[0].url == '/api/v1/nodes'


def test_namespace_from_env(invoke, transport):
    transport.responses.append({'items': []})
    result = invoke(['list', 'pods'], env={'KUBETYPED_LIST_NAMESPACE': 'ns9'})
    assert result.exit_code == 0, result.output
    assert transport.requests[0].url == '/api/v1/namespaces/ns9/pods'


def test_delete_returning_an_object(invoke, transport):
    transport.responses.append({'kind': 'Pod', 'metadata': {'name': 'pod1'}})
    result = invoke(['delete', 'pods', 'pod1', '-n', 'ns1', '-q', '--grace-period', '0',
                     '--propagation', 'Background', '--dry-run'])
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.stdout) == {'kind': 'Pod', 'metadata': {'name': 'pod1'}}
    assert json.loads(transport.requests[0].body) == {
        'apiVersion': 'v1',
        'kind': 'DeleteOptions',
        'dryRun': ['All'],
        'gracePeriodSeconds': 0,
        'propagationPolicy': 'Background',
    }


def test_delete_returning_a_status(invoke, transport):
    transport.responses.append({'kind': 'Status', 'status': 'Success', 'code': 200})
    result = invoke(['delete', 'pods', 'pod1', '-n', 'ns1', '-q', '-o', 'json'])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {'kind': 'Status', 'status': 'Success', 'code': 200}


def test_watch_as_json_lines(invoke, transport):
    transport.frames.extend([
        frame('ADDED', {'metadata': {'name': 'pod1'}}),
        frame('BOOKMARK', {'metadata': {'resourceVersion': '101'}}),
        frame('DELETED', {'metadata': {'name': 'pod1'}}),
    ])
    result = invoke(['watch', 'pods', '-n', 'ns1', '-q', '--since', '100', '-o', 'json'])
    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in result.stdout.splitlines()]
    assert lines == [
        {'type': 'ADDED', 'object': {'metadata': {'name': 'pod1'}}},
        {'type': 'BOOKMARK', 'object': {'metadata': {'resourceVersion': '101'}}},
        {'type': 'DELETED', 'object': {'metadata': {'name': 'pod1'}}},
    ]
    assert transport.requests[0].url == '/api/v1/namespaces/ns1/pods?watch=true&resourceVersion=100'
    assert transport.released == 1


def test_watch_as_yaml_documents(invoke, transport):
    transport.frames.extend([
        frame('ADDED', {'metadata': {'name': 'pod1'}}),
        frame('MODIFIED', {'metadata': {'name': 'pod1'}}),
    ])
    result = invoke(['watch', 'pods', '-n', 'ns1', '-q'])
    assert result.exit_code == 0, result.output
    documents = list(yaml.safe_load_all(result.stdout))
    assert [doc['type'] for doc in documents if doc] == ['ADDED', 'MODIFIED']


def test_watch_with_limit_stops_early(invoke, transport):
    transport.frames.extend([frame('ADDED', {}), frame('ADDED', {}), frame('ADDED', {})])
    result = invoke(['watch', 'pods', '-n', 'ns1', '-q', '--limit', '2', '--timeout', '30', '-o', 'json'])
    assert result.exit_code == 0, result.output
    assert len(result.stdout.splitlines()) == 2
    assert transport.released == 1
    assert 'timeoutSeconds=30' in transport.requests[0].url


def test_watch_with_non_positive_limit(invoke, transport):
    result = invoke(['watch', 'pods', '--limit', '0'])
    assert result.exit_code == 2
    assert not transport.requests
