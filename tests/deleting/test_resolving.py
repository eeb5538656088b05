import pytest

from kubetyped._cogs.clients.deleting import ObjectReturned, StatusReturned, resolve_deletion
from kubetyped._cogs.clients.errors import DecodeError
from kubetyped._cogs.structs.bodies import Status
from kubetyped._cogs.structs.codecs import FunctionCodec, RawCodec, decode, decode_list


def decode_raw(raw):
    return decode(RawCodec(), raw)


def decode_names(raw):
    return decode(FunctionCodec(decode=lambda raw: raw['metadata']['name'], encode=dict), raw)


def test_deleted_object_is_returned():
    raw = {'kind': 'Pod', 'metadata': {'name': 'pod1', 'deletionTimestamp': '2020-01-01T00:00:00Z'}}
    outcome = resolve_deletion(raw, decode_raw)
    assert isinstance(outcome, ObjectReturned)
    assert outcome.object == raw


def test_status_is_recognised_by_its_kind():
    raw = {'kind': 'Status', 'apiVersion': 'v1', 'status': 'Success',
           'details': {'name': 'pod1', 'kind': 'pods'}}
    outcome = resolve_deletion(raw, decode_raw)
    assert isinstance(outcome, StatusReturned)
    assert outcome.status == Status(status='Success', details={'name': 'pod1', 'kind': 'pods'})


def test_status_kind_wins_even_if_the_codec_accepts_it():
    raw = {'kind': 'Status', 'code': 200, 'metadata': {'name': 'xyz'}}
    outcome = resolve_deletion(raw, decode_names)
    assert isinstance(outcome, StatusReturned)
    assert outcome.status.code == 200


def test_status_without_kind_is_used_when_the_codec_rejects_it():
    raw = {'code': 202, 'message': 'pending'}
    outcome = resolve_deletion(raw, decode_names)
    assert isinstance(outcome, StatusReturned)
    assert outcome.status.message == 'pending'


def test_objects_are_preferred_over_status_lookalikes():
    raw = {'code': 202, 'metadata': {'name': 'pod1'}}
    outcome = resolve_deletion(raw, decode_names)
    assert isinstance(outcome, ObjectReturned)
    assert outcome.object == 'pod1'


def test_neither_object_nor_status_is_a_decode_error():
    with pytest.raises(DecodeError) as err:
        resolve_deletion({'spec': {}}, decode_names)
    assert isinstance(err.value.__cause__, KeyError)  # the object's error, not the status'


@pytest.mark.parametrize('raw', [None, 'ok', 123])
def test_non_mappings_are_decode_errors(raw):
    with pytest.raises(DecodeError):
        resolve_deletion(raw, decode_raw)


def test_deleted_collections_are_returned_as_lists():
    raw = {'kind': 'PodList', 'apiVersion': 'v1', 'metadata': {'resourceVersion': '5'},
           'items': [{'metadata': {'name': 'pod1'}}]}
    outcome = resolve_deletion(raw, lambda raw: decode_list(RawCodec(), raw))
    assert isinstance(outcome, ObjectReturned)
    assert outcome.object.resource_version == '5'
    assert [item['metadata']['name'] for item in outcome.object] == ['pod1']
