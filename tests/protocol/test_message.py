import bitsipc
import pytest

from bitsipc.protocol import message


def test_scope_blocks():

    assert message.scope(None) == {'scope': None}
    assert message.scope([]) == {'scope': None}
    assert message.scope('local') == {'scope': 'local'}
    assert message.scope(['local']) == {'scope': 'local'}
    assert message.scope(['local', 'remote']) == {'scopes': ['local', 'remote']}


def test_listener_scope_blocks():

    assert message.listener_scope(None) == {'scopes': None}
    assert message.listener_scope(()) == {'scopes': None}
    assert message.listener_scope(['local']) == {'scopes': 'local'}
    assert message.listener_scope(('local', 'remote')) == {'scopes': ['local', 'remote']}


def test_event():

    outbound = message.event('bits-ipc#heartbeat', 'local', [1, 'two'])
    data = outbound.to_dict()['data']

    assert list(data.keys()) == ['type', 'event', 'params']
    assert data['params'] == [{'scope': 'local'}, 1, 'two']
    assert outbound.id is None


def test_request():

    outbound = message.request('base#System bitsId', 12)
    envelope = outbound.to_dict()

    assert envelope['type'] == 'bits-ipc'
    assert list(envelope['data'].keys()) == ['type', 'event', 'requestId', 'params']
    assert envelope['data']['requestId'] == '12'


def test_response():

    outbound = message.response('bits-ipc#ping', '5', {'pong': 1})
    data = outbound.to_dict()['data']

    assert list(data.keys()) == ['type', 'event', 'responseId', 'params']
    assert data['params'] == [{'pong': 1}]
    assert outbound.result == {'pong': 1}

    failed = message.response('bits-ipc#ping', '5', None, 'boom')
    data = failed.to_dict()['data']

    assert data['params'] == [None]
    assert data['err'] == 'boom'


def test_listener():

    outbound = message.listener(message.ADD_EVENT_LISTENER, 'bits-ipc#heartbeat')
    data = outbound.to_dict()['data']

    assert data == {'type': 'addEventListener', 'event': 'bits-ipc#heartbeat', 'params': [{'scopes': None}]}

    with pytest.raises(ValueError):
        message.listener(message.EVENT, 'bits-ipc#heartbeat')


def test_invalid_construction():

    with pytest.raises(ValueError):
        message.Message('bogus', 'x')

    with pytest.raises(ValueError):
        message.Message(message.REQUEST, 'x')

    with pytest.raises(ValueError):
        message.Message(message.RESPONSE, 'x')


def test_from_dict():

    decoded = message.Message.from_dict({'type': 'bits-ipc', 'data': {'type': 'response', 'responseId': 99, 'params': ['abc123']}})

    assert decoded.type == message.RESPONSE
    assert decoded.id == '99'
    assert decoded.event is None
    assert decoded.result == 'abc123'
    assert decoded.error is None


def test_from_dict_result_field():

    # The broker's own responses carry the result under 'result'.

    data = {'type': 'response', 'event': 'base#System bitsId', 'responseId': '3', 'err': None, 'result': ['abc123']}
    decoded = message.Message.from_dict({'type': 'bits-ipc', 'data': data})

    assert decoded.result == 'abc123'

    data = {'type': 'response', 'responseId': '3', 'err': 'denied', 'result': None}
    decoded = message.Message.from_dict({'type': 'bits-ipc', 'data': data})

    assert decoded.error == 'denied'
    assert decoded.result is None


def test_from_dict_missing_params():

    decoded = message.Message.from_dict({'type': 'bits-ipc', 'data': {'type': 'event', 'event': 'a#b'}})
    assert decoded.params == []


def test_from_dict_errors():

    bad = list()
    bad.append('string')
    bad.append({'data': {'type': 'event', 'event': 'a#b'}})
    bad.append({'type': 'bits-ipc'})
    bad.append({'type': 'bits-ipc', 'data': []})
    bad.append({'type': 'bits-ipc', 'data': {'event': 'a#b'}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'event'}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'event', 'event': 5}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'event', 'event': 'a#b', 'params': 'nope'}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'request', 'event': 'a#b'}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'request', 'event': 'a#b', 'requestId': True}})
    bad.append({'type': 'bits-ipc', 'data': {'type': 'response', 'responseId': [1]}})

    for decoded in bad:
        with pytest.raises(bitsipc.ParseError):
            message.Message.from_dict(decoded)


def test_equality():

    assert message.event('a#b', params=[1]) == message.event('a#b', None, [1])
    assert message.event('a#b', params=[1]) != message.event('a#b', params=[2])
    assert message.event('a#b') != 'a#b'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
