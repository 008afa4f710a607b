import bitsipc
import pytest
import random
import threading
import time

from bitsipc.protocol import correlation


def test_generate_id():

    registry = correlation.Registry(seed=100)

    assert registry.generate_id() == '100'
    assert registry.generate_id() == '101'

    registry = correlation.Registry()
    ids = set(registry.generate_id() for count in range(1000))

    assert len(ids) == 1000


def test_generate_id_threads():

    registry = correlation.Registry()
    generated = list()
    lock = threading.Lock()

    def generate():
        local = [registry.generate_id() for count in range(500)]
        lock.acquire()
        generated.extend(local)
        lock.release()

    threads = [threading.Thread(target=generate) for count in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(generated) == 4000
    assert len(set(generated)) == 4000


def test_register_duplicate():

    registry = correlation.Registry()
    registry.register('1')

    with pytest.raises(ValueError):
        registry.register('1')


def test_shuffled_responses():

    registry = correlation.Registry()
    slots = dict()

    for count in range(50):
        id = registry.generate_id()
        slots[id] = registry.register(id)

    assert len(registry) == 50

    order = list(slots.keys())
    random.shuffle(order)

    for id in order:
        assert registry.fulfill(id, 'result for ' + id)

    for id, pending in slots.items():
        assert pending.poll()
        assert pending.wait(0) == 'result for ' + id

    assert len(registry) == 0


def test_unmatched_response():

    registry = correlation.Registry()
    pending = registry.register('1')

    assert registry.fulfill('2', 'stray') == False
    assert registry.unmatched == 1
    assert len(registry) == 1
    assert pending.poll() == False

    # A second response for an id that has already been fulfilled is also
    # dropped.

    assert registry.fulfill('1', 'first')
    assert registry.fulfill('1', 'second') == False
    assert pending.wait(0) == 'first'
    assert registry.unmatched == 2


def test_fulfill_error():

    registry = correlation.Registry()
    pending = registry.register('1')
    registry.fulfill('1', None, 'no such thing')

    with pytest.raises(bitsipc.RequestError) as caught:
        pending.wait(0)

    assert caught.value.error == 'no such thing'


def test_wait_timeout():

    registry = correlation.Registry()
    pending = registry.register('1')

    with pytest.raises(bitsipc.TransportTimeout):
        pending.wait(0.05)

    # Timing out does not abandon the request.

    assert '1' in registry
    registry.fulfill('1', 'late')
    assert pending.wait(0) == 'late'


def test_wait_across_threads():

    registry = correlation.Registry()
    pending = registry.register('1')

    def respond():
        time.sleep(0.05)
        registry.fulfill('1', 'done')

    thread = threading.Thread(target=respond)
    thread.start()

    assert pending.wait(5) == 'done'
    thread.join()


def test_cancel():

    registry = correlation.Registry()
    pending = registry.register('1')

    assert pending.cancel()
    assert len(registry) == 0

    with pytest.raises(bitsipc.RequestCancelled):
        pending.wait(0)

    assert pending.cancel() == False
    assert registry.fulfill('1', 'late') == False


def test_abandon():

    registry = correlation.Registry()
    registry.register('1')

    assert registry.abandon('1')
    assert registry.abandon('1') == False
    assert len(registry) == 0


def test_expire():

    registry = correlation.Registry()
    old = registry.register('1')
    old.timestamp -= 100
    young = registry.register('2')

    assert registry.expire(10) == 1
    assert '1' not in registry
    assert '2' in registry

    with pytest.raises(bitsipc.TransportTimeout):
        old.wait(0)

    assert young.poll() == False


def test_cancel_all():

    registry = correlation.Registry()
    slots = [registry.register(str(number)) for number in range(3)]

    assert registry.cancel_all('stopped') == 3
    assert len(registry) == 0

    for pending in slots:
        with pytest.raises(bitsipc.RequestCancelled):
            pending.wait(0)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
