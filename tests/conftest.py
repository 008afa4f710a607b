import os
import pytest
import shutil
import socket
import tempfile

import bitsipc


class FakeBroker:
    """ Just enough of a message center to exercise a client: a listening
        Unix domain socket that accepts a single connection, and helpers to
        read and write frames on it.
    """

    def __init__(self, path):

        self.path = path
        self.reassembler = bitsipc.protocol.framing.Reassembler()
        self.connection = None

        self.listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.listener.bind(path)
        self.listener.listen(1)
        self.listener.settimeout(5)


    def accept(self):

        if self.connection is None:
            self.connection, address = self.listener.accept()
            self.connection.settimeout(5)

        return self.connection


    def receive_bytes(self, count):
        """ Read exactly *count* raw bytes, bypassing the reassembler. """

        connection = self.accept()
        data = b''

        while len(data) < count:
            chunk = connection.recv(count - len(data))
            if chunk == b'':
                raise EOFError('client closed the connection')
            data += chunk

        return data


    def receive_frame(self):

        connection = self.accept()

        while True:
            frame = self.reassembler.next()
            if frame is not None:
                return frame

            data = connection.recv(4096)
            if data == b'':
                raise EOFError('client closed the connection')

            self.reassembler.feed(data)


    def receive(self):
        return bitsipc.protocol.framing.decode(self.receive_frame())


    def send(self, outbound):
        """ Send a frame to the client. Bytes are sent as-is; anything else
            is encoded and delimited first.
        """

        if not isinstance(outbound, bytes):
            outbound = bitsipc.protocol.framing.encode(outbound)

        self.accept().sendall(outbound)


    def disconnect(self):

        if self.connection is not None:
            self.connection.close()
            self.connection = None


    def close(self):
        self.disconnect()
        self.listener.close()


# end of class FakeBroker


@pytest.fixture
def broker():

    # Unix socket paths are limited to around a hundred bytes, which rules
    # out the deeply nested directories pytest's tmp_path can produce.

    directory = tempfile.mkdtemp(prefix='bitsipc')
    path = os.path.join(directory, 'bits.test')

    broker = FakeBroker(path)

    yield broker

    broker.close()
    shutil.rmtree(directory)


@pytest.fixture
def client(broker):

    client = bitsipc.Client(broker.path, read_timeout=0.05, request_timeout=5)

    yield client

    client.stop()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
