""" Unix domain stream socket handling for a bits-ipc client. This is the
    only module that touches the socket directly; everything above it deals
    in whole frames of bytes.
"""

import logging
import select
import socket
import threading

from .. import config
from .base import TransportConnectionError, TransportWriteError

logger = logging.getLogger(__name__)


class Connection:
    """ A :class:`Connection` owns a single stream socket connected to the
        broker listening on *path*. Reads are bounded by *timeout* seconds
        so that a reader blocked waiting for data periodically regains
        control; writes are serialized so that concurrent writers never
        interleave partial frames.

        :ivar path: The filesystem path of the broker's socket.
        :ivar timeout: The maximum number of seconds a :func:`read` will wait.
    """

    def __init__(self, path, timeout=None):

        if timeout is None:
            timeout = config.get_read_timeout()

        self.path = str(path)
        self.timeout = float(timeout)
        self.socket = None
        self.poller = None
        self.write_lock = threading.Lock()


    def connect(self):
        """ Create the socket and connect it to the broker. There is no retry;
            a :class:`TransportConnectionError` is raised if either step
            fails.
        """

        if self.socket is not None:
            return

        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            raise TransportConnectionError('socket error: ' + str(e)) from e

        try:
            sock.connect(self.path)
        except OSError as e:
            sock.close()
            raise TransportConnectionError("connect error for %s: %s" % (self.path, e)) from e

        # The socket itself stays in blocking mode so that sendall() never
        # gives up partway through a frame; the read timeout is implemented
        # by polling for input instead of a socket-level timeout.

        poller = select.poll()
        poller.register(sock, select.POLLIN)

        self.poller = poller
        self.socket = sock

        logger.debug("connected to %s", self.path)


    @property
    def connected(self):
        return self.socket is not None


    def read(self, size=None):
        """ Return the bytes currently available on the socket, up to *size*
            bytes. An empty bytes object is returned if nothing arrived within
            the read timeout; the caller is expected to loop. A
            :class:`TransportConnectionError` is raised if the peer closed the
            connection or the socket is otherwise unusable.
        """

        if size is None:
            size = config.read_size

        sock = self.socket
        poller = self.poller

        if sock is None:
            raise TransportConnectionError('not connected')

        try:
            ready = poller.poll(int(self.timeout * 1000))
        except OSError as e:
            raise TransportConnectionError('poll error: ' + str(e)) from e

        if not ready:
            return b''

        try:
            data = sock.recv(size)
        except OSError as e:
            raise TransportConnectionError('read error: ' + str(e)) from e

        if data == b'':
            raise TransportConnectionError('connection closed by peer')

        return data


    def write(self, data):
        """ Write all of *data* to the socket as one unit. Any failure raises
            a :class:`TransportWriteError`; the caller must treat the message
            as not delivered.
        """

        sock = self.socket

        if sock is None:
            raise TransportWriteError('not connected')

        # The lock is what keeps two threads from interleaving their frames
        # on the wire. sendall() keeps writing until every byte is out or an
        # error occurs.

        self.write_lock.acquire()
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportWriteError('write error: ' + str(e)) from e
        finally:
            self.write_lock.release()


    def close(self):
        """ Shut down and close the socket. Calling :func:`close` more than
            once is harmless.
        """

        sock = self.socket

        if sock is None:
            return

        self.socket = None
        self.poller = None

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected.
            pass

        sock.close()
        logger.debug("closed connection to %s", self.path)


# end of class Connection


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
