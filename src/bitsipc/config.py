""" Runtime configuration for bits-ipc clients. The values here are module
    level defaults; each can be overridden by an environment variable, which
    is consulted when the value is needed rather than at import time, or by
    passing an explicit argument to :class:`bitsipc.Client`.
"""

import os


# Seconds a single read waits for data before returning control to the
# dispatch loop. This bounds how long Client.stop() can take.

read_timeout = 1.0

# Maximum number of bytes requested from the socket per read.

read_size = 4096

# Seconds Client.send_request() waits for a response before giving up.
# None means wait forever.

request_timeout = 60

# Directory the broker creates its sockets in; node-ipc uses /tmp/ by default.

socket_root = '/tmp/'


def socket_path(path=None):
    """ Return the socket *path* if one was provided, otherwise the value of
        the ``BITS_IPC_SOCKET`` environment variable. A ValueError is raised
        if neither is available.
    """

    if path:
        return str(path)

    try:
        path = os.environ['BITS_IPC_SOCKET']
    except KeyError:
        raise ValueError('no socket path provided and BITS_IPC_SOCKET is not set')

    if path == '':
        raise ValueError('BITS_IPC_SOCKET is set to an empty string')

    return path


def system_socket(system_id, root=None):
    """ Return the socket path the broker listens on for the system
        identified by *system_id*, as returned by the 'base#System bitsId'
        request.
    """

    if root is None:
        root = socket_root

    return root + 'bits.' + str(system_id)


def get_read_timeout():
    """ The read timeout cannot be disabled; a blocking read with no timeout
        would prevent the dispatch loop from ever noticing a stop request.
    """

    value = _float_from_environment('BITS_IPC_READ_TIMEOUT', read_timeout)

    if value is None or value <= 0:
        return read_timeout

    return value


def get_request_timeout():
    """ The request timeout can be disabled from the environment by setting
        ``BITS_IPC_REQUEST_TIMEOUT`` to 'none' or 0.
    """

    value = _float_from_environment('BITS_IPC_REQUEST_TIMEOUT', request_timeout)

    if value is None or value <= 0:
        return None

    return value


def _float_from_environment(variable, default):

    try:
        value = os.environ[variable]
    except KeyError:
        return default

    value = value.strip()

    if value.lower() == 'none':
        return None

    try:
        return float(value)
    except ValueError:
        raise ValueError("%s must be a number, not %s" % (variable, repr(value)))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
