""" Transport layer: the Unix domain socket connection and the exceptions
    shared with the protocol layer.
"""

from .base import (
    TransportError,
    TransportConnectionError,
    TransportWriteError,
    TransportTimeout,
    ParseError,
    RequestError,
    RequestCancelled,
)

from .connection import Connection

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
