""" Python client for bits-ipc, the message passing scheme used by the BITS
    message center. A client connects to the broker over a Unix domain
    socket, sends events and requests, and registers callbacks for the
    events and requests it wants to receive.
"""

__version__ = '0.1.0'

# Utility components.

from . import json
from . import config

# Submodules used by multiple other components.

from . import transport
from . import protocol

from .transport.base import (
    TransportError,
    TransportConnectionError,
    TransportWriteError,
    TransportTimeout,
    ParseError,
    RequestError,
    RequestCancelled,
)

# Primary public-facing interfaces.

from .dispatch import Dispatcher
from .client import Client

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
