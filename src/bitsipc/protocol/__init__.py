"""
bits-ipc Protocol Layer
=======================

This package defines the messages exchanged with the broker and the local
state a client keeps about them. It knows nothing about sockets; the
:mod:`bitsipc.transport` package moves the bytes.

Layer Overview
--------------

message.py
    The :class:`message.Message` envelope and the helpers that build each
    kind of outbound message, including the scope blocks.

framing.py
    Form-feed delimited framing: :func:`framing.encode`,
    :func:`framing.decode` and the incremental :class:`framing.Reassembler`.

correlation.py
    Request ids and the :class:`correlation.Pending` completion slots that
    tie a response back to the request that caused it.

listeners.py
    Event listeners and request handlers registered by the local
    application.
"""

from . import message
from . import framing
from . import correlation
from . import listeners


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
