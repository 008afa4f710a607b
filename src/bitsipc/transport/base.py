""" Exceptions shared by the transport and protocol layers. These live
    alongside the transport so that the protocol modules can raise and catch
    them without depending on the socket handling itself.
"""


class TransportError(Exception):
    """Base class for all bits-ipc errors."""


class TransportConnectionError(TransportError):
    """The connection could not be established, or was lost."""


class TransportWriteError(TransportError):
    """A message could not be written to the socket in its entirety."""


class TransportTimeout(TransportError):
    """A request did not receive a timely response."""


class ParseError(TransportError, ValueError):
    """The bytes between two delimiters are not a valid bits-ipc message."""


class RequestError(TransportError):
    """ The peer answered a request with an error. The error, as sent by the
        peer, is available as the *error* attribute.
    """

    def __init__(self, error):
        TransportError.__init__(self, str(error))
        self.error = error


class RequestCancelled(TransportError):
    """A pending request was cancelled before a response arrived."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
