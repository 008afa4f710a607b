""" Framing for bits-ipc messages on a stream socket. Each message is the
    JSON encoding of the message followed by a single form-feed byte; the
    JSON encoder escapes every control character inside strings, so the
    delimiter never appears inside a payload.
"""

from .. import json
from ..transport.base import ParseError
from . import message


delimiter = b'\x0c'


def encode(outbound):
    """ Return the bytes for one outbound frame, delimiter included. The
        *outbound* argument is a :class:`message.Message` instance, or an
        already-built dictionary.
    """

    try:
        outbound = outbound.to_dict()
    except AttributeError:
        pass

    return json.dumps(outbound) + delimiter


def decode(frame):
    """ Interpret the bytes of a single frame, delimiter excluded, as a
        :class:`message.Message`. A :class:`ParseError` is raised for
        anything that is not a well-formed bits-ipc message.
    """

    if len(frame) == 0:
        raise ParseError('empty frame')

    # Invalid UTF-8 inside a string surfaces as a UnicodeDecodeError, and
    # pathologically deep nesting as a RecursionError, rather than as the
    # codec's own DecodeError.

    try:
        decoded = json.loads(frame)
    except (json.DecodeError, UnicodeDecodeError) as e:
        raise ParseError('invalid JSON: ' + str(e)) from e
    except RecursionError as e:
        raise ParseError('JSON nested too deeply') from e

    return message.Message.from_dict(decoded)



class Reassembler:
    """ Accumulate bytes as they arrive from the socket and split them back
        into frames. A single read may contain a fraction of a frame, or
        several frames and the start of another; nothing is lost or
        reordered, and no partial frame is ever returned.

        A :class:`Reassembler` is not thread-safe. There is only supposed
        to be one reader of a connection; the dispatcher enforces that.
    """

    def __init__(self):
        self.buffer = bytearray()

        # Offset up to which the buffer is known not to contain a delimiter,
        # so that a large frame arriving in many pieces is not rescanned
        # from the beginning every time.

        self.scanned = 0


    def __iter__(self):
        """ Iterate over every complete frame currently buffered. """

        while True:
            frame = self.next()
            if frame is None:
                return
            yield frame


    def __len__(self):
        return len(self.buffer)


    def feed(self, data):
        """ Append newly read *data* to the accumulated bytes. """

        self.buffer += data


    def next(self):
        """ Remove and return the first complete frame, without its
            delimiter. None is returned if no complete frame is buffered
            yet, in which case more bytes need to be read.
        """

        index = self.buffer.find(delimiter, self.scanned)

        if index == -1:
            self.scanned = len(self.buffer)
            return None

        frame = bytes(self.buffer[:index])
        del self.buffer[:index + 1]
        self.scanned = 0

        return frame


    def clear(self):
        """ Discard any buffered bytes, for use after a reconnect. """

        self.buffer = bytearray()
        self.scanned = 0


# end of class Reassembler


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
