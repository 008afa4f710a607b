""" The dispatch loop: the single reader of a bits-ipc connection. It pulls
    bytes from the socket, reassembles them into frames, decodes each frame
    and routes the resulting message to whoever is waiting for it.
"""

import collections
import logging
import threading
import time

from . import json
from .protocol import framing
from .protocol import message
from .transport.base import ParseError, TransportConnectionError, TransportWriteError

logger = logging.getLogger(__name__)


class Dispatcher:
    """ Route inbound messages arriving on *connection*: responses go to the
        *correlation* registry, events and requests go to the callbacks in
        the *listeners* registry. Replies to inbound requests are written
        back on the same connection.

        The same routing is used whether the loop runs continuously in a
        background thread (:func:`run`) or is driven by the caller a bounded
        number of messages at a time (:func:`dispatch`).

        Nothing that happens to a single message is allowed to terminate the
        loop: malformed frames are discarded, exceptions raised by callbacks
        are logged, and failed replies are logged. Each of those outcomes is
        counted; see :func:`statistics`.

        :ivar stop_event: Set to request that the loop exit.
    """

    def __init__(self, connection, correlation, listeners):

        self.connection = connection
        self.correlation = correlation
        self.listeners = listeners
        self.reassembler = framing.Reassembler()
        self.read_lock = threading.Lock()
        self.stop_event = threading.Event()

        self.counters = collections.Counter()
        self.counters_lock = threading.Lock()


    def _count(self, name):
        self.counters_lock.acquire()
        self.counters[name] += 1
        self.counters_lock.release()


    def statistics(self):
        """ Return a snapshot of the message counters as a dictionary:

            * received: messages successfully decoded
            * parse_errors: frames discarded as malformed
            * unmatched_responses: responses with no outstanding request
            * unhandled_events: events with no registered listener
            * unhandled_requests: requests with no registered handler
            * handler_errors: exceptions raised by callbacks
            * ignored: well-formed messages of a kind a client does not handle
        """

        self.counters_lock.acquire()
        snapshot = dict(self.counters)
        self.counters_lock.release()

        for name in ('received', 'parse_errors', 'unmatched_responses',
                     'unhandled_events', 'unhandled_requests',
                     'handler_errors', 'ignored'):
            snapshot.setdefault(name, 0)

        return snapshot


    def stop(self):
        self.stop_event.set()


    def run(self):
        """ Dispatch messages until :func:`stop` is called or the connection
            is lost. This is the target of the background thread started by
            :func:`bitsipc.Client.start`.
        """

        try:
            self.dispatch()
        except TransportConnectionError as e:
            if self.stop_event.is_set():
                return

            logger.warning("dispatch loop exiting: %s", e)
            reason = 'abandoned, connection lost'
        except Exception:
            logger.exception("dispatch loop failed")
            reason = 'abandoned, dispatch loop failed'
        else:
            return

        # Nothing else will be read from this connection; wake up anyone
        # still waiting for a response.

        self.correlation.cancel_all(reason)


    def dispatch(self, maximum=0, timeout=None):
        """ Read and route messages until *maximum* messages have been
            handled, or *timeout* seconds have elapsed, or :func:`stop` is
            called. A *maximum* of zero means no limit; a *timeout* of None
            means no time limit. The timeout is checked between reads, so
            the loop may run over by up to one read timeout.

            Returns the number of messages handled. A
            :class:`TransportConnectionError` is raised if the connection is
            lost.
        """

        handled = 0

        if timeout is None:
            deadline = None
        else:
            deadline = time.monotonic() + timeout

        while not self.stop_event.is_set():
            frame = self._next_frame()

            if frame is not None and self.handle(frame):
                handled += 1
                if maximum > 0 and handled >= maximum:
                    break

            if deadline is not None and time.monotonic() >= deadline:
                break

        return handled


    def _next_frame(self):
        """ Return the next complete frame, reading from the connection if
            none is buffered. None is returned if the read timed out, or
            the bytes read did not complete a frame.
        """

        self.read_lock.acquire()
        try:
            frame = self.reassembler.next()

            if frame is None:
                data = self.connection.read()
                if data:
                    self.reassembler.feed(data)
                    frame = self.reassembler.next()
        finally:
            self.read_lock.release()

        return frame


    def handle(self, frame):
        """ Decode and route a single *frame*. Returns True if the frame was
            a valid message, False if it was discarded.
        """

        try:
            received = framing.decode(frame)
        except ParseError as e:
            self._count('parse_errors')
            logger.warning("discarding malformed message: %s", e)
            return False

        self._count('received')
        self.route(received)
        return True


    def route(self, received):
        """ Hand the decoded :class:`message.Message` off according to its
            type.
        """

        type = received.type

        if type == message.EVENT:
            self._handle_event(received)
        elif type == message.RESPONSE:
            self._handle_response(received)
        elif type == message.REQUEST:
            self._handle_request(received)
        else:
            self._count('ignored')
            logger.debug("ignoring %s message for %s", type, received.event)


    def _handle_event(self, received):

        callbacks = self.listeners.event_listeners(received.event)

        if not callbacks:
            self._count('unhandled_events')
            logger.debug("no listeners for event %s", received.event)
            return

        for callback in callbacks:
            try:
                callback(received.params)
            except Exception:
                self._count('handler_errors')
                logger.exception("event listener for %s raised an exception", received.event)
                continue


    def _handle_response(self, received):

        matched = self.correlation.fulfill(received.id, received.result, received.error)

        if not matched:
            self._count('unmatched_responses')


    def _handle_request(self, received):

        handler = self.listeners.request_listener(received.event)

        if handler is None:
            # The protocol has no way to say 'nobody here handles that', so
            # the request goes unanswered.
            self._count('unhandled_requests')
            logger.debug("no handler for request %s (id %s)", received.event, received.id)
            return

        result = None
        error = None

        try:
            result = handler(received.params)
        except Exception as e:
            self._count('handler_errors')
            logger.exception("request handler for %s raised an exception", received.event)
            error = str(e) or e.__class__.__name__

        reply = message.response(received.event, received.id, result, error)

        try:
            frame = framing.encode(reply)
        except json.EncodeError as e:
            self._count('handler_errors')
            logger.error("request handler for %s returned an unencodable result: %s", received.event, e)
            reply = message.response(received.event, received.id, None, 'unencodable result')
            frame = framing.encode(reply)

        try:
            self.connection.write(frame)
        except TransportWriteError as e:
            logger.warning("failed to send response to %s (id %s): %s", received.event, received.id, e)


# end of class Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
