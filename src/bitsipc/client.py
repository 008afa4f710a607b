""" The :class:`Client` is the public face of a bits-ipc connection. It ties
    together the socket connection, the dispatch loop, and the local
    registries of outstanding requests and listeners.
"""

import logging
import threading

from . import config
from . import json
from .dispatch import Dispatcher
from .protocol import correlation
from .protocol import framing
from .protocol import listeners
from .protocol import message
from .transport.base import TransportConnectionError, TransportTimeout, TransportWriteError
from .transport.connection import Connection

logger = logging.getLogger(__name__)

_default = object()


class Client:
    """ A client of the bits-ipc message center listening on the Unix domain
        socket at *path*. If no *path* is given the ``BITS_IPC_SOCKET``
        environment variable is used.

        Nothing happens on the wire until :func:`start` is called. Listeners
        may be added before or after starting; registrations made before
        :func:`start`, or before a stop/start cycle, are sent to the broker
        when the connection is (re)established.

        The *read_timeout* bounds how long the dispatch loop waits for data
        before checking whether it should stop; the *request_timeout* is the
        default number of seconds :func:`send_request` will wait for a
        response, None meaning forever. Both default to the values in
        :mod:`bitsipc.config`.

        All of the sending and registration methods may be called from any
        number of threads concurrently.
    """

    def __init__(self, path=None, read_timeout=None, request_timeout=_default):

        if request_timeout is _default:
            request_timeout = config.get_request_timeout()

        self.path = config.socket_path(path)
        self.read_timeout = read_timeout
        self.request_timeout = request_timeout

        self.correlation = correlation.Registry()
        self.listeners = listeners.Registry()

        self.connection = None
        self.dispatcher = None
        self.thread = None

        # Broker-side registrations, so they can be replayed on (re)connect.
        # Event registrations are keyed by (event, scope block) so that a
        # second local listener for the same event and scopes does not ask
        # the broker to deliver the event twice.

        self.registration_lock = threading.Lock()
        self.event_registrations = dict()
        self.request_registrations = dict()

        self.state_lock = threading.Lock()
        self.started = False


    def __enter__(self):

        if not self.start():
            raise TransportConnectionError('unable to connect to ' + self.path)

        return self


    def __exit__(self, exc_type, exc_value, traceback):
        self.stop()


    def start(self, background=True):
        """ Connect to the broker. If *background* is True a daemon thread is
            started to dispatch inbound messages; otherwise no threads are
            created, and the caller is required to call :func:`dispatch`
            periodically for requests, responses and events to be handled.

            Returns False if the connection could not be established.
        """

        self.state_lock.acquire()
        try:
            if self.started:
                return True

            connection = Connection(self.path, self.read_timeout)

            try:
                connection.connect()
            except TransportConnectionError as e:
                logger.error("failed to connect to the message center: %s", e)
                return False

            self.connection = connection
            self.dispatcher = Dispatcher(connection, self.correlation, self.listeners)

            if background:
                thread = threading.Thread(target=self.dispatcher.run, name='bitsipc-dispatch')
                thread.daemon = True
                thread.start()
                self.thread = thread

            # A listener added concurrently is sent exactly once: either it
            # is recorded before this point and replayed here, or it sees
            # 'started' and sends its own registration.

            self.registration_lock.acquire()
            try:
                self.started = True
                self._replay_registrations()
            finally:
                self.registration_lock.release()
        finally:
            self.state_lock.release()

        logger.info("connected to the message center at %s", self.path)
        return True


    def stop(self):
        """ Stop the background dispatch thread, if any, and close the
            connection. The dispatch thread notices within one read timeout.
            Any requests still waiting for a response fail with
            :class:`bitsipc.RequestCancelled`. Calling :func:`stop` more
            than once is harmless.
        """

        self.state_lock.acquire()
        try:
            if not self.started:
                return

            self.started = False
            self.dispatcher.stop()

            thread = self.thread
            self.thread = None

            if thread is not None and thread is not threading.current_thread():
                thread.join()

            self.connection.close()
        finally:
            self.state_lock.release()

        cancelled = self.correlation.cancel_all('cancelled, client stopped')

        if cancelled:
            logger.info("cancelled %d outstanding requests", cancelled)


    def dispatch(self, maximum=0, timeout=None):
        """ Handle inbound messages from the calling thread, for applications
            that started the client with background=False. Returns after
            *maximum* messages have been handled (zero meaning no limit), or
            *timeout* seconds have elapsed, or :func:`stop` is called; the
            return value is the number of messages handled.
        """

        dispatcher = self.dispatcher

        if dispatcher is None or not self.started:
            raise TransportConnectionError('client is not started')

        return dispatcher.dispatch(maximum, timeout)


    def send_event(self, event, scopes=None, params=()):
        """ Send a fire-and-forget *event*. The *scopes* narrow who receives
            the event; the *params* are the ordered arguments that accompany
            it. Returns True if the event was written to the socket.
        """

        outbound = message.event(event, scopes, params)
        return self._send(outbound)


    def request(self, event, scopes=None, params=()):
        """ Send a request without waiting for the response. The returned
            :class:`bitsipc.protocol.correlation.Pending` instance can be
            waited on, polled, or cancelled. A
            :class:`bitsipc.TransportWriteError` is raised if the request
            could not be sent.
        """

        id = self.correlation.generate_id()
        frame = framing.encode(message.request(event, id, scopes, params))

        # Register first: the response can arrive before write() returns.

        pending = self.correlation.register(id)

        try:
            self._write(frame)
        except TransportWriteError:
            self.correlation.abandon(id)
            raise

        return pending


    def send_request(self, event, scopes=None, params=(), timeout=_default):
        """ Send a request and block until the matching response arrives,
            returning the result value. If no response arrives within
            *timeout* seconds (by default, the client's request timeout) a
            :class:`bitsipc.TransportTimeout` is raised and the request is
            abandoned. A :class:`bitsipc.RequestError` is raised if the peer
            reports an error.
        """

        if timeout is _default:
            timeout = self.request_timeout

        pending = self.request(event, scopes, params)

        try:
            return pending.wait(timeout)
        except TransportTimeout:
            self.correlation.abandon(pending.id)
            raise


    def expire(self, age):
        """ Abandon any outstanding request older than *age* seconds; the
            callers waiting on them receive a :class:`bitsipc.TransportTimeout`.
            Returns the number of abandoned requests.
        """

        return self.correlation.expire(age)


    def add_event_listener(self, event, callback, scopes=None):
        """ Invoke *callback* every time *event* arrives. The callback receives
            the event's params list as its sole argument. Multiple callbacks
            for the same event are invoked in the order they were added.

            Returns False if the registration could not be sent to a
            connected broker.
        """

        self.listeners.add_event_listener(event, callback)

        scope_block = message.listener_scope(scopes)
        key = (event, json.dumps(scope_block))

        self.registration_lock.acquire()
        try:
            if key in self.event_registrations:
                return True

            self.event_registrations[key] = scopes
            return self._register(message.ADD_EVENT_LISTENER, event, scopes)
        finally:
            self.registration_lock.release()


    def remove_event_listener(self, event, callback, scopes=None):
        """ Stop invoking *callback* for *event*. Once the last callback for
            *event* is removed the broker is told to stop routing it here.
            Returns False if *callback* was not registered.
        """

        if not self.listeners.remove_event_listener(event, callback):
            return False

        if self.listeners.event_listeners(event):
            return True

        self.registration_lock.acquire()
        try:
            for key in list(self.event_registrations):
                if key[0] == event:
                    del self.event_registrations[key]

            self._register(message.REMOVE_EVENT_LISTENER, event, scopes)
        finally:
            self.registration_lock.release()

        return True


    def add_request_listener(self, event, callback, scopes=None):
        """ Handle inbound requests named *event* with *callback*, replacing
            any previous handler. The callback receives the request's params
            list as its sole argument; its return value is sent back as the
            response. If it raises, the response carries the error text
            instead.

            Returns False if the registration could not be sent to a
            connected broker.
        """

        self.listeners.add_request_listener(event, callback)

        self.registration_lock.acquire()
        try:
            self.request_registrations[event] = scopes
            return self._register(message.ADD_REQUEST_LISTENER, event, scopes)
        finally:
            self.registration_lock.release()


    def remove_request_listener(self, event, scopes=None):
        """ Stop handling inbound requests named *event*. Returns False if
            there was no handler.
        """

        if not self.listeners.remove_request_listener(event):
            return False

        self.registration_lock.acquire()
        try:
            self.request_registrations.pop(event, None)
            self._register(message.REMOVE_REQUEST_LISTENER, event, scopes)
        finally:
            self.registration_lock.release()

        return True


    def statistics(self):
        """ Return a dictionary of message counters from the dispatch loop,
            plus the number of requests currently awaiting a response.
        """

        dispatcher = self.dispatcher

        if dispatcher is None:
            counters = Dispatcher(None, None, None).statistics()
        else:
            counters = dispatcher.statistics()

        counters['pending'] = len(self.correlation)
        return counters


    def _register(self, type, event, scopes):
        """ Tell the broker about a listener registration, if connected.
            Registrations made while disconnected are sent by :func:`start`.
            The caller holds the registration lock.
        """

        if not self.started:
            return True

        return self._send(message.listener(type, event, scopes))


    def _replay_registrations(self):
        """ Send every recorded registration. The caller holds the
            registration lock.
        """

        events = list(self.event_registrations.items())
        requests = list(self.request_registrations.items())

        for (event, _key), scopes in events:
            self._send(message.listener(message.ADD_EVENT_LISTENER, event, scopes))

        for event, scopes in requests:
            self._send(message.listener(message.ADD_REQUEST_LISTENER, event, scopes))


    def _send(self, outbound):
        """ Write the *outbound* message, returning False rather than raising
            if the write fails.
        """

        try:
            self._write(framing.encode(outbound))
        except TransportWriteError as e:
            logger.warning("failed to send %s for %s: %s", outbound.type, outbound.event, e)
            return False

        return True


    def _write(self, frame):

        connection = self.connection

        if connection is None:
            raise TransportWriteError('client is not started')

        connection.write(frame)


# end of class Client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
