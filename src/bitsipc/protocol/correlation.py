""" Correlation of outbound requests with the responses that eventually
    arrive for them. Each outstanding request has exactly one
    :class:`Pending` slot in a :class:`Registry`; the slot is removed from
    the registry the moment it is completed, one way or another.
"""

import itertools
import logging
import random
import threading
import time

from ..transport.base import RequestCancelled, RequestError, TransportTimeout

logger = logging.getLogger(__name__)


class Pending:
    """ A single-assignment completion slot for one outstanding request. The
        caller that issued the request blocks in :func:`wait`; the dispatch
        loop completes the slot when the matching response arrives.

        :ivar id: The correlation id of the request.
        :ivar timestamp: A UNIX epoch timestamp for when the slot was created.
        :ivar response: The result value, once one has been delivered.
    """

    def __init__(self, id, registry=None):

        self.id = id
        self.registry = registry
        self.timestamp = time.time()
        self.response = None
        self.exception = None
        self.rep_event = threading.Event()


    def __repr__(self):

        if self.rep_event.is_set():
            state = 'complete'
        else:
            state = 'pending'

        return "<Pending %s %s>" % (self.id, state)


    def _complete(self, value):
        """ Locally store the response and signal any callers blocking via
            :func:`wait` to proceed.
        """

        self.response = value
        self.rep_event.set()


    def _fail(self, exception):
        """ Store the *exception* that :func:`wait` will raise, and signal
            any callers blocking via :func:`wait` to proceed.
        """

        self.exception = exception
        self.rep_event.set()


    def cancel(self):
        """ Abandon the request. Any caller blocked in :func:`wait` will
            receive a :class:`RequestCancelled` exception; a response that
            arrives later is dropped. Returns False if the request had
            already completed.
        """

        exception = RequestCancelled('request ' + self.id + ' cancelled')

        if self.registry is None:
            if self.rep_event.is_set():
                return False
            self._fail(exception)
            return True

        return self.registry.abandon(self.id, exception)


    def poll(self):
        """ Return True if the request is complete, otherwise return False.
        """

        return self.rep_event.is_set()


    def wait(self, timeout=None):
        """ Block until the request has been handled, and return the result.
            If the *timeout* (in seconds) expires first a
            :class:`TransportTimeout` is raised; the request stays pending
            and can be waited on again. If the *timeout* is None this will
            block indefinitely.
        """

        completed = self.rep_event.wait(timeout)

        if not completed:
            raise TransportTimeout("no response to request %s in %.2f sec" % (self.id, timeout))

        if self.exception is not None:
            raise self.exception

        return self.response


# end of class Pending



class Registry:
    """ Map correlation ids of outstanding requests to their :class:`Pending`
        slots, and generate the ids. The id counter starts from a random
        *seed* and increments from there for the life of the registry; it
        is never reset, even if the underlying connection is.

        :ivar unmatched: The number of responses that arrived for an id with
            no live entry.
    """

    def __init__(self, seed=None):

        if seed is None:
            seed = random.randrange(_seed_max)

        self.lock = threading.Lock()
        self.pending = dict()
        self.unmatched = 0

        # The id counter has its own lock; generating an id never contends
        # with the dispatch thread fulfilling a response.

        self._id_lock = threading.Lock()
        self._id_ticker = itertools.count(seed)


    def __contains__(self, id):
        return id in self.pending


    def __len__(self):
        return len(self.pending)


    def generate_id(self):
        """ Return a new correlation id. The counter is unbounded, so an id
            is never reused by the same registry.
        """

        self._id_lock.acquire()
        id = next(self._id_ticker)
        self._id_lock.release()

        return str(id)


    def register(self, id):
        """ Create and return the :class:`Pending` slot for the request
            identified by *id*.
        """

        pending = Pending(id, self)

        self.lock.acquire()
        try:
            if id in self.pending:
                raise ValueError('request id already pending: ' + repr(id))
            self.pending[id] = pending
        finally:
            self.lock.release()

        return pending


    def fulfill(self, id, value, error=None):
        """ Deliver *value* to the slot for *id* and remove the entry. If an
            *error* is provided the waiting caller receives a
            :class:`RequestError` instead. A response for an unknown id,
            whether it was never issued, already fulfilled, or abandoned,
            is dropped; the return value is False in that case.
        """

        self.lock.acquire()
        pending = self.pending.pop(id, None)
        if pending is None:
            self.unmatched += 1
        self.lock.release()

        if pending is None:
            logger.debug("dropping response for unknown request id %s", id)
            return False

        if error is None:
            pending._complete(value)
        else:
            pending._fail(RequestError(error))

        return True


    def abandon(self, id, exception=None):
        """ Remove the entry for *id* without delivering a response. If an
            *exception* is provided, any caller waiting on the slot receives
            it. Returns False if there was no such entry.
        """

        self.lock.acquire()
        pending = self.pending.pop(id, None)
        self.lock.release()

        if pending is None:
            return False

        if exception is not None:
            pending._fail(exception)

        return True


    def expire(self, age):
        """ Evict every entry older than *age* seconds, failing the waiting
            callers with a :class:`TransportTimeout`. Returns the number of
            evicted entries.
        """

        cutoff = time.time() - age
        expired = list()

        self.lock.acquire()
        for id, pending in list(self.pending.items()):
            if pending.timestamp < cutoff:
                expired.append(pending)
                del self.pending[id]
        self.lock.release()

        for pending in expired:
            pending._fail(TransportTimeout("request %s expired after %.2f sec" % (pending.id, age)))

        if expired:
            logger.debug("expired %d pending requests", len(expired))

        return len(expired)


    def cancel_all(self, reason='cancelled'):
        """ Fail every outstanding request with a :class:`RequestCancelled`
            exception. Returns the number of cancelled requests.
        """

        self.lock.acquire()
        cancelled = list(self.pending.values())
        self.pending.clear()
        self.lock.release()

        for pending in cancelled:
            pending._fail(RequestCancelled("request %s %s" % (pending.id, reason)))

        return len(cancelled)


# end of class Registry


_seed_max = 0x7FFFFFFF


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
