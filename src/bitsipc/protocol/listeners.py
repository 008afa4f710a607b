""" Local bookkeeping for the callbacks a client has registered: any number
    of listeners per event name, and at most one request handler per event
    name. This is purely local state; telling the broker about the
    registration is the responsibility of :class:`bitsipc.Client`.
"""

import threading


class Registry:
    """ Event listeners are kept as tuples; registering a new listener
        replaces the tuple rather than modifying it, so a reader that has
        fetched the listeners for an event never sees a list that changes
        underneath it. All mutation happens under a single lock, which is
        never held while a callback runs.
    """

    def __init__(self):

        self.lock = threading.Lock()
        self.events = dict()
        self.requests = dict()


    def add_event_listener(self, name, callback):
        """ Append *callback* to the listeners for the event *name*. The
            callbacks for an event are invoked in the order they were added.
        """

        if not callable(callback):
            raise TypeError('callback must be callable')

        self.lock.acquire()
        existing = self.events.get(name, ())
        self.events[name] = existing + (callback,)
        self.lock.release()


    def remove_event_listener(self, name, callback):
        """ Remove the first registration of *callback* for the event *name*.
            Returns False if it was not registered.
        """

        self.lock.acquire()
        try:
            existing = self.events.get(name, ())

            try:
                index = existing.index(callback)
            except ValueError:
                return False

            remaining = existing[:index] + existing[index + 1:]

            if remaining:
                self.events[name] = remaining
            else:
                del self.events[name]
        finally:
            self.lock.release()

        return True


    def event_listeners(self, name):
        """ Return the tuple of callbacks registered for the event *name*,
            which may be empty.
        """

        # A single dictionary lookup; the tuple itself is never modified.
        return self.events.get(name, ())


    def add_request_listener(self, name, callback):
        """ Install *callback* as the handler for requests named *name*,
            replacing any previous handler.
        """

        if not callable(callback):
            raise TypeError('callback must be callable')

        self.lock.acquire()
        self.requests[name] = callback
        self.lock.release()


    def remove_request_listener(self, name):
        """ Remove the handler for requests named *name*. Returns False if
            there was none.
        """

        self.lock.acquire()
        removed = self.requests.pop(name, None)
        self.lock.release()

        return removed is not None


    def request_listener(self, name):
        """ Return the handler for requests named *name*, or None. """

        return self.requests.get(name)


# end of class Registry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
