""" A class representation of a bits-ipc message, along with the helper
    functions that build the specific kinds of message a client sends.
"""

from ..transport.base import ParseError


# Every frame on the wire is a JSON object of the form:
#
#     {"type": "bits-ipc", "data": {...}}
#
# The inner 'type' field discriminates the kind of message.

envelope_type = 'bits-ipc'

EVENT = 'event'
REQUEST = 'request'
RESPONSE = 'response'
ADD_EVENT_LISTENER = 'addEventListener'
ADD_REQUEST_LISTENER = 'addRequestListener'
REMOVE_EVENT_LISTENER = 'removeEventListener'
REMOVE_REQUEST_LISTENER = 'removeRequestListener'

listener_types = set((ADD_EVENT_LISTENER, ADD_REQUEST_LISTENER,
                      REMOVE_EVENT_LISTENER, REMOVE_REQUEST_LISTENER))


class Message:
    """ The :class:`Message` is a thin encapsulation of a single bits-ipc
        message. The fields are in the order they appear on the wire: the
        message *type*, the *event* name it concerns, the correlation *id*
        (request and response messages only), and the *params* sequence.
        Responses may also carry an *error*, which is what the broker uses
        to reject the original request.

        The *params* are always an ordered sequence. For events and requests
        the first element is the scope block, the remaining elements are the
        positional arguments; for a response the sole element is the result.

        :ivar valid_types: A set of valid strings for the message type.
    """

    valid_types = set((EVENT, REQUEST, RESPONSE)) | listener_types

    def __init__(self, type, event=None, params=(), id=None, error=None):

        if type in self.valid_types:
            pass
        else:
            raise ValueError('invalid message type: ' + repr(type))

        if type == REQUEST or type == RESPONSE:
            if id is None:
                raise ValueError(type + ' messages require an id')
            id = str(id)

        self.type = type
        self.event = event
        self.id = id
        self.params = list(params)
        self.error = error


    def __eq__(self, other):

        if isinstance(other, Message):
            return self.to_dict() == other.to_dict()

        return NotImplemented


    def __repr__(self):
        return 'Message(' + repr(self.to_dict()['data']) + ')'


    @property
    def result(self):
        """ The result value carried by a response, which is the first and
            only element of the *params*.
        """

        if self.params:
            return self.params[0]
        return None


    def to_dict(self):
        """ Return the Python-native representation of this message, ready
            to be JSON-encoded. The key order matters to anyone comparing the
            encoded bytes, and is kept stable.
        """

        data = dict()
        data['type'] = self.type

        if self.event is not None:
            data['event'] = self.event

        if self.type == REQUEST:
            data['requestId'] = self.id
        elif self.type == RESPONSE:
            data['responseId'] = self.id

        data['params'] = self.params

        if self.error is not None:
            data['err'] = self.error

        envelope = dict()
        envelope['type'] = envelope_type
        envelope['data'] = data
        return envelope


    @classmethod
    def from_dict(cls, decoded):
        """ Interpret a decoded JSON value as a :class:`Message`. A
            :class:`ParseError` is raised if the value is not shaped like
            a bits-ipc message.
        """

        if not isinstance(decoded, dict):
            raise ParseError('message is not an object')

        if decoded.get('type') != envelope_type:
            raise ParseError('unexpected envelope type: ' + repr(decoded.get('type')))

        try:
            data = decoded['data']
        except KeyError:
            raise ParseError("message has no 'data' block")

        if not isinstance(data, dict):
            raise ParseError("message 'data' block is not an object")

        type = data.get('type')

        if type not in cls.valid_types:
            raise ParseError('invalid message type: ' + repr(type))

        event = data.get('event')

        if event is not None and not isinstance(event, str):
            raise ParseError('event name is not a string: ' + repr(event))

        if type != RESPONSE and event is None:
            raise ParseError(type + ' message has no event name')

        id = None

        if type == REQUEST:
            id = data.get('requestId')
        elif type == RESPONSE:
            id = data.get('responseId')

        if type == REQUEST or type == RESPONSE:
            if isinstance(id, str):
                pass
            elif isinstance(id, int) and not isinstance(id, bool):
                id = str(id)
            else:
                raise ParseError(type + ' message has an invalid id: ' + repr(id))

        params = data.get('params')

        # The broker's own response format carries the result in a 'result'
        # field, itself a one-element list, rather than in 'params'.

        if params is None and type == RESPONSE and 'result' in data:
            params = data['result']
            if not isinstance(params, list):
                params = [params]

        if params is None:
            params = list()
        elif not isinstance(params, list):
            raise ParseError("message 'params' is not an array")

        return cls(type, event, params, id, data.get('err'))


# end of class Message



def scope(scopes):
    """ Return the scope block that leads the params of an event or request.
        No scope, or an empty sequence, is the default (null) scope; a single
        scope is sent as-is; several scopes are sent as a list.
    """

    scopes = _normalize_scopes(scopes)

    if len(scopes) == 0:
        return {'scope': None}
    elif len(scopes) == 1:
        return {'scope': scopes[0]}
    else:
        return {'scopes': scopes}


def listener_scope(scopes):
    """ Return the scope block for a listener registration. It differs from
        :func:`scope` in that the key is always 'scopes'.
    """

    scopes = _normalize_scopes(scopes)

    if len(scopes) == 0:
        return {'scopes': None}
    elif len(scopes) == 1:
        return {'scopes': scopes[0]}
    else:
        return {'scopes': scopes}


def _normalize_scopes(scopes):

    if scopes is None:
        return list()

    if isinstance(scopes, (str, bytes)):
        return [scopes]

    return list(scopes)



def event(name, scopes=None, params=()):
    """ Build a fire-and-forget event message. """

    params = [scope(scopes)] + list(params)
    return Message(EVENT, name, params)


def request(name, id, scopes=None, params=()):
    """ Build a request message; *id* is the correlation token the response
        will echo back.
    """

    params = [scope(scopes)] + list(params)
    return Message(REQUEST, name, params, id)


def response(name, id, result, error=None):
    """ Build the response to a request received from the peer. The event
        name is included because the broker routes responses by event name.
    """

    return Message(RESPONSE, name, [result], id, error)


def listener(type, name, scopes=None):
    """ Build an add/remove listener registration message. """

    if type not in listener_types:
        raise ValueError('not a listener registration type: ' + repr(type))

    return Message(type, name, [listener_scope(scopes)])


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
