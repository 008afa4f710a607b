""" A small example client: it announces itself to the message center,
    prints heartbeat events, answers ping requests, and asks the message
    center for its system id.
"""

import argparse
import logging
import sys
import time

from . import config
from .client import Client
from .transport.base import TransportError

logger = logging.getLogger(__name__)

HEARTBEAT = 'bits-ipc#heartbeat'
PING = 'bits-ipc#ping'
CONNECTED = 'bits-ipc#Client connected'
SYSTEM_ID = 'base#System bitsId'


def build_arg_parser():
    parser = argparse.ArgumentParser(prog='bitsipc-demo', description='bits-ipc example client')
    parser.add_argument('path', help='path to the message center socket')
    parser.add_argument('--debug', action='store_true', help='enable debug logging')
    parser.add_argument('--duration', type=float, default=None,
                        help='exit after this many seconds instead of running until interrupted')
    return parser


def configure_logging(debug=False):

    if debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def on_heartbeat(params):
    print('heartbeat:', params)


def handle_ping(params):
    """ Answer a ping with the current UNIX epoch time in milliseconds. """

    return {'pong': int(time.time() * 1000)}


def main(argv=None):

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.debug)

    client = Client(args.path)
    client.add_event_listener(HEARTBEAT, on_heartbeat)
    client.add_request_listener(PING, handle_ping)

    if not client.start():
        print('unable to connect to ' + args.path, file=sys.stderr)
        return 1

    try:
        client.send_event(CONNECTED)

        try:
            system_id = client.send_request(SYSTEM_ID)
        except TransportError as e:
            logger.error("request for %s failed: %s", SYSTEM_ID, e)
        else:
            print('system id:', system_id)
            print('system socket:', config.system_socket(system_id))

        if args.duration is None:
            while True:
                time.sleep(1)
        else:
            time.sleep(args.duration)
    except KeyboardInterrupt:
        pass
    finally:
        client.stop()

    return 0


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
