import argparse
import asyncio
import logging
import signal
import sys

from . import service
from .config import INTERVAL, LOG_LEVEL, NODE_ID, SERVICE_NAME, STATSD_HOST, STATSD_PORT
from .delta import DeltaTracker
from .provider import SystemProvider
from .samplers import Samplers
from .scheduler import Scheduler
from .statsd import StatsdEncoder
from .transport import UdpTransport

USAGE = """usage: statsd-agent --add [username] [password]
       statsd-agent --remove
       statsd-agent --run"""


# ================= LOOP =================
async def run(stop: asyncio.Event = None):
    if stop is None:
        stop = asyncio.Event()

    transport = UdpTransport()
    await transport.connect()

    loop = asyncio.get_running_loop()
    handled = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
            handled.append(sig)
        except (NotImplementedError, RuntimeError):
            # no signal handlers on windows event loops or outside the main thread
            pass

    tracker = DeltaTracker()
    samplers = Samplers(SystemProvider(), StatsdEncoder(NODE_ID), transport, tracker)
    scheduler = Scheduler(samplers, tracker, interval=INTERVAL)

    print(f"[agent] running... node_id={NODE_ID}, interval={INTERVAL}s")
    scheduler.start()
    try:
        await stop.wait()
    finally:
        print("[agent] stopping...")
        await scheduler.stop()
        transport.close()
        for sig in handled:
            loop.remove_signal_handler(sig)


# ================= CLI =================
def build_parser():
    parser = argparse.ArgumentParser(prog="statsd-agent", usage=USAGE, add_help=False)
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--add", nargs="*", metavar="ARG")
    group.add_argument("--remove", action="store_true")
    group.add_argument("--run", action="store_true")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")

    if args.add is not None:
        if len(args.add) > 2:
            parser.error("--add takes at most a username and a password")
        username = args.add[0] if len(args.add) > 0 else None
        password = args.add[1] if len(args.add) > 1 else None

        print("adding service...")
        try:
            service.add(SERVICE_NAME, ["--run"], username=username, password=password)
        except service.ServiceError as e:
            print(f"failed to add service: {e}", file=sys.stderr)
            return 1
        print(f"service added. Metrics sending to {STATSD_HOST}:{STATSD_PORT}")
        return 0

    if args.remove:
        print("removing service...")
        try:
            service.remove(SERVICE_NAME)
        except service.ServiceError as e:
            print(f"failed to remove service: {e}", file=sys.stderr)
            return 1
        print("service removed")
        return 0

    if args.run:
        asyncio.run(run())
        return 0

    print(USAGE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
