"""
Command-line entry point.

    site-agent status
    site-agent connect | reconnect
    site-agent send CATEGORY KEY [--data JSON] [--queue]
    site-agent flush
    site-agent verify TOKEN
"""

import sys
import json
import argparse
import logging

from .constants import AGENT_VERSION
from .config import log, safe_print, load_config, setup_logging, LOG_FILE_NAME
from .events import Event
from .outcomes import is_error
from .app import SiteAgent


def build_parser():
    parser = argparse.ArgumentParser(
        prog="site-agent",
        description="Report site events to the collector.",
    )
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {AGENT_VERSION}")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show connection state")
    sub.add_parser("connect", help="Handshake with the collector")
    sub.add_parser("reconnect", help="Re-handshake using the current token")
    sub.add_parser("flush", help="Send queued events")

    send = sub.add_parser("send", help="Send a single event")
    send.add_argument("category")
    send.add_argument("key")
    send.add_argument("--data", default="{}", help="Event data as a JSON object")
    send.add_argument("--queue", action="store_true", help="Queue the event if delivery fails")

    verify = sub.add_parser("verify", help="Check a verification token")
    verify.add_argument("token")
    return parser


def _status(agent):
    safe_print(f"Collector:  {agent.config.collector_url}")
    safe_print(f"Connected:  {'yes' if agent.connection.is_connected() else 'no'}")
    safe_print(f"Throttled:  {'yes' if agent.connection.gate.is_throttled() else 'no'}")
    safe_print(f"Attempts:   {agent.connection.gate.attempts}")
    safe_print(f"Queued:     {len(agent.outbox.pending())}")
    return 0


def _send(agent, args):
    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        safe_print(f"--data is not valid JSON: {e}")
        return 1
    if not isinstance(data, dict):
        safe_print("--data must be a JSON object")
        return 1

    result = agent.send(Event(args.category, args.key, data), queue_on_failure=args.queue)
    if is_error(result):
        safe_print(f"Not delivered: {result}")
        return 1
    safe_print(json.dumps(result, indent=2))
    return 0


def run(args):
    config = load_config(args.config)
    setup_logging(config.path(LOG_FILE_NAME), logging.DEBUG if args.verbose else logging.INFO)
    agent = SiteAgent(config)

    if args.command == "status":
        return _status(agent)
    if args.command == "connect":
        return 0 if agent.ensure_connected() else 1
    if args.command == "reconnect":
        return 0 if agent.connection.reconnect() else 1
    if args.command == "send":
        return _send(agent, args)
    if args.command == "flush":
        sent, remaining = agent.flush()
        safe_print(f"Sent {sent}, {remaining} still queued")
        return 0 if remaining == 0 else 1
    if args.command == "verify":
        body, status = agent.connection.verify_request({"token": args.token})
        safe_print(json.dumps(body))
        return 0 if status == 200 else 1
    return 1


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except KeyboardInterrupt:
        safe_print("\nStopped by user.")
        return 1
    except Exception as e:
        log.error("site-agent %s failed: %s", args.command, e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
