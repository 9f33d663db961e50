"""Command line tool that stops selected client connections on an ActiveMQ broker.

Useful for broker clusters without dynamic load balancing: clients that
reconnect through a fail-over URL end up on another broker once their
connection is stopped, which rebalances the cluster without touching iptables.

Responsibilities covered here:
- Parse the command line into an immutable `KillerConfig`.
- Attach to the broker process and find its local management endpoint.
- Open a management connection and run the stop strategy for the criterion.
- Report the result and release the connection and process handle on every path.
"""
from __future__ import annotations

import argparse
import ipaddress
import logging
import sys
import traceback
from dataclasses import dataclass
from typing import List, Optional

from broker import connection_config
from broker.exceptions import ConfigurationError, ProcessNotFoundError
from broker.utils.object_name import build_pattern
from broker.utils.process_attach import attach

from .jolokia_client import connect
from .model import ByClientAddress, ByDestination, Criterion
from .selector import terminate

LOGGER = logging.getLogger("killer.main")


@dataclass(frozen=True)
class KillerConfig:
    """Validated options for one run."""

    process_id: int
    client_ip: Optional[str] = None
    destination_name: Optional[str] = None
    max_connections: int = sys.maxsize
    verbose: bool = False
    jolokia_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.client_ip and not self.destination_name:
            raise ConfigurationError("Please specify IP address or destination name.")
        if self.client_ip and not self.destination_name:
            try:
                ipaddress.ip_address(self.client_ip)
            except ValueError as exc:
                raise ConfigurationError(f"Invalid IP address {self.client_ip!r}") from exc
        if self.max_connections < 1:
            raise ConfigurationError(f"Maximum connections to stop must be positive, got {self.max_connections}")
        if self.destination_name:
            build_pattern(
                connection_config.SUBSCRIBER_PATTERN,
                domain=connection_config.JMX_DOMAIN,
                destination=self.destination_name,
            )

    def criterion(self) -> Criterion:
        # Destination mode wins when both are given.
        if self.destination_name:
            return ByDestination(self.destination_name)
        if self.client_ip:
            return ByClientAddress(self.client_ip)
        raise ConfigurationError("Please specify IP address or destination name.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activemq-client-killer",
        description="Stop ActiveMQ client connections by client IP or destination name",
    )
    parser.add_argument("-a", "--ip-address", dest="client_ip", help="IP address for client to kill")
    parser.add_argument("-d", "--destination-name", dest="destination_name", help="Queue or topic name to kill clients for")
    parser.add_argument("-p", "--pid", dest="process_id", type=int, required=True, help="ActiveMQ process id")
    parser.add_argument(
        "-c",
        "--max-connections-to-stop",
        dest="max_connections",
        type=int,
        default=None,
        help="Maximum number of client connections to stop (at least 1, default unbounded)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    parser.add_argument(
        "-u",
        "--jolokia-url",
        dest="jolokia_url",
        default=connection_config.JOLOKIA_URL_OVERRIDE,
        help="Management agent URL to use instead of the one found on the process",
    )
    return parser


def build_config(args: argparse.Namespace) -> KillerConfig:
    return KillerConfig(
        process_id=args.process_id,
        client_ip=args.client_ip.strip() if args.client_ip else None,
        destination_name=args.destination_name.strip() if args.destination_name else None,
        max_connections=args.max_connections if args.max_connections is not None else sys.maxsize,
        verbose=args.verbose,
        jolokia_url=args.jolokia_url,
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(stream=sys.stdout, format="%(message)s", level=logging.INFO if verbose else logging.WARNING)


def run(config: KillerConfig) -> Optional[int]:
    """Execute one run. Returns the stopped count, or None if the run was aborted."""
    criterion = config.criterion()
    try:
        with attach(config.process_id) as process:
            LOGGER.info("Attached to broker process %d", config.process_id)
            address = config.jolokia_url or process.management_address()
            if not address:
                print("Could not find local management endpoint", file=sys.stderr)
                return None
            LOGGER.info("Connecting to management endpoint %s", address)
            with connect(address) as connection:
                stopped = terminate(connection, criterion, config.max_connections)
    except ProcessNotFoundError as exc:
        print(f"Could not attach to broker process: {exc}", file=sys.stderr)
        return None
    except Exception:
        print("Failed to stop client connections!", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return None

    if stopped > 0:
        print(f"Stopped {stopped} client connections")
    else:
        print("No matching client connections")
    return stopped


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_config(args)
    except ConfigurationError as exc:
        print(exc)
        print("The supported options are:")
        parser.print_help()
        return
    _configure_logging(config.verbose)
    run(config)


if __name__ == "__main__":
    main()
