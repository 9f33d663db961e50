"""Stop client connections opened from a given IP address.

Each inbound client connection is published as a connection view whose
`connectionName` key embeds the remote socket address, e.g.
`tcp_//10.0.0.1_53712`. The IP only counts as a match when it sits between the
`//` and `_` delimiters, so `10.0.0.1` never matches `10.0.0.11`. Matching
connections are stopped directly.
"""
from __future__ import annotations

import logging
from typing import Optional

from broker import connection_config
from broker.exceptions import ManagementOperationError
from broker.utils.object_name import build_pattern
from killer.jolokia_client import JolokiaConnection
from killer.model import ManagedObject, ObjectKind, StopOutcome

LOGGER = logging.getLogger(__name__)


def delimited_address(client_ip: str) -> str:
    return f"{connection_config.ADDRESS_PREFIX}{client_ip}{connection_config.ADDRESS_SUFFIX}"


def matches(connection_name: Optional[str], client_ip: str) -> bool:
    """Return True when `connection_name` carries `client_ip` as a delimited token."""
    if not connection_name:
        return False
    return delimited_address(client_ip) in connection_name


def stop_one(connection: JolokiaConnection, candidate: ManagedObject, client_ip: str) -> StopOutcome:
    if candidate.kind is not ObjectKind.CONNECTION_VIEW:
        return StopOutcome.SKIPPED
    connection_name = candidate.key_property(connection_config.CONNECTION_NAME_KEY)
    if not matches(connection_name, client_ip):
        return StopOutcome.SKIPPED

    LOGGER.info("Stopping %s...", connection_name)
    try:
        connection.invoke(candidate.name, connection_config.STOP_OPERATION)
    except ManagementOperationError as exc:
        LOGGER.info("Failed to stop %s", connection_name)
        LOGGER.debug("Stop of %s rejected: %s", candidate.name, exc)
        return StopOutcome.FAILED
    LOGGER.info("Stopped %s", connection_name)
    return StopOutcome.STOPPED


def run(connection: JolokiaConnection, client_ip: str, max_to_stop: int) -> int:
    """Stop up to `max_to_stop` connections from `client_ip`. Returns the number stopped."""
    pattern = build_pattern(connection_config.CLIENT_CONNECTOR_PATTERN, domain=connection_config.JMX_DOMAIN)
    LOGGER.info("Finding ConnectionView MBeans...")
    candidates = connection.query(pattern)
    LOGGER.info("Processing %d beans...", len(candidates))

    stopped = 0
    for candidate in candidates:
        if stop_one(connection, candidate, client_ip) is StopOutcome.STOPPED:
            stopped += 1
            if stopped >= max_to_stop:
                break
    return stopped


__all__ = ["delimited_address", "matches", "stop_one", "run"]
