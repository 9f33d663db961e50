"""Chooses the stop strategy for a selection criterion."""
from __future__ import annotations

import sys

from broker.exceptions import ConfigurationError
from stop_cmds import by_address, by_destination

from .jolokia_client import JolokiaConnection
from .model import ByClientAddress, ByDestination, Criterion


def terminate(connection: JolokiaConnection, criterion: Criterion, max_to_stop: int = sys.maxsize) -> int:
    """Stop the connections selected by `criterion` and return how many were stopped."""
    if max_to_stop < 1:
        raise ConfigurationError(f"Maximum connections to stop must be positive, got {max_to_stop}")
    if isinstance(criterion, ByDestination):
        return by_destination.run(connection, criterion.name, max_to_stop)
    if isinstance(criterion, ByClientAddress):
        return by_address.run(connection, criterion.ip, max_to_stop)
    raise ConfigurationError(f"Unsupported selection criterion {criterion!r}")


__all__ = ["terminate"]
