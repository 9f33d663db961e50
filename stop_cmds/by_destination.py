"""Stop the client connections that consume from a given queue or topic.

Subscriptions cannot be stopped themselves. Each consumer subscription view
carries a `Connection` attribute that refers to the owning connection view,
and that connection is what gets stopped. Subscriptions whose `consumerId`
contains `->` belong to network bridges between brokers and are left alone.
"""
from __future__ import annotations

import logging
from typing import Optional, Set

from broker import connection_config
from broker.exceptions import AttributeNotFoundError, InstanceNotFoundError, ManagementOperationError
from broker.utils.object_name import ObjectName, build_pattern
from killer.jolokia_client import JolokiaConnection
from killer.model import ManagedObject, ObjectKind, StopOutcome

LOGGER = logging.getLogger(__name__)


def is_bridge(candidate: ManagedObject) -> bool:
    consumer_id = candidate.key_property(connection_config.CONSUMER_ID_KEY) or ""
    return connection_config.BRIDGE_TOKEN in consumer_id


def owning_connection(connection: JolokiaConnection, candidate: ManagedObject) -> Optional[ObjectName]:
    """Return the connection that owns the subscription, or None if there is nothing to stop."""
    try:
        value = connection.get_attribute(candidate.name, connection_config.CONNECTION_ATTRIBUTE)
    except InstanceNotFoundError:
        LOGGER.debug("Subscription %s is already gone", candidate.name)
        return None
    except AttributeNotFoundError:
        LOGGER.warning("Connection attribute missing for %s - ignoring", candidate.name)
        return None
    except ManagementOperationError as exc:
        LOGGER.info("Failed to read connection of %s: %s", candidate.name, exc)
        return None
    if isinstance(value, ObjectName):
        return value
    return None


def stop_one(
    connection: JolokiaConnection,
    candidate: ManagedObject,
    stopped_owners: Optional[Set[str]] = None,
) -> StopOutcome:
    """Stop the owner of one subscription. Owners listed in `stopped_owners` are skipped."""
    if candidate.kind is not ObjectKind.SUBSCRIPTION_VIEW:
        return StopOutcome.SKIPPED
    if is_bridge(candidate):
        LOGGER.info("Skipping bridge %s", candidate.name)
        return StopOutcome.SKIPPED

    owner = owning_connection(connection, candidate)
    if owner is None:
        return StopOutcome.SKIPPED
    if stopped_owners is not None and owner.canonical in stopped_owners:
        LOGGER.debug("Connection %s already stopped", owner)
        return StopOutcome.SKIPPED

    LOGGER.info("Stopping %s...", owner)
    try:
        connection.invoke(owner, connection_config.STOP_OPERATION)
    except ManagementOperationError as exc:
        LOGGER.info("Failed to stop %s", owner)
        LOGGER.debug("Stop of %s rejected: %s", owner, exc)
        return StopOutcome.FAILED
    LOGGER.info("Stopped %s", owner)
    if stopped_owners is not None:
        stopped_owners.add(owner.canonical)
    return StopOutcome.STOPPED


def run(connection: JolokiaConnection, destination_name: str, max_to_stop: int) -> int:
    """Stop up to `max_to_stop` connections consuming from `destination_name`."""
    pattern = build_pattern(
        connection_config.SUBSCRIBER_PATTERN,
        domain=connection_config.JMX_DOMAIN,
        destination=destination_name,
    )
    LOGGER.info("Finding SubscriptionView MBeans for %s...", destination_name)
    candidates = connection.query(pattern)
    LOGGER.info("Processing %d beans...", len(candidates))

    stopped = 0
    stopped_owners: Set[str] = set()
    for candidate in candidates:
        if stop_one(connection, candidate, stopped_owners) is StopOutcome.STOPPED:
            stopped += 1
            if stopped >= max_to_stop:
                break
    return stopped


__all__ = ["is_bridge", "owning_connection", "stop_one", "run"]
