"""Configuration shared between the endpoint locator, the management client and the CLI.

This module centralises the values that describe how to reach a broker's
management agent and how the broker names its management objects. Transport
settings are overridable via environment variables (or a `.env` file) so that
operators can point the tool at a non-default agent without editing code.
"""
from __future__ import annotations

import os

try:  # pragma: no cover - optional convenience import
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass

JOLOKIA_URL_OVERRIDE: str | None = os.getenv("ACTIVEMQ_JOLOKIA_URL") or None
"""Management endpoint to use instead of the one derived from the broker process."""

JOLOKIA_USER: str | None = os.getenv("JOLOKIA_USER") or None
JOLOKIA_PASSWORD: str | None = os.getenv("JOLOKIA_PASSWORD") or None

JOLOKIA_TIMEOUT_SEC: float = float(os.getenv("JOLOKIA_TIMEOUT_SEC", "10.0"))
"""Per-request timeout enforced by the HTTP transport."""

JOLOKIA_DEFAULT_PROTOCOL = "http"
JOLOKIA_DEFAULT_HOST = "localhost"
JOLOKIA_DEFAULT_PORT: int = int(os.getenv("JOLOKIA_DEFAULT_PORT", "8778"))
JOLOKIA_DEFAULT_CONTEXT = "/jolokia"
JOLOKIA_AGENT_PROPERTY = "jolokia.agent"
"""Agent property holding the local management endpoint address."""

JMX_DOMAIN: str = os.getenv("ACTIVEMQ_JMX_DOMAIN", "org.apache.activemq")

CLIENT_CONNECTOR_PATTERN = (
    "{domain}:type=Broker,connector=clientConnectors,connectionViewType=remoteAddress,*"
)
SUBSCRIBER_PATTERN = "{domain}:type=Broker,destinationName={destination},endpoint=Consumer,*"

CONNECTION_VIEW_CLASS = "org.apache.activemq.broker.jmx.ConnectionView"
SUBSCRIPTION_VIEW_CLASS = "org.apache.activemq.broker.jmx.SubscriptionView"

CONNECTION_NAME_KEY = "connectionName"
CONSUMER_ID_KEY = "consumerId"
CONNECTION_ATTRIBUTE = "Connection"
STOP_OPERATION = "stop"

ADDRESS_PREFIX = "//"
ADDRESS_SUFFIX = "_"
"""Delimiters around the remote IP inside a connection name, e.g. `tcp_//10.0.0.1_61616`."""

BRIDGE_TOKEN = "->"
"""Marks consumer ids created by network bridges rather than clients."""
