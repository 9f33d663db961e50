"""Helpers for attaching to a local broker process and finding its management endpoint.

The broker exposes its management objects through a Jolokia agent. When the
agent is loaded with `-javaagent:jolokia-jvm.jar=port=8778,host=localhost` (or
the address is published as `-Djolokia.agent=<url>`), the endpoint can be read
straight from the process command line. The helpers wrap psutil so callers get
a handle with deterministic cleanup and a plain dictionary of agent properties.
"""
from __future__ import annotations

import ipaddress
import logging
import os
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Dict, List, Optional

import psutil

from broker import connection_config
from broker.exceptions import BrokerToolError, ProcessNotFoundError

LOGGER = logging.getLogger(__name__)

_JAVAAGENT_PREFIX = "-javaagent:"
_WILDCARD_HOSTS = {"*", "0.0.0.0", "::", "[::]"}


def _parse_system_properties(cmdline: List[str]) -> Dict[str, str]:
    """Collect `-Dkey=value` JVM system properties from a command line."""
    properties: Dict[str, str] = {}
    for arg in cmdline:
        if not arg.startswith("-D") or len(arg) <= 2:
            continue
        key, _, value = arg[2:].partition("=")
        properties[key] = value
    return properties


def _parse_agent_options(cmdline: List[str]) -> Optional[Dict[str, str]]:
    """Return the option map of the first Jolokia `-javaagent` argument, if any."""
    for arg in cmdline:
        if not arg.startswith(_JAVAAGENT_PREFIX):
            continue
        jar, _, raw_options = arg[len(_JAVAAGENT_PREFIX):].partition("=")
        if "jolokia" not in os.path.basename(jar).lower():
            continue
        options: Dict[str, str] = {}
        for item in raw_options.split(","):
            key, sep, value = item.partition("=")
            if sep and key.strip():
                options[key.strip()] = value.strip()
        return options
    return None


def _format_host(host: str) -> str:
    if host in _WILDCARD_HOSTS:
        return "127.0.0.1"
    try:
        if ipaddress.ip_address(host).version == 6:
            return f"[{host}]"
    except ValueError:
        pass
    return host


def agent_url_from_options(options: Dict[str, str]) -> str:
    """Build the agent URL from `-javaagent` options, applying the agent defaults."""
    protocol = options.get("protocol") or connection_config.JOLOKIA_DEFAULT_PROTOCOL
    host = _format_host(options.get("host") or connection_config.JOLOKIA_DEFAULT_HOST)
    port = options.get("port") or str(connection_config.JOLOKIA_DEFAULT_PORT)
    context = options.get("agentContext") or connection_config.JOLOKIA_DEFAULT_CONTEXT
    context = "/" + context.strip("/") + "/"
    return f"{protocol}://{host}:{port}{context}"


@dataclass
class AttachedProcess(AbstractContextManager["AttachedProcess"]):
    """Handle on a running broker process, detached explicitly or on context exit."""

    pid: int

    def __post_init__(self) -> None:
        try:
            self._process: Optional[psutil.Process] = psutil.Process(self.pid)
            self._cmdline = self._process.cmdline()
        except psutil.NoSuchProcess as exc:
            raise ProcessNotFoundError(self.pid) from exc
        except psutil.AccessDenied as exc:
            raise ProcessNotFoundError(self.pid, "is not accessible") from exc
        except ValueError as exc:
            raise ProcessNotFoundError(self.pid, "is not a valid process id") from exc
        LOGGER.debug("Attached to process %d", self.pid)

    @property
    def attached(self) -> bool:
        return self._process is not None

    def agent_properties(self) -> Dict[str, str]:
        """Return the JVM system properties plus the derived `jolokia.agent` address."""
        if self._process is None:
            raise BrokerToolError(f"Process {self.pid} is already detached")
        properties = _parse_system_properties(self._cmdline)
        if connection_config.JOLOKIA_AGENT_PROPERTY not in properties:
            options = _parse_agent_options(self._cmdline)
            if options is not None:
                properties[connection_config.JOLOKIA_AGENT_PROPERTY] = agent_url_from_options(options)
        return properties

    def management_address(self) -> Optional[str]:
        return self.agent_properties().get(connection_config.JOLOKIA_AGENT_PROPERTY) or None

    def detach(self) -> None:
        if self._process is None:
            return
        LOGGER.debug("Detaching from process %d", self.pid)
        self._process = None

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.detach()


def attach(pid: int) -> AttachedProcess:
    """Utility returning an `AttachedProcess` context manager for `pid`."""
    return AttachedProcess(pid=pid)


def locate(pid: int) -> Optional[str]:
    """Return the local management endpoint of `pid`, or None when it exposes none."""
    with attach(pid) as process:
        return process.management_address()


__all__ = ["AttachedProcess", "attach", "locate", "agent_url_from_options"]
