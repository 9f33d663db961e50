"""Management connection speaking the Jolokia JSON protocol over HTTP.

Every call is a single POST to the agent; there are no retries and the only
timeout is the one handed to requests. Errors reported inside the JSON body
are mapped onto the exceptions in `broker.exceptions` so callers can tell a
vanished object from an unreachable agent.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional

import requests

from broker import connection_config
from broker.exceptions import (
    AttributeNotFoundError,
    InstanceNotFoundError,
    MalformedObjectNameError,
    ManagementConnectionError,
    ManagementOperationError,
)
from broker.utils.object_name import ObjectName

from .model import ManagedObject

LOGGER = logging.getLogger(__name__)

_ERROR_TYPES = {
    "javax.management.InstanceNotFoundException": InstanceNotFoundError,
    "javax.management.AttributeNotFoundException": AttributeNotFoundError,
}


def _infer_class_name(name: ObjectName) -> str:
    """Guess the declared type from key properties for agents that omit it."""
    if name.key_property("connectionViewType") and name.key_property(connection_config.CONNECTION_NAME_KEY):
        return connection_config.CONNECTION_VIEW_CLASS
    if name.key_property("endpoint") == "Consumer" and name.key_property(connection_config.CONSUMER_ID_KEY):
        return connection_config.SUBSCRIPTION_VIEW_CLASS
    return ""


def _raise_for_entry(entry: Dict[str, Any], target: str) -> None:
    status = entry.get("status", 200)
    if status == 200:
        return
    error_type = entry.get("error_type")
    message = f"{target}: {entry.get('error') or f'status {status}'}"
    if error_type == "javax.management.MalformedObjectNameException":
        raise MalformedObjectNameError(message)
    error_cls = _ERROR_TYPES.get(error_type, ManagementOperationError)
    raise error_cls(message, error_type=error_type)


class JolokiaConnection(AbstractContextManager["JolokiaConnection"]):
    """Queries, reads and invokes management objects through a Jolokia agent."""

    def __init__(
        self,
        url: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = connection_config.JOLOKIA_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        if user:
            self._session.auth = (user, password or "")

    def _post(self, payload: Any) -> Any:
        LOGGER.debug("Jolokia request to %s: %s", self.url, payload)
        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise ManagementConnectionError(f"Management request to {self.url} failed: {exc}") from exc
        except ValueError as exc:
            raise ManagementConnectionError(f"Invalid response from {self.url}: {exc}") from exc
        if isinstance(payload, list):
            if not isinstance(body, list) or len(body) != len(payload):
                raise ManagementConnectionError(f"Unexpected bulk response from {self.url}")
        elif not isinstance(body, dict):
            raise ManagementConnectionError(f"Unexpected response from {self.url}")
        return body

    def _request(self, payload: Dict[str, Any], target: str) -> Any:
        entry = self._post(payload)
        _raise_for_entry(entry, target)
        return entry.get("value")

    def version(self) -> Dict[str, Any]:
        return self._request({"type": "version"}, self.url) or {}

    def query(self, pattern: ObjectName) -> List[ManagedObject]:
        """Return every management object matching `pattern` with its declared type."""
        found = self._request({"type": "search", "mbean": str(pattern)}, str(pattern)) or []
        names = [ObjectName.parse(name) for name in found]
        if not names:
            return []

        listing = self._post([{"type": "list", "path": name.list_path()} for name in names])
        objects: List[ManagedObject] = []
        for name, entry in zip(names, listing):
            value = entry.get("value") if entry.get("status", 200) == 200 else None
            class_name = value.get("class") if isinstance(value, dict) else None
            if not class_name:
                LOGGER.debug("No declared type for %s; inferring from key properties", name)
                class_name = _infer_class_name(name)
            objects.append(ManagedObject.of(name, class_name))
        return objects

    def get_attribute(self, name: ObjectName, attribute: str) -> Any:
        value = self._request({"type": "read", "mbean": str(name), "attribute": attribute}, f"{name} {attribute}")
        if isinstance(value, dict) and set(value) == {"objectName"}:
            return ObjectName.parse(value["objectName"])
        return value

    def invoke(self, name: ObjectName, operation: str, *arguments: Any) -> Any:
        return self._request(
            {"type": "exec", "mbean": str(name), "operation": operation, "arguments": list(arguments)},
            f"{name} {operation}",
        )

    def close(self) -> None:
        LOGGER.debug("Closing management connection to %s", self.url)
        self._session.close()

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()


def connect(url: str) -> JolokiaConnection:
    """Open a management connection to `url` and check that an agent answers."""
    connection = JolokiaConnection(
        url,
        user=connection_config.JOLOKIA_USER,
        password=connection_config.JOLOKIA_PASSWORD,
    )
    try:
        info = connection.version()
    except Exception:
        connection.close()
        raise
    LOGGER.debug("Connected to Jolokia agent %s at %s", info.get("agent"), url)
    return connection


__all__ = ["JolokiaConnection", "connect"]
