"""Parsing and building of management object names.

Brokers name their management objects as `domain:key=value,key=value`. A name
ending in `,*` is a pattern that matches any object carrying at least the listed
key properties. Values may carry `*` and `?` as wildcards. Names read back
from a broker can hold quoted values, e.g. `destinationName="a,b"`. These
helpers keep that grammar in one place so the selection code can work with
plain key lookups.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from broker.exceptions import MalformedObjectNameError

_UNQUOTED_FORBIDDEN = frozenset('=:"\n')
_VALUE_FORBIDDEN = _UNQUOTED_FORBIDDEN | {","}


def _split_properties(text: str, source: str) -> List[str]:
    """Split a key property list on commas that are not inside quoted values."""
    parts: List[str] = []
    current: List[str] = []
    in_quotes = False
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\" and in_quotes:
            current.append(ch)
            escaped = True
        elif ch == '"':
            current.append(ch)
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if in_quotes:
        raise MalformedObjectNameError(f"Unterminated quoted value in {source!r}")
    parts.append("".join(current))
    return parts


def _check_value(key: str, value: str, source: str) -> None:
    if not value:
        raise MalformedObjectNameError(f"Empty value for key {key!r} in {source!r}")
    if value.startswith('"'):
        if len(value) < 2 or not value.endswith('"'):
            raise MalformedObjectNameError(f"Badly quoted value for key {key!r} in {source!r}")
        return
    bad = _UNQUOTED_FORBIDDEN.intersection(value)
    if bad:
        raise MalformedObjectNameError(
            f"Invalid character(s) {''.join(sorted(bad))!r} in value for key {key!r} in {source!r}"
        )


@dataclass(frozen=True)
class ObjectName:
    """A parsed management object name or pattern."""

    domain: str
    properties: Tuple[Tuple[str, str], ...]
    property_pattern: bool = False

    @classmethod
    def parse(cls, text: str) -> "ObjectName":
        if not isinstance(text, str) or ":" not in text:
            raise MalformedObjectNameError(f"Missing domain separator in {text!r}")
        domain, _, key_list = text.partition(":")
        if not domain:
            raise MalformedObjectNameError(f"Empty domain in {text!r}")
        if not key_list:
            raise MalformedObjectNameError(f"Empty key property list in {text!r}")

        properties: List[Tuple[str, str]] = []
        seen: Dict[str, str] = {}
        pattern = False
        for part in _split_properties(key_list, text):
            if part == "*":
                if pattern:
                    raise MalformedObjectNameError(f"Repeated wildcard in {text!r}")
                pattern = True
                continue
            key, sep, value = part.partition("=")
            if not sep or not key:
                raise MalformedObjectNameError(f"Invalid key property {part!r} in {text!r}")
            if key in seen:
                raise MalformedObjectNameError(f"Duplicate key {key!r} in {text!r}")
            _check_value(key, value, text)
            seen[key] = value
            properties.append((key, value))

        if not properties and not pattern:
            raise MalformedObjectNameError(f"No key properties in {text!r}")
        return cls(domain=domain, properties=tuple(properties), property_pattern=pattern)

    def key_property(self, key: str) -> Optional[str]:
        """Return the value of `key` as it appears in the name, or None."""
        for name, value in self.properties:
            if name == key:
                return value
        return None

    @property
    def key_property_list(self) -> str:
        props = ",".join(f"{key}={value}" for key, value in self.properties)
        if self.property_pattern:
            return f"{props},*" if props else "*"
        return props

    @property
    def canonical(self) -> str:
        props = ",".join(f"{key}={value}" for key, value in sorted(self.properties))
        if self.property_pattern:
            props = f"{props},*" if props else "*"
        return f"{self.domain}:{props}"

    def list_path(self) -> str:
        """Return the escaped `domain/properties` path used by list requests."""
        _, _, props = self.canonical.partition(":")
        return f"{_escape_path(self.domain)}/{_escape_path(props)}"

    def __str__(self) -> str:
        return f"{self.domain}:{self.key_property_list}"


def _escape_path(segment: str) -> str:
    return segment.replace("!", "!!").replace("/", "!/")


def build_pattern(template: str, **values: str) -> ObjectName:
    """Fill a pattern template with values inserted unchanged.

    `*` and `?` in a value act as wildcards. Separators cannot be part of a
    value, so they are rejected rather than quoted.
    """
    for key, value in values.items():
        if value is None or not str(value).strip():
            raise MalformedObjectNameError(f"Missing value for {key!r} in pattern {template!r}")
        bad = _VALUE_FORBIDDEN.intersection(str(value))
        if bad:
            raise MalformedObjectNameError(
                f"Invalid character(s) {''.join(sorted(bad))!r} in {key} {value!r}"
            )
    try:
        text = template.format(**{key: str(value) for key, value in values.items()})
    except (KeyError, IndexError) as exc:
        raise MalformedObjectNameError(f"Cannot fill pattern {template!r}: {exc}") from exc
    return ObjectName.parse(text)


__all__ = ["ObjectName", "build_pattern"]
