"""Value types shared by the management client and the stop strategies."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from broker import connection_config
from broker.utils.object_name import ObjectName


class ObjectKind(enum.Enum):
    """Category of a discovered management object, fixed when it is queried."""

    CONNECTION_VIEW = "connection"
    SUBSCRIPTION_VIEW = "subscription"
    OTHER = "other"

    @classmethod
    def from_class_name(cls, class_name: str | None) -> "ObjectKind":
        if class_name == connection_config.CONNECTION_VIEW_CLASS:
            return cls.CONNECTION_VIEW
        if class_name == connection_config.SUBSCRIPTION_VIEW_CLASS:
            return cls.SUBSCRIPTION_VIEW
        return cls.OTHER


@dataclass(frozen=True)
class ManagedObject:
    """Reference to one management object as returned by a query."""

    name: ObjectName
    class_name: str
    kind: ObjectKind

    @classmethod
    def of(cls, name: ObjectName, class_name: str) -> "ManagedObject":
        return cls(name=name, class_name=class_name, kind=ObjectKind.from_class_name(class_name))

    def key_property(self, key: str) -> str | None:
        return self.name.key_property(key)


@dataclass(frozen=True)
class ByClientAddress:
    ip: str


@dataclass(frozen=True)
class ByDestination:
    name: str


Criterion = Union[ByClientAddress, ByDestination]


class StopOutcome(enum.Enum):
    STOPPED = "stopped"
    SKIPPED = "skipped"
    FAILED = "failed"


__all__ = [
    "ObjectKind",
    "ManagedObject",
    "ByClientAddress",
    "ByDestination",
    "Criterion",
    "StopOutcome",
]
