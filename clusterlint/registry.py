"""Check, diagnostic and registry types shared by every check."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """How serious a diagnostic is."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class Kind(str, Enum):
    """The kind of Kubernetes object a diagnostic is about."""

    POD = "pod"
    POD_TEMPLATE = "pod template"
    PERSISTENT_VOLUME_CLAIM = "persistent volume claim"
    CONFIG_MAP = "config map"
    SERVICE = "service"
    SECRET = "secret"
    SERVICE_ACCOUNT = "service account"
    PERSISTENT_VOLUME = "persistent volume"
    RESOURCE_QUOTA = "resource quota"
    LIMIT_RANGE = "limit range"
    STORAGE_CLASS = "storage class"
    NODE = "node"
    NAMESPACE = "namespace"
    CRON_JOB = "cron job"
    VALIDATING_WEBHOOK_CONFIGURATION = "validating webhook configuration"
    MUTATING_WEBHOOK_CONFIGURATION = "mutating webhook configuration"
    VOLUME_SNAPSHOT = "volume snapshot"
    VOLUME_SNAPSHOT_CONTENT = "volume snapshot content"


@dataclass
class Diagnostic:
    """A problem found by a check in one Kubernetes object."""

    severity: Severity
    message: str
    kind: Kind
    object: dict[str, Any] = field(default_factory=dict)
    owners: list[dict[str, Any]] = field(default_factory=list)
    details: str = ""
    check: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable form of the diagnostic."""
        return {
            "check": self.check,
            "severity": Severity(self.severity).value,
            "message": self.message,
            "kind": Kind(self.kind).value,
            "object": self.object,
            "owners": self.owners,
            "details": self.details,
        }


class Check(ABC):
    """A lint check run against the objects of a cluster."""

    name: str = ""
    groups: tuple[str, ...] = ()
    description: str = ""

    @abstractmethod
    def run(self, objects) -> list[Diagnostic]:
        """Run the check and return the diagnostics it found."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.name == other.name

    def __hash__(self) -> int:
        return hash((type(self), self.name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class CheckRegistry:
    """A thread-safe collection of checks indexed by name and group."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._checks: dict[str, Check] = {}
        self._groups: dict[str, list[Check]] = {}

    def register(self, check: Check) -> None:
        """Add a check; names must be non-empty and unique."""
        with self._lock:
            name = check.name
            if not name:
                raise ValueError("checks must have non-empty names")
            if name in self._checks:
                raise ValueError(f'check named "{name}" already exists')
            self._checks[name] = check
            for group in check.groups or ():
                self._groups.setdefault(group, []).append(check)

    def list(self) -> list[Check]:
        """Return all registered checks."""
        with self._lock:
            return list(self._checks.values())

    def list_groups(self) -> list[str]:
        """Return the names of all groups."""
        with self._lock:
            return list(self._groups)

    def get_group(self, name: str) -> list[Check]:
        """Return the checks in one group, or an empty list."""
        with self._lock:
            return list(self._groups.get(name, ()))

    def get_groups(self, groups) -> list[Check]:
        """Return the checks of every named group; unknown groups raise."""
        with self._lock:
            result: list[Check] = []
            for group in groups:
                if group not in self._groups:
                    raise LookupError(f"Group {group} not found")
                result.extend(self._groups[group])
            return result

    def get(self, name: str) -> Check:
        """Return the named check; unknown names raise LookupError."""
        with self._lock:
            try:
                return self._checks[name]
            except KeyError:
                raise LookupError(f"Check not found: {name}") from None


REGISTRY = CheckRegistry()


def register(check: Check) -> None:
    """Register a check in the default registry."""
    REGISTRY.register(check)


def list_checks() -> list[Check]:
    """Return every check in the default registry."""
    return REGISTRY.list()


def list_groups() -> list[str]:
    """Return every group name in the default registry."""
    return REGISTRY.list_groups()


def get_group(name: str) -> list[Check]:
    """Return the checks of one group in the default registry."""
    return REGISTRY.get_group(name)


def get_groups(groups) -> list[Check]:
    """Return the checks of several groups in the default registry."""
    return REGISTRY.get_groups(groups)


def get(name: str) -> Check:
    """Return a check from the default registry."""
    return REGISTRY.get(name)