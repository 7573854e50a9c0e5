"""Namespace filtering applied when listing cluster objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ObjectFilter:
    """Namespace to include or exclude while fetching objects."""

    include_namespace: str = ""
    exclude_namespace: str = ""

    @classmethod
    def from_namespaces(cls, include_namespace: str, exclude_namespace: str) -> "ObjectFilter":
        """Build a filter; at most one of the two namespaces may be given."""
        if include_namespace and exclude_namespace:
            raise ValueError("cannot specify both include and exclude namespace conditions")
        return cls(include_namespace or "", exclude_namespace or "")

    def namespace_options(self, options: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of list options with a namespace field selector."""
        result = dict(options)
        if self.include_namespace:
            result["fieldSelector"] = f"metadata.namespace={self.include_namespace}"
        if self.exclude_namespace:
            result["fieldSelector"] = f"metadata.namespace!={self.exclude_namespace}"
        return result