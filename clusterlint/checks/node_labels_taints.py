"""Custom labels and taints on nodes, which node replacement discards."""

from __future__ import annotations

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register

_KUBERNETES_PREFIX = "kubernetes.io/"
_DOKS_PREFIX = "doks.digitalocean.com/"

# Taint keys that DOKS sets itself; currently it sets none.
_DOKS_TAINT_KEYS: frozenset[str] = frozenset()


def is_kubernetes_label(key: str) -> bool:
    """Whether a label key belongs to a kubernetes.io subdomain."""
    return _KUBERNETES_PREFIX in key


def is_doks_label(key: str) -> bool:
    """Whether a label key is one that DOKS itself sets."""
    return key.startswith(_DOKS_PREFIX) or key == "region"


def _is_doks_taint(taint: dict) -> bool:
    return taint.get("key", "") in _DOKS_TAINT_KEYS


class NodeLabelsTaintsCheck(Check):
    """Flags nodes that carry custom labels or taints."""

    name = "node-labels-and-taints"
    groups = ("doks",)
    description = "Checks that nodes do not have custom labels or taints configured."

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for node in objects.nodes:
            metadata = node.get("metadata") or {}
            custom_labels = sorted(
                key
                for key in metadata.get("labels") or {}
                if not is_kubernetes_label(key) and not is_doks_label(key)
            )
            if custom_labels:
                diagnostics.append(
                    Diagnostic(
                        severity=Severity.WARNING,
                        message=(
                            "Custom node labels will be lost if node is replaced or upgraded. "
                            "Add custom labels on node pools instead."
                        ),
                        kind=Kind.NODE,
                        object=metadata,
                        details=f"Custom node labels: [{' '.join(custom_labels)}]",
                    )
                )
            custom_taints = [
                taint.get("key", "")
                for taint in (node.get("spec") or {}).get("taints") or []
                if not _is_doks_taint(taint)
            ]
            if custom_taints:
                diagnostics.append(
                    Diagnostic(
                        severity=Severity.WARNING,
                        message="Custom node taints will be lost if node is replaced or upgraded.",
                        kind=Kind.NODE,
                        object=metadata,
                        details=f"Custom node taints: [{' '.join(custom_taints)}]",
                    )
                )
        return diagnostics


register(NodeLabelsTaintsCheck())