"""Pods that select a node by its hostname label."""

from __future__ import annotations

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register

LABEL_HOSTNAME = "kubernetes.io/hostname"


class PodSelectorCheck(Check):
    """Flags pods whose node selector uses the hostname label."""

    name = "node-name-pod-selector"
    groups = ("doks",)
    description = (
        "Checks if there are pods which use kubernetes.io/hostname label in the node selector."
    )

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for pod in objects.pods:
            selector = (pod.get("spec") or {}).get("nodeSelector") or {}
            if LABEL_HOSTNAME in selector:
                metadata = pod.get("metadata") or {}
                diagnostics.append(
                    Diagnostic(
                        severity=Severity.WARNING,
                        message="Avoid node name label for node selector.",
                        kind=Kind.POD,
                        object=metadata,
                        owners=list(metadata.get("ownerReferences") or []),
                    )
                )
        return diagnostics


register(PodSelectorCheck())