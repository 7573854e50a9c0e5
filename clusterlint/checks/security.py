"""Security checks on the containers of pods."""

from __future__ import annotations

from typing import Iterator

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register


def _metadata(pod: dict) -> dict:
    return pod.get("metadata") or {}


def _all_containers(pod: dict) -> Iterator[dict]:
    spec = pod.get("spec") or {}
    yield from spec.get("containers") or []
    yield from spec.get("initContainers") or []


def _pod_diagnostic(pod: dict, message: str) -> Diagnostic:
    metadata = _metadata(pod)
    return Diagnostic(
        severity=Severity.WARNING,
        message=message,
        kind=Kind.POD,
        object=metadata,
        owners=list(metadata.get("ownerReferences") or []),
    )


class PrivilegedContainerCheck(Check):
    """Flags containers and init containers running in privileged mode."""

    name = "privileged-containers"
    groups = ("security",)
    description = "Checks if there are pods with containers in privileged mode"

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for pod in objects.pods:
            for container in _all_containers(pod):
                context = container.get("securityContext") or {}
                if context.get("privileged"):
                    diagnostics.append(
                        _pod_diagnostic(
                            pod,
                            f"Privileged container '{container.get('name', '')}' found. "
                            "Please ensure that the image is from a trusted source.",
                        )
                    )
        return diagnostics


class NonRootUserCheck(Check):
    """Flags containers that may run as the root user."""

    name = "non-root-user"
    groups = ("security",)
    description = "Checks if there are pods which run as root user"

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for pod in objects.pods:
            pod_context = (pod.get("spec") or {}).get("securityContext") or {}
            pod_as_root = not pod_context.get("runAsNonRoot")
            for container in _all_containers(pod):
                context = container.get("securityContext") or {}
                container_as_root = not context.get("runAsNonRoot")
                if container_as_root and pod_as_root:
                    diagnostics.append(
                        _pod_diagnostic(
                            pod,
                            f"Container `{container.get('name', '')}` can run as root user. "
                            "Please ensure that the image is from a trusted source.",
                        )
                    )
        return diagnostics


register(PrivilegedContainerCheck())
register(NonRootUserCheck())