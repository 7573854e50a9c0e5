"""Pods using DigitalOcean block storage volumes that are not owned by a StatefulSet."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register

DO_CSI_DRIVER = "dobs.csi.digitalocean.com"
LEGACY_CSI_DRIVER = "com.digitalocean.csi.dobs"
DO_BLOCK_STORAGE_NAME = "do-block-storage"

_STORAGE_CLASS_ANNOTATION = "volume.beta.kubernetes.io/storage-class"
_MESSAGE = "Pod referencing DOBS volumes must be owned by StatefulSet"


def is_do_csi(referrer: Optional[str]) -> bool:
    """Whether a provisioner or driver name is the DigitalOcean CSI driver."""
    return referrer in (DO_CSI_DRIVER, LEGACY_CSI_DRIVER)


def owned_by_stateful_set(references: Optional[Iterable[dict]]) -> bool:
    """Whether any owner reference points at a StatefulSet."""
    return any(ref.get("kind") == "StatefulSet" for ref in references or ())


def _metadata(obj: Optional[dict]) -> dict:
    return (obj or {}).get("metadata") or {}


def _find_claim(claims: Iterable[dict], name: str, namespace: str) -> Optional[dict]:
    for claim in claims:
        meta = _metadata(claim)
        if meta.get("name") == name and meta.get("namespace") == namespace:
            return claim
    return None


def _storage_class_name(claim: dict) -> Optional[str]:
    name = (claim.get("spec") or {}).get("storageClassName")
    if name is not None:
        return name
    annotations = _metadata(claim).get("annotations") or {}
    return annotations.get(_STORAGE_CLASS_ANNOTATION)


def _find_storage_class(classes: Iterable[dict], name: Optional[str]) -> Optional[dict]:
    if name is None:
        return None
    for storage_class in classes:
        if _metadata(storage_class).get("name") == name:
            return storage_class
    return None


def is_dobs_volume(volume: dict, namespace: str, objects: Objects) -> bool:
    """Whether a pod volume is backed by DigitalOcean block storage."""
    claim_source = volume.get("persistentVolumeClaim")
    if claim_source is not None:
        claim = _find_claim(
            objects.persistent_volume_claims, claim_source.get("claimName"), namespace
        )
        if claim is None:
            return False
        class_name = _storage_class_name(claim)
        if class_name is None:
            default = objects.default_storage_class
            if default is None:
                return False
            if is_do_csi(default.get("provisioner")):
                return True
        storage_class = _find_storage_class(objects.storage_classes, class_name)
        if storage_class is not None and is_do_csi(storage_class.get("provisioner")):
            return True

    csi = volume.get("csi")
    if csi is not None and is_do_csi(csi.get("driver")):
        return True
    return False


class DobsPodOwnerCheck(Check):
    """Flags pods with block storage volumes that no StatefulSet owns."""

    name = "dobs-pod-owner"
    groups = ("doks",)
    description = "Checks if pods referencing dobs volumes are owned by a stateful set."

    def run(self, objects: Objects) -> list[Diagnostic]:
        dobs_pods: list[dict[str, Any]] = []
        for pod in objects.pods:
            namespace = _metadata(pod).get("namespace", "")
            for volume in (pod.get("spec") or {}).get("volumes") or []:
                if is_dobs_volume(volume, namespace, objects):
                    dobs_pods.append(pod)

        diagnostics: list[Diagnostic] = []
        for pod in dobs_pods:
            metadata = _metadata(pod)
            owners = metadata.get("ownerReferences")
            if owned_by_stateful_set(owners):
                continue
            diagnostics.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    message=_MESSAGE,
                    kind=Kind.POD,
                    object=metadata,
                    owners=list(owners or []),
                )
            )
        return diagnostics


register(DobsPodOwnerCheck())