"""Volume snapshots and snapshot contents marked invalid by CSI validation."""

from __future__ import annotations

from typing import Iterable

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register

_SNAPSHOT_LABEL = "snapshot.storage.kubernetes.io/invalid-snapshot-resource"
_SNAPSHOT_MESSAGE = (
    "Snapshot has been marked as invalid by CSI validation - check "
    "persistentVolumeClaimName and volumeSnapshotContentName are not both set"
)
_CONTENT_LABEL = "snapshot.storage.sigs.k8s.io/invalid-snapshot-content-resource"
_CONTENT_MESSAGE = (
    "Snapshot content has been marked as invalid by CSI validation - check "
    "volumeHandle and snapshotHandle are not both set"
)


def _labelled(items: Iterable[dict], label: str, message: str, kind: Kind) -> list[Diagnostic]:
    diagnostics = []
    for item in items:
        metadata = item.get("metadata") or {}
        if label in (metadata.get("labels") or {}):
            diagnostics.append(
                Diagnostic(
                    severity=Severity.ERROR,
                    message=message,
                    kind=kind,
                    object=metadata,
                    owners=list(metadata.get("ownerReferences") or []),
                )
            )
    return diagnostics


class InvalidSnapshotCheck(Check):
    """Flags volume snapshots labelled invalid by the snapshot webhook."""

    name = "invalid-volume-snapshot"
    groups = ("doks",)
    description = "Checks if there are invalid volume snapshots that would fail webhook validation"

    def run(self, objects: Objects) -> list[Diagnostic]:
        return _labelled(
            [*objects.volume_snapshots_v1, *objects.volume_snapshots_beta],
            _SNAPSHOT_LABEL,
            _SNAPSHOT_MESSAGE,
            Kind.VOLUME_SNAPSHOT,
        )


class InvalidSnapshotContentCheck(Check):
    """Flags volume snapshot contents labelled invalid by the snapshot webhook."""

    name = "invalid-volume-snapshot-content"
    groups = ("doks",)
    description = (
        "Checks if there are invalid volume snapshot contents that would fail webhook validation"
    )

    def run(self, objects: Objects) -> list[Diagnostic]:
        return _labelled(
            [*objects.volume_snapshots_v1_content, *objects.volume_snapshots_beta_content],
            _CONTENT_LABEL,
            _CONTENT_MESSAGE,
            Kind.VOLUME_SNAPSHOT_CONTENT,
        )


register(InvalidSnapshotCheck())
register(InvalidSnapshotContentCheck())