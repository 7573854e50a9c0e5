from clusterlint.checks.snapshots import InvalidSnapshotCheck, InvalidSnapshotContentCheck
from clusterlint.objects import Objects
from clusterlint.registry import Diagnostic, Kind, Severity, get

SNAPSHOT_LABEL = "snapshot.storage.kubernetes.io/invalid-snapshot-resource"
CONTENT_LABEL = "snapshot.storage.sigs.k8s.io/invalid-snapshot-content-resource"
SNAPSHOT_MESSAGE = (
    "Snapshot has been marked as invalid by CSI validation - check "
    "persistentVolumeClaimName and volumeSnapshotContentName are not both set"
)
CONTENT_MESSAGE = (
    "Snapshot content has been marked as invalid by CSI validation - check "
    "volumeHandle and snapshotHandle are not both set"
)


def _labelled(label):
    return {"metadata": {"labels": {label: ""}}, "spec": {}}


def _error(message, kind, label):
    return Diagnostic(
        severity=Severity.ERROR,
        message=message,
        kind=kind,
        object={"labels": {label: ""}},
        owners=[],
    )


def test_snapshot_registration():
    check = get("invalid-volume-snapshot")
    assert check == InvalidSnapshotCheck()
    assert check.groups == ("doks",)


def test_snapshot_content_registration():
    check = get("invalid-volume-snapshot-content")
    assert check == InvalidSnapshotContentCheck()
    assert check.groups == ("doks",)


def test_valid_snapshots():
    objs = Objects(
        volume_snapshots_v1=[{"metadata": {}, "spec": {}}],
        volume_snapshots_beta=[{"metadata": {}, "spec": {}}],
    )
    assert InvalidSnapshotCheck().run(objs) == []


def test_invalid_snapshots():
    objs = Objects(
        volume_snapshots_v1=[_labelled(SNAPSHOT_LABEL)],
        volume_snapshots_beta=[_labelled(SNAPSHOT_LABEL)],
    )
    want = _error(SNAPSHOT_MESSAGE, Kind.VOLUME_SNAPSHOT, SNAPSHOT_LABEL)
    assert InvalidSnapshotCheck().run(objs) == [want, want]


def test_snapshot_check_ignores_content_label():
    objs = Objects(volume_snapshots_v1=[_labelled(CONTENT_LABEL)])
    assert InvalidSnapshotCheck().run(objs) == []


def test_valid_snapshot_contents():
    objs = Objects(
        volume_snapshots_v1_content=[{"metadata": {}, "spec": {}}],
        volume_snapshots_beta_content=[{"metadata": {}, "spec": {}}],
    )
    assert InvalidSnapshotContentCheck().run(objs) == []


def test_invalid_snapshot_contents():
    objs = Objects(
        volume_snapshots_v1_content=[_labelled(CONTENT_LABEL)],
        volume_snapshots_beta_content=[_labelled(CONTENT_LABEL)],
    )
    want = _error(CONTENT_MESSAGE, Kind.VOLUME_SNAPSHOT_CONTENT, CONTENT_LABEL)
    assert InvalidSnapshotContentCheck().run(objs) == [want, want]


def test_owner_references_are_reported():
    owners = [{"apiVersion": "v1", "kind": "Thing", "name": "t"}]
    objs = Objects(
        volume_snapshots_v1=[{"metadata": {"labels": {SNAPSHOT_LABEL: ""}, "ownerReferences": owners}}]
    )
    (diagnostic,) = InvalidSnapshotCheck().run(objs)
    assert diagnostic.owners == owners