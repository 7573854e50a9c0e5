import pytest

from clusterlint.checks.node_labels_taints import (
    NodeLabelsTaintsCheck,
    is_doks_label,
    is_kubernetes_label,
)
from clusterlint.objects import Objects
from clusterlint.registry import Diagnostic, Kind, Severity, get

CUSTOM_LABELS = {
    "doks.digitalocean.com/foo": "bar",
    "doks.digitalocean.com/baz": "xyzzy",
    "kubernetes.io/hostname": "a-hostname",
    "example.com/custom-label": "bad",
    "example.com/another-label": "real-bad",
    "beta.kubernetes.io/os": "linux",
    "failure-domain.beta.kubernetes.io/region": "tor1",
    "region": "tor1",
}


@pytest.mark.parametrize(
    "labels, want",
    [
        (None, []),
        ({"doks.digitalocean.com/foo": "bar", "doks.digitalocean.com/baz": "xyzzy"}, []),
        (
            {
                "kubernetes.io/hostname": "a-hostname",
                "beta.kubernetes.io/os": "linux",
                "failure-domain.beta.kubernetes.io/region": "tor1",
            },
            [],
        ),
        ({"region": "tor1"}, []),
        (
            CUSTOM_LABELS,
            [
                Diagnostic(
                    severity=Severity.WARNING,
                    message=(
                        "Custom node labels will be lost if node is replaced or upgraded. "
                        "Add custom labels on node pools instead."
                    ),
                    kind=Kind.NODE,
                    details="Custom node labels: [example.com/another-label example.com/custom-label]",
                    object={"name": "bad-node", "labels": dict(CUSTOM_LABELS)},
                )
            ],
        ),
    ],
    ids=["no labels", "only doks labels", "only built-in labels", "only region label", "custom labels"],
)
def test_node_labels(labels, want):
    bad = {"name": "bad-node"}
    if labels is not None:
        bad["labels"] = labels
    objects = Objects(
        nodes=[
            {"metadata": {"name": "good-node"}},
            {"metadata": bad},
            {"metadata": {"name": "another-good-node"}},
        ]
    )
    assert NodeLabelsTaintsCheck().run(objects) == want


@pytest.mark.parametrize(
    "taints, want",
    [
        (None, []),
        (
            [{"key": "example.com/my-taint", "value": "foo", "effect": "NoSchedule"}],
            [
                Diagnostic(
                    severity=Severity.WARNING,
                    details="Custom node taints: [example.com/my-taint]",
                    message="Custom node taints will be lost if node is replaced or upgraded.",
                    kind=Kind.NODE,
                    object={},
                )
            ],
        ),
    ],
    ids=["no taints", "custom taints"],
)
def test_node_taints(taints, want):
    objects = Objects(nodes=[{"spec": {"taints": taints}}])
    assert NodeLabelsTaintsCheck().run(objects) == want


def test_labels_and_taints_on_one_node():
    objects = Objects(
        nodes=[
            {
                "metadata": {"name": "n", "labels": {"team": "a"}},
                "spec": {"taints": [{"key": "one"}, {"key": "two"}]},
            }
        ]
    )
    details = [d.details for d in NodeLabelsTaintsCheck().run(objects)]
    assert details == ["Custom node labels: [team]", "Custom node taints: [one two]"]


def test_label_predicates():
    assert is_kubernetes_label("node.kubernetes.io/instance-type") is True
    assert is_kubernetes_label("example.com/x") is False
    assert is_doks_label("doks.digitalocean.com/node-pool") is True
    assert is_doks_label("region") is True
    assert is_doks_label("zone") is False


def test_registration():
    check = get("node-labels-and-taints")
    assert check == NodeLabelsTaintsCheck()
    assert check.groups == ("doks",)