import pytest

from clusterlint.checks.webhook_replacement import (
    WebhookReplacementCheck,
    api_versions,
    applicable,
    match,
    selector_matches_namespace,
)
from clusterlint.objects import Objects
from clusterlint.registry import Diagnostic, Kind, Severity, get

WEBHOOK_URL = "https://example.com/webhook"
WEBHOOK_SERVICE = {"service": {"namespace": "webhook", "name": "webhook-service"}}


def expr(key, values, op):
    return [{"key": key, "operator": op, "values": values}]


def webhook_test_objects(failure_policy, ns_selector, client_config, num_nodes, groups, versions):
    def webhook(name):
        return {
            "name": name,
            "failurePolicy": failure_policy,
            "namespaceSelector": ns_selector,
            "clientConfig": client_config,
            "rules": [{"apiGroups": groups, "apiVersions": versions}],
        }

    return Objects(
        system_namespace={
            "kind": "Namespace",
            "apiVersion": "v1",
            "metadata": {"name": "kube-system", "labels": {"doks_key": "bar"}},
        },
        namespaces=[
            {
                "kind": "Namespace",
                "apiVersion": "v1",
                "metadata": {"name": "kube-system", "labels": {"doks_key": "bar"}},
            },
            {
                "kind": "Namespace",
                "apiVersion": "v1",
                "metadata": {"name": "webhook", "labels": {"doks_key": "xyzzy"}},
            },
        ],
        mutating_webhook_configurations=[
            {
                "kind": "MutatingWebhookConfiguration",
                "apiVersion": "v1beta1",
                "metadata": {"name": "mwc_foo"},
                "webhooks": [webhook("mw_foo")],
            }
        ],
        validating_webhook_configurations=[
            {
                "kind": "ValidatingWebhookConfiguration",
                "apiVersion": "v1beta1",
                "metadata": {"name": "vwc_foo"},
                "webhooks": [webhook("vw_foo")],
            }
        ],
        nodes=[{} for _ in range(num_nodes)],
    )


def webhook_errors():
    return [
        Diagnostic(
            severity=Severity.ERROR,
            message="Validating webhook is configured in such a way that it may be problematic during upgrades.",
            kind=Kind.VALIDATING_WEBHOOK_CONFIGURATION,
            object={"name": "vwc_foo"},
            owners=[],
        ),
        Diagnostic(
            severity=Severity.ERROR,
            message="Mutating webhook is configured in such a way that it may be problematic during upgrades.",
            kind=Kind.MUTATING_WEBHOOK_CONFIGURATION,
            object={"name": "mwc_foo"},
            owners=[],
        ),
    ]


def _key(d):
    return (d.kind.value, d.message)


def test_meta():
    check = WebhookReplacementCheck()
    assert check.name == "admission-controller-webhook-replacement"
    assert list(check.groups) == ["doks"]
    assert check.description


def test_registration():
    assert get("admission-controller-webhook-replacement") == WebhookReplacementCheck()


def test_no_webhook_configurations():
    objs = Objects(system_namespace={})
    assert WebhookReplacementCheck().run(objs) == []


CASES = [
    ("failure policy is ignore", ("Ignore", {}, WEBHOOK_SERVICE, 2, ["*"], ["*"]), False),
    ("webhook does not use service", ("Fail", {}, {"url": WEBHOOK_URL}, 2, ["*"], ["*"]), False),
    (
        "webhook service is apiserver",
        ("Fail", {}, {"service": {"namespace": "default", "name": "kubernetes"}}, 2, ["*"], ["*"]),
        False,
    ),
    (
        "label selector does not match kube-system",
        ("Fail", {"matchLabels": {"non-existent-label-on-namespace": "bar"}}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "OpExists does not match kube-system",
        ("Fail", {"matchExpressions": expr("non-existent", [], "Exists")}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "OpDoesNotExist does not match kube-system",
        ("Fail", {"matchExpressions": expr("doks_key", [], "DoesNotExist")}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "OpIn does not match kube-system",
        ("Fail", {"matchExpressions": expr("doks_key", ["non-existent"], "In")}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "OpNotIn does not match kube-system",
        ("Fail", {"matchExpressions": expr("doks_key", ["bar"], "NotIn")}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "label selector does not match own namespace",
        ("Fail", {"matchLabels": {"doks_key": "bar"}}, WEBHOOK_SERVICE, 2, ["*"], ["*"]),
        False,
    ),
    (
        "single-node cluster",
        ("Fail", {"matchLabels": {"doks_key": "bar"}}, WEBHOOK_SERVICE, 1, ["*"], ["*"]),
        True,
    ),
    ("applies to own namespace and kube-system", ("Fail", {}, WEBHOOK_SERVICE, 2, ["*"], ["*"]), True),
    ("applies to core/v1", ("Fail", {}, WEBHOOK_SERVICE, 2, [""], ["v1"]), True),
    ("applies to apps/v1", ("Fail", {}, WEBHOOK_SERVICE, 2, ["apps"], ["v1"]), True),
    ("applies to apps/v1beta1", ("Fail", {}, WEBHOOK_SERVICE, 2, ["apps"], ["v1beta1"]), True),
    ("applies to apps/v1beta2", ("Fail", {}, WEBHOOK_SERVICE, 2, ["apps"], ["v1beta2"]), True),
    ("applies to *", ("Fail", {}, WEBHOOK_SERVICE, 2, ["*"], ["*"]), True),
    ("applies to batch/v1", ("Fail", {}, WEBHOOK_SERVICE, 2, ["batch"], ["*"]), False),
]


@pytest.mark.parametrize("name,args,expect_errors", CASES, ids=[c[0] for c in CASES])
def test_webhook_error(name, args, expect_errors):
    diagnostics = WebhookReplacementCheck().run(webhook_test_objects(*args))
    expected = webhook_errors() if expect_errors else []
    assert sorted(diagnostics, key=_key) == sorted(expected, key=_key)


def test_one_diagnostic_per_configuration():
    objs = webhook_test_objects("Fail", {}, WEBHOOK_SERVICE, 2, ["*"], ["*"])
    config = objs.validating_webhook_configurations[0]
    config["webhooks"].append(dict(config["webhooks"][0], name="vw_bar"))
    diagnostics = WebhookReplacementCheck().run(objs)
    assert len(diagnostics) == 2


def test_applicable_no_groups():
    assert applicable([{"apiVersions": ["v1"]}]) is True
    assert applicable([{"apiGroups": ["batch"], "apiVersions": ["v1"]}]) is False
    assert applicable([{"apiGroups": ["apps"], "apiVersions": ["v2"]}]) is False
    assert applicable([]) is False


def test_api_versions():
    assert api_versions(["v1beta2"]) is True
    assert api_versions(["v2"]) is False
    assert api_versions(None) is False


def test_match_operators():
    labels = {"doks_key": "bar"}
    assert match(labels, {"key": "doks_key", "operator": "Exists"}) is True
    assert match(labels, {"key": "doks_key", "operator": "DoesNotExist"}) is False
    assert match(labels, {"key": "doks_key", "operator": "In", "values": ["bar"]}) is True
    assert match(labels, {"key": "doks_key", "operator": "NotIn", "values": ["bar"]}) is False
    assert match(labels, {"key": "other", "operator": "NotIn", "values": ["bar"]}) is True
    assert match(labels, {"key": "doks_key", "operator": "Unknown"}) is False


def test_selector_matches_namespace_empty_selector():
    namespace = {"metadata": {"name": "x"}}
    assert selector_matches_namespace(None, namespace) is True
    assert selector_matches_namespace({}, namespace) is True
    assert selector_matches_namespace({"matchLabels": {"a": "b"}}, namespace) is False