"""Admission webhooks that can break upgrades or node replacement."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register

_APISERVER_SERVICE_NAME = "kubernetes"
_DEFAULT_NAMESPACE = "default"


def api_versions(versions: Optional[Iterable[str]]) -> bool:
    """Whether the versions include v1, v1beta1, v1beta2 or a wildcard."""
    return any(v in ("*", "v1", "v1beta1", "v1beta2") for v in versions or ())


def applicable(rules: Optional[Iterable[dict]]) -> bool:
    """Whether any rule applies to core or apps resources."""
    for rule in rules or ():
        if not api_versions(rule.get("apiVersions")):
            continue
        groups = rule.get("apiGroups") or []
        if not groups:
            return True
        if any(g in ("", "*", "apps") for g in groups):
            return True
    return False


def match(labels: dict[str, str], requirement: dict[str, Any]) -> bool:
    """Evaluate one label selector requirement against a label set."""
    key = requirement.get("key")
    values = requirement.get("values") or []
    operator = requirement.get("operator")
    if operator == "Exists":
        return key in labels
    if operator == "DoesNotExist":
        return key not in labels
    if operator == "In":
        return key in labels and labels[key] in values
    if operator == "NotIn":
        return key not in labels or labels[key] not in values
    return False


def selector_matches_namespace(selector: Optional[dict], namespace: Optional[dict]) -> bool:
    """Whether a namespace label selector selects the namespace."""
    selector = selector or {}
    match_labels = selector.get("matchLabels") or {}
    expressions = selector.get("matchExpressions") or []
    if not match_labels and not expressions:
        return True
    labels = ((namespace or {}).get("metadata") or {}).get("labels") or {}
    for key, value in match_labels.items():
        if labels.get(key) != value or key not in labels:
            return False
    return all(match(labels, requirement) for requirement in expressions)


def _is_problematic(webhook: dict, objects: Objects) -> bool:
    if not applicable(webhook.get("rules")):
        return False
    if webhook.get("failurePolicy") == "Ignore":
        return False
    service = (webhook.get("clientConfig") or {}).get("service")
    if service is None:
        return False
    if (
        service.get("namespace") == _DEFAULT_NAMESPACE
        and service.get("name") == _APISERVER_SERVICE_NAME
    ):
        return False
    selector = webhook.get("namespaceSelector")
    if not selector_matches_namespace(selector, objects.system_namespace):
        return False
    service_namespace = None
    for namespace in objects.namespaces:
        if (namespace.get("metadata") or {}).get("name") == service.get("namespace"):
            service_namespace = namespace
    if (
        service_namespace is not None
        and not selector_matches_namespace(selector, service_namespace)
        and len(objects.nodes) > 1
    ):
        # A webhook that skips its own namespace is fine with more than one node.
        return False
    return True


class WebhookReplacementCheck(Check):
    """Flags webhooks that may block upgrades or node replacement."""

    name = "admission-controller-webhook-replacement"
    groups = ("doks",)
    description = (
        "Check for admission control webhooks that could cause problems "
        "during upgrades or node replacement"
    )

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        sources = (
            (
                objects.validating_webhook_configurations,
                "Validating webhook is configured in such a way that it may be problematic during upgrades.",
                Kind.VALIDATING_WEBHOOK_CONFIGURATION,
            ),
            (
                objects.mutating_webhook_configurations,
                "Mutating webhook is configured in such a way that it may be problematic during upgrades.",
                Kind.MUTATING_WEBHOOK_CONFIGURATION,
            ),
        )
        for configs, message, kind in sources:
            for config in configs:
                # One diagnostic per configuration, however many webhooks match.
                if any(_is_problematic(wh, objects) for wh in config.get("webhooks") or []):
                    metadata = config.get("metadata") or {}
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


register(WebhookReplacementCheck())