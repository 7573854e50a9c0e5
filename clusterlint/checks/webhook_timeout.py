"""Admission webhooks whose timeout would block upgrades."""

from __future__ import annotations

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register


class WebhookTimeoutCheck(Check):
    """Flags webhooks with a timeout below 1 or above 29 seconds."""

    name = "admission-controller-webhook-timeout"
    groups = ("doks",)
    description = "Check for admission control webhooks that have exceeded a timeout of 30 seconds."

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        sources = (
            (
                objects.validating_webhook_configurations,
                "Validating webhook with a TimeoutSeconds value smaller than 1 second "
                "or greater than 29 seconds will block upgrades.",
                Kind.VALIDATING_WEBHOOK_CONFIGURATION,
            ),
            (
                objects.mutating_webhook_configurations,
                "Mutating webhook with a TimeoutSeconds value smaller than 1 second "
                "or greater than 29 seconds will block upgrades.",
                Kind.MUTATING_WEBHOOK_CONFIGURATION,
            ),
        )
        for configs, message, kind in sources:
            for config in configs:
                metadata = config.get("metadata") or {}
                for webhook in config.get("webhooks") or []:
                    timeout = webhook.get("timeoutSeconds")
                    if timeout is None:
                        # Unset timeouts default to 30s on newer clusters.
                        continue
                    if timeout < 1 or timeout > 29:
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


register(WebhookTimeoutCheck())