"""An example check, showing how a local check is written."""

from __future__ import annotations

from ..objects import Objects
from ..registry import Check, Diagnostic, Kind, Severity, register


class ExampleCheck(Check):
    """Reports a suggestion for every pod."""

    name = "example-plugin"
    groups = ("examples",)
    description = "A sample plugin."

    def run(self, objects: Objects) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for pod in objects.pods:
            metadata = pod.get("metadata") or {}
            diagnostics.append(
                Diagnostic(
                    severity=Severity.SUGGESTION,
                    message="You probably don't want to run the example plugin.",
                    kind=Kind.POD,
                    object=metadata,
                    owners=list(metadata.get("ownerReferences") or []),
                )
            )
        return diagnostics


register(ExampleCheck())