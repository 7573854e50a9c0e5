"""Running a set of checks against the objects of a cluster."""

from __future__ import annotations

import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .object_filter import ObjectFilter
from .registry import Check, Diagnostic, Severity

NO_CHECKS_MESSAGE = (
    "No checks to run. Are you sure that you provided the right names for groups and checks?"
)


class CheckFailedError(Exception):
    """A check raised an exception while it was running."""


@dataclass
class CheckResult:
    """Diagnostics found by a run, and how long each check took in seconds."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    durations: dict[str, float] = field(default_factory=dict)


def _run_one(check: Check, objects) -> tuple[list[Diagnostic], float]:
    start = time.perf_counter()
    try:
        diagnostics = list(check.run(objects) or [])
    except Exception as exc:
        raise CheckFailedError(
            f"Recovered from panic in check '{check.name}': {traceback.format_exc()}"
        ) from exc
    elapsed = time.perf_counter() - start
    # Filling the name in here keeps checks from having to do it themselves.
    for diagnostic in diagnostics:
        diagnostic.check = check.name
    return diagnostics, elapsed


def filter_severity(
    level: Union[Severity, str, None], diagnostics: Iterable[Diagnostic]
) -> list[Diagnostic]:
    """Keep only diagnostics of the given severity; no level keeps all."""
    if not level:
        return list(diagnostics)
    return [d for d in diagnostics if d.severity == level]


def run(
    client,
    checks: Iterable[Check],
    severity: Union[Severity, str, None] = None,
    object_filter: Optional[ObjectFilter] = None,
) -> CheckResult:
    """Fetch the cluster's objects and run the checks on them in parallel."""
    objects = client.fetch_objects(object_filter or ObjectFilter())

    selected = list(checks)
    if not selected:
        raise ValueError(NO_CHECKS_MESSAGE)

    with ThreadPoolExecutor(max_workers=len(selected)) as pool:
        futures = [(check, pool.submit(_run_one, check, objects)) for check in selected]

    diagnostics: list[Diagnostic] = []
    durations: dict[str, float] = {}
    for check, future in futures:
        error = future.exception()
        if error is not None:
            raise error
        found, elapsed = future.result()
        diagnostics.extend(found)
        durations[check.name] = elapsed

    return CheckResult(diagnostics=filter_severity(severity, diagnostics), durations=durations)