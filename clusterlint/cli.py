"""Command line interface: list checks or run them against a live cluster."""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
from typing import Iterable, Optional, TextIO

from termcolor import colored

# Imported for their side effect of registering the built-in checks.
from .checks import (  # noqa: F401
    dobs_pod_owner,
    node_labels_taints,
    node_name_pod_selector,
    noop,
    security,
    snapshots,
    webhook_replacement,
    webhook_timeout,
)
from .object_filter import ObjectFilter
from .objects import new_client
from .options import in_cluster, with_kube_context, with_merged_config_files, with_timeout
from .registry import Check, Diagnostic, Severity, get, get_groups, list_checks
from .run_checks import CheckResult, run

_VERSION = "dev"
_KUBECONFIG_DELIMITER = ":"

_UNITS = {"ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0}
_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)"
_PART_RE = re.compile(_PART)
_DURATION_RE = re.compile(rf"(?:{_PART})+")

_COLORS = {Severity.ERROR: "red", Severity.WARNING: "yellow", Severity.SUGGESTION: "blue"}


def _parse_duration(text: str) -> float:
    """Parse a duration such as 30s, 1m30s or 500ms into seconds."""
    value = text.strip()
    sign = -1.0 if value.startswith("-") else 1.0
    body = value[1:] if value[:1] in "+-" and value else value
    if body == "0":
        return 0.0
    if not body or not _DURATION_RE.fullmatch(body):
        raise argparse.ArgumentTypeError(f"invalid duration {text!r}")
    total = sum(float(number) * _UNITS[unit] for number, unit in _PART_RE.findall(body))
    return sign * total


def _strip_all(values: Optional[Iterable[str]]) -> list[str]:
    return [v.strip() for v in values or () if v.strip()]


def _select_checks(groups, ignore_groups, checks, ignore_checks) -> list[Check]:
    include_checks = _strip_all(checks)
    include_groups = _strip_all(groups)
    if include_checks:
        selected = [get(name) for name in include_checks]
    elif include_groups:
        selected = get_groups(include_groups)
    else:
        selected = sorted(list_checks(), key=lambda c: c.name)

    skip_groups = set(_strip_all(ignore_groups))
    skip_checks = set(_strip_all(ignore_checks))
    result: list[Check] = []
    seen: set[str] = set()
    for check in selected:
        if check.name in seen or check.name in skip_checks:
            continue
        if skip_groups.intersection(check.groups or ()):
            continue
        seen.add(check.name)
        result.append(check)
    return result


def _describe(diagnostic: Diagnostic) -> str:
    meta = diagnostic.object or {}
    name = meta.get("name", "")
    namespace = meta.get("namespace", "")
    target = f"{namespace}/{name}" if namespace else name
    severity = getattr(diagnostic.severity, "value", diagnostic.severity)
    kind = getattr(diagnostic.kind, "value", diagnostic.kind)
    line = f"[{severity}] [{diagnostic.check}] {kind} {target}: {diagnostic.message}"
    if diagnostic.details:
        line += f" ({diagnostic.details})"
    return line


def write_result(
    result: CheckResult,
    output_format: Optional[str] = "text",
    no_color: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Write a check result as JSON or as coloured text lines."""
    stream = stream or sys.stdout
    if output_format == "json":
        payload = {
            "Diagnostics": [d.to_dict() for d in result.diagnostics],
            "Durations": {name: int(round(seconds * 1e9)) for name, seconds in result.durations.items()},
        }
        stream.write(json.dumps(payload) + "\n")
        return
    for diagnostic in result.diagnostics:
        line = _describe(diagnostic)
        color = _COLORS.get(diagnostic.severity)
        if color is not None and not no_color:
            line = colored(line, color)
        stream.write(line + "\n")


def _list_checks(args: argparse.Namespace, stream: TextIO) -> None:
    for check in _select_checks(args.groups, args.ignore_groups, None, None):
        stream.write(f"{check.name} : {check.description}\n")


def _run_checks(args: argparse.Namespace, stream: TextIO) -> None:
    if args.kubeconfig:
        paths = [args.kubeconfig]
    elif os.environ.get("KUBECONFIG"):
        paths = os.environ["KUBECONFIG"].split(_KUBECONFIG_DELIMITER)
    else:
        paths = []

    options = [
        with_merged_config_files(paths),
        with_kube_context(args.context),
        with_timeout(args.timeout),
    ]
    if args.in_cluster:
        options.append(in_cluster())

    client = new_client(*options)
    try:
        selected = _select_checks(args.groups, args.ignore_groups, args.checks, args.ignore_checks)
        object_filter = ObjectFilter.from_namespaces(args.namespace or "", args.ignore_namespace or "")
        result = run(client, selected, args.level or None, object_filter)
        write_result(result, args.output, args.no_color, stream)
    finally:
        client.close()


def _add_group_flags(parser: argparse.ArgumentParser, verb: str) -> None:
    parser.add_argument("-g", "--groups", action="append", metavar="GROUP",
                        help=f"{verb} all checks in the given groups")
    parser.add_argument("-G", "--ignore-groups", action="append", metavar="GROUP",
                        help=f"{verb} all checks not in the given groups")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterlint", description="Linter for k8s objects from a live cluster"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.add_argument("--kubeconfig", default="", help="absolute path to the kubeconfig file")
    parser.add_argument("--context", default="",
                        help="context for the kubernetes client. default: current context")
    parser.add_argument("--timeout", type=_parse_duration, default=30.0,
                        help="configure timeout for the kubernetes client. default: 30s")
    parser.add_argument("--in-cluster", action="store_true",
                        help="Enable accessing the Kubernetes API from a Pod")
    commands = parser.add_subparsers(dest="command", required=True)

    list_parser = commands.add_parser("list", help="list all checks in the registry")
    _add_group_flags(list_parser, "list")
    list_parser.set_defaults(handler=_list_checks)

    run_parser = commands.add_parser("run", help="run all checks in the registry")
    _add_group_flags(run_parser, "run")
    run_parser.add_argument("-c", "--checks", action="append", help="run a specific check")
    run_parser.add_argument("-C", "--ignore-checks", action="append", help="skip a specific check")
    run_parser.add_argument("-n", "--namespace", default="", help="run checks in specific namespace")
    run_parser.add_argument("-N", "--ignore-namespace", default="",
                            help="run checks not in specific namespace")
    run_parser.add_argument("-o", "--output", default="text",
                            help="output format [text|json]. Default: text")
    run_parser.add_argument("-l", "--level", default="",
                            help="Filter output messages based on severity "
                                 "[error|warning|suggestion]. Default: all")
    run_parser.add_argument("--no-color", action="store_true", help="Disable color output")
    run_parser.set_defaults(handler=_run_checks)
    return parser


def main(argv=None) -> int:
    """Run the command line; return the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        args.handler(args, sys.stdout)
    except Exception as exc:
        print(f"failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())