# clusterlint

`clusterlint` fetches objects from a live Kubernetes cluster over its HTTP API
and runs a set of checks against them, reporting problems that may cause
trouble during upgrades or node replacement, or that go against security
best practices.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

List the available checks (one `name : description` line each):

```
clusterlint list
clusterlint list -g doks
clusterlint list -G security
```

Run the checks against the cluster of your current kubeconfig context:

```
clusterlint run
```

Options for `run`:

- `-g, --groups GROUP` / `-G, --ignore-groups GROUP`: run only the checks in,
  or skip the checks in, a group. Repeat the flag for several groups
  (`-g doks -g security`).
- `-c, --checks NAME` / `-C, --ignore-checks NAME`: run only, or skip, a
  specific check; repeat the flag for several. When `-c` is given, `-g` is
  not consulted.
- `-n, --namespace NS` / `-N, --ignore-namespace NS`: inspect namespaced
  objects only in, or only outside, one namespace. Giving both is an error.
- `-o, --output text|json`: output format (default `text`).
- `-l, --level error|warning|suggestion`: show only diagnostics of one
  severity (default: all).
- `--no-color`: turn off coloured text output.

`list` accepts `-g` and `-G` only.

Global options, given before the subcommand:

- `--kubeconfig PATH`: kubeconfig file to use. Without it, the files in
  `$KUBECONFIG` (separated by `:`) are merged; without that,
  `~/.kube/config` is read.
- `--context NAME`: kubeconfig context to use (default: the current context).
- `--timeout DURATION`: request timeout, written like `30s`, `1m30s` or
  `500ms` (default `30s`; `0` means no timeout).
- `--in-cluster`: use the service account of the pod the tool runs in,
  found through `KUBERNETES_SERVICE_HOST` and `KUBERNETES_SERVICE_PORT`.
- `--version`: print the version.

```
clusterlint --context staging run -g doks -o json
```

On failure the command prints `failed: <reason>` and exits with status 1.

### Output

Text output prints one line per diagnostic, coloured red for errors, yellow
for warnings and blue for suggestions:

```
[warning] [dobs-pod-owner] pod default/foo: Pod referencing DOBS volumes must be owned by StatefulSet
```

Details, where a check gives them, follow in parentheses. JSON output is a
single object with `Diagnostics` (a list of objects with `check`,
`severity`, `message`, `kind`, `object`, `owners` and `details`) and
`Durations` (each check's running time in nanoseconds).

## Checks

| Name | Group | What it looks for |
| --- | --- | --- |
| `admission-controller-webhook-replacement` | doks | webhooks that may block upgrades or node replacement |
| `admission-controller-webhook-timeout` | doks | webhooks with a timeout outside 1–29 seconds |
| `dobs-pod-owner` | doks | pods with block-storage volumes not owned by a StatefulSet |
| `node-labels-and-taints` | doks | custom node labels and taints that are lost on replacement |
| `node-name-pod-selector` | doks | pods selecting nodes by `kubernetes.io/hostname` |
| `invalid-volume-snapshot` | doks | volume snapshots labelled invalid |
| `invalid-volume-snapshot-content` | doks | volume snapshot contents labelled invalid |
| `privileged-containers` | security | containers running in privileged mode |
| `non-root-user` | security | containers that may run as root |
| `noop` | – | does nothing |

`clusterlint.checks.example` holds `ExampleCheck` (`example-plugin`, group
`examples`), which reports a suggestion for every pod. It shows how a check is
written; the command line does not load it.

## Library use

Each module in `clusterlint.checks` registers its checks in the shared
registry when it is imported. `run` fetches the cluster's objects and runs
the given checks in parallel:

```python
from clusterlint import registry
from clusterlint.checks import dobs_pod_owner, webhook_timeout  # registers checks
from clusterlint.object_filter import ObjectFilter
from clusterlint.objects import new_client
from clusterlint.options import with_kube_context
from clusterlint.run_checks import run

client = new_client(with_kube_context("staging"))
try:
    result = run(client, registry.get_group("doks"), "warning", ObjectFilter())
finally:
    client.close()

for diagnostic in result.diagnostics:
    print(diagnostic.to_dict())
```

A check of your own subclasses `registry.Check`, sets `name`, `groups` and
`description`, implements `run(objects)` returning a list of `Diagnostic`,
and is added with `registry.register(check)`. The objects it receives are an
`objects.Objects` snapshot whose fields (`pods`, `nodes`, `namespaces`,
`storage_classes`, …) hold the API's JSON dictionaries. A check that raises
makes `run` raise `CheckFailedError`.

## Limitations

- Checks are extended only by Python code that calls `registry.register`;
  there is no option for loading check plugins from files.
- Kubeconfig credentials supported are bearer tokens (`token`, `tokenFile`),
  client certificates and keys, basic auth and certificate authorities.
  Credential plugins (`exec`, `auth-provider`) are not run.