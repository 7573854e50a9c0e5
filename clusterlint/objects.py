"""Fetching the objects of a Kubernetes cluster over its HTTP API."""

from __future__ import annotations

import base64
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import requests
import yaml

from .object_filter import ObjectFilter
from .options import ClientOptions

SYSTEM_NAMESPACE = "kube-system"
DEFAULT_CLASS_ANNOTATION = "storageclass.kubernetes.io/is-default-class"
_SA_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")


class FetchError(Exception):
    """A request to the cluster API failed."""


class NotFoundError(FetchError):
    """The cluster API answered 404 Not Found."""


@dataclass(frozen=True)
class Identifier:
    """Identifies one namespaced object."""

    name: str
    namespace: str


@dataclass
class Objects:
    """All objects fetched from a cluster, as API dictionaries."""

    nodes: list = field(default_factory=list)
    persistent_volumes: list = field(default_factory=list)
    system_namespace: Optional[dict] = None
    pods: list = field(default_factory=list)
    pod_templates: list = field(default_factory=list)
    persistent_volume_claims: list = field(default_factory=list)
    config_maps: list = field(default_factory=list)
    services: list = field(default_factory=list)
    secrets: list = field(default_factory=list)
    service_accounts: list = field(default_factory=list)
    resource_quotas: list = field(default_factory=list)
    limit_ranges: list = field(default_factory=list)
    volume_snapshots_v1: list = field(default_factory=list)
    volume_snapshots_v1_content: list = field(default_factory=list)
    volume_snapshots_beta: list = field(default_factory=list)
    volume_snapshots_beta_content: list = field(default_factory=list)
    storage_classes: list = field(default_factory=list)
    default_storage_class: Optional[dict] = None
    mutating_webhook_configurations: list = field(default_factory=list)
    validating_webhook_configurations: list = field(default_factory=list)
    namespaces: list = field(default_factory=list)
    cron_jobs: list = field(default_factory=list)


# attribute, label for errors, path, namespace-filtered
_LISTS = [
    ("persistent_volumes", "PersistentVolumes", "/api/v1/persistentvolumes", False),
    ("pods", "Pods", "/api/v1/pods", True),
    ("pod_templates", "PodTemplates", "/api/v1/podtemplates", True),
    ("persistent_volume_claims", "PersistentVolumeClaims", "/api/v1/persistentvolumeclaims", True),
    ("config_maps", "ConfigMaps", "/api/v1/configmaps", True),
    ("secrets", "Secrets", "/api/v1/secrets", True),
    ("services", "Services", "/api/v1/services", True),
    ("service_accounts", "ServiceAccounts", "/api/v1/serviceaccounts", True),
    ("resource_quotas", "ResourceQuotas", "/api/v1/resourcequotas", True),
    ("limit_ranges", "LimitRanges", "/api/v1/limitranges", True),
    (
        "mutating_webhook_configurations",
        "MutatingWebhookConfigurations (v1)",
        "/apis/admissionregistration.k8s.io/v1/mutatingwebhookconfigurations",
        False,
    ),
    (
        "validating_webhook_configurations",
        "ValidatingWebhookConfigurations (v1)",
        "/apis/admissionregistration.k8s.io/v1/validatingwebhookconfigurations",
        False,
    ),
    ("namespaces", "Namespaces", "/api/v1/namespaces", False),
    ("cron_jobs", "CronJobs", "/apis/batch/v1/cronjobs", True),
    ("volume_snapshots_v1", "VolumeSnapshotsV1", "/apis/snapshot.storage.k8s.io/v1/volumesnapshots", True),
    (
        "volume_snapshots_v1_content",
        "VolumeSnapshotsV1Contents",
        "/apis/snapshot.storage.k8s.io/v1/volumesnapshotcontents",
        True,
    ),
    ("volume_snapshots_beta", "VolumeSnapshotsBeta", "/apis/snapshot.storage.k8s.io/v1beta1/volumesnapshots", True),
    (
        "volume_snapshots_beta_content",
        "VolumeSnapshotsBetaContents",
        "/apis/snapshot.storage.k8s.io/v1beta1/volumesnapshotcontents",
        True,
    ),
]


def annotate_fetch_error(kind: str, error: Optional[BaseException]) -> Optional[FetchError]:
    """Describe a fetch error; missing resources are not errors."""
    if error is None or isinstance(error, NotFoundError):
        return None
    return FetchError(f"failed to fetch {kind}: {error}")


class Client:
    """A client for one cluster's HTTP API."""

    def __init__(self, server: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None, temp_files=()) -> None:
        self.server = server.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or None
        self._temp_files = list(temp_files)

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        response = self.session.get(self.server + path, params=params or None, timeout=self.timeout)
        if response.ok:
            return response.json()
        try:
            message = response.json().get("message") or response.text
        except ValueError:
            message = response.text
        if response.status_code == 404:
            raise NotFoundError(message or "not found")
        raise FetchError(f"{response.status_code}: {message}")

    def _items(self, path: str, params: Optional[dict] = None) -> list:
        return self._get(path, params).get("items") or []

    def fetch_objects(self, object_filter: Optional[ObjectFilter] = None) -> Objects:
        """Fetch every object kind concurrently; raise on the first failure."""
        object_filter = object_filter or ObjectFilter()
        objects = Objects()

        def fetch_nodes() -> None:
            objects.nodes = self._items("/api/v1/nodes")

        def fetch_storage_classes() -> None:
            objects.storage_classes = self._items("/apis/storage.k8s.io/v1/storageclasses")
            for sc in objects.storage_classes:
                annotations = (sc.get("metadata") or {}).get("annotations") or {}
                if annotations.get(DEFAULT_CLASS_ANNOTATION) == "true":
                    objects.default_storage_class = sc

        def fetch_system_namespace() -> None:
            try:
                objects.system_namespace = self._get(f"/api/v1/namespaces/{SYSTEM_NAMESPACE}")
            except Exception as exc:
                raise FetchError(f'failed to fetch namespace "{SYSTEM_NAMESPACE}": {exc}') from exc

        def list_task(attr: str, kind: str, path: str, namespaced: bool):
            def task() -> None:
                params = object_filter.namespace_options({}) if namespaced else {}
                try:
                    setattr(objects, attr, self._items(path, params))
                except Exception as exc:
                    error = annotate_fetch_error(kind, exc)
                    if error is not None:
                        raise error from exc

            return task

        tasks = [fetch_nodes, fetch_storage_classes, fetch_system_namespace]
        tasks += [list_task(*spec) for spec in _LISTS]
        with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
            futures = [pool.submit(task) for task in tasks]
        for future in futures:
            error = future.exception()
            if error is not None:
                raise error
        return objects

    def close(self) -> None:
        """Release connections and any credential files written for the client."""
        self.session.close()
        for path in self._temp_files:
            try:
                os.unlink(path)
            except OSError:
                pass
        self._temp_files.clear()


@dataclass
class _RestConfig:
    server: str
    verify: Any = True
    cert: Optional[tuple] = None
    token: Optional[str] = None
    basic_auth: Optional[tuple] = None
    temp_files: list = field(default_factory=list)


def _by_name(docs, section: str) -> dict:
    result: dict = {}
    for base, doc in docs:
        for entry in doc.get(section) or []:
            name = entry.get("name")
            if name not in result:
                result[name] = (base, entry.get(section[:-1]) or {})
    return result


def _resolve(base: Optional[Path], path: str) -> str:
    p = Path(path).expanduser()
    if base is not None and not p.is_absolute():
        p = base / p
    return str(p)


def config_from_kubeconfig(options: ClientOptions) -> _RestConfig:
    """Read kubeconfig content and return connection settings."""
    docs = []
    if options.yaml_text is not None:
        docs.append((None, yaml.safe_load(options.yaml_text) or {}))
    else:
        paths = list(options.paths)
        explicit = bool(paths)
        if not paths:
            env = os.environ.get("KUBECONFIG", "")
            paths = [p for p in env.split(os.pathsep) if p] or [str(Path.home() / ".kube" / "config")]
        for path in paths:
            p = Path(path).expanduser()
            if not p.exists():
                if explicit and len(paths) == 1:
                    raise FileNotFoundError(f"stat {path}: no such file or directory")
                continue
            docs.append((p.parent, yaml.safe_load(p.read_text()) or {}))
    if not docs:
        raise ValueError("invalid configuration: no configuration has been provided")

    current = options.kube_context or next(
        (doc.get("current-context") for _, doc in docs if doc.get("current-context")), ""
    )
    contexts = _by_name(docs, "contexts")
    if current not in contexts:
        raise ValueError(f'context "{current}" does not exist')
    _, context = contexts[current]
    clusters = _by_name(docs, "clusters")
    users = _by_name(docs, "users")
    if context.get("cluster") not in clusters:
        raise ValueError(f'cluster "{context.get("cluster")}" does not exist')
    cluster_base, cluster = clusters[context["cluster"]]
    user_base, user = users.get(context.get("user"), (None, {}))
    server = cluster.get("server")
    if not server:
        raise ValueError("invalid configuration: no server found for cluster")

    temp_files: list = []

    def materialize(data: str) -> str:
        fd, path = tempfile.mkstemp(prefix="clusterlint-")
        with os.fdopen(fd, "wb") as handle:
            handle.write(base64.b64decode(data))
        temp_files.append(path)
        return path

    def file_or_data(entry: dict, base, key: str) -> Optional[str]:
        if entry.get(f"{key}-data"):
            return materialize(entry[f"{key}-data"])
        if entry.get(key):
            return _resolve(base, entry[key])
        return None

    config = _RestConfig(server=server, temp_files=temp_files)
    if cluster.get("insecure-skip-tls-verify"):
        config.verify = False
    else:
        ca = file_or_data(cluster, cluster_base, "certificate-authority")
        if ca:
            config.verify = ca
    cert = file_or_data(user, user_base, "client-certificate")
    key = file_or_data(user, user_base, "client-key")
    if cert and key:
        config.cert = (cert, key)
    if user.get("token"):
        config.token = user["token"]
    elif user.get("tokenFile"):
        config.token = Path(_resolve(user_base, user["tokenFile"])).read_text().strip()
    if user.get("username"):
        config.basic_auth = (user["username"], user.get("password", ""))
    return config


def _in_cluster_config() -> _RestConfig:
    host = os.environ.get("KUBERNETES_SERVICE_HOST", "")
    port = os.environ.get("KUBERNETES_SERVICE_PORT", "")
    if not host or not port:
        raise ValueError(
            "unable to load in-cluster configuration, "
            "KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined"
        )
    if ":" in host:
        host = f"[{host}]"
    token = (_SA_DIR / "token").read_text().strip()
    ca = _SA_DIR / "ca.crt"
    return _RestConfig(server=f"https://{host}:{port}", verify=str(ca) if ca.exists() else True, token=token)


def new_client(*args) -> Client:
    """Build a client from option functions such as with_config_file()."""
    options = ClientOptions()
    for option in args:
        option(options)
    options.validate()
    config = _in_cluster_config() if options.in_cluster else config_from_kubeconfig(options)

    session = requests.Session()
    session.verify = config.verify
    if config.cert:
        session.cert = config.cert
    if config.token:
        session.headers["Authorization"] = f"Bearer {config.token}"
    elif config.basic_auth:
        session.auth = config.basic_auth
    if options.transport_wrapper is not None:
        for prefix in ("http://", "https://"):
            session.mount(prefix, options.transport_wrapper(session.get_adapter(prefix)))
    return Client(config.server, session=session, timeout=options.timeout, temp_files=config.temp_files)