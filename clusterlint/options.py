"""Options for building a cluster client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

TransportWrapper = Callable[[object], object]


@dataclass
class ClientOptions:
    """Settings gathered from option functions before a client is built."""

    paths: list[str] = field(default_factory=list)
    kube_context: str = ""
    yaml_text: Optional[str] = None
    transport_wrapper: Optional[TransportWrapper] = None
    timeout: float = 0.0
    in_cluster: bool = False

    def validate(self) -> None:
        """Raise ValueError for conflicting settings."""
        if self.yaml_text is not None and self.paths:
            raise ValueError("cannot specify yaml and kubeconfig file paths")
        if (self.yaml_text is not None or self.paths) and self.in_cluster:
            raise ValueError("cannot specify yaml or kubeconfig file paths when running in-cluster mode")


Option = Callable[[ClientOptions], None]


def with_config_file(path: str) -> Option:
    """Use a single kubeconfig file."""

    def apply(options: ClientOptions) -> None:
        options.paths = [path]

    return apply


def with_kube_context(kube_context: str) -> Option:
    """Use a specific kubeconfig context."""

    def apply(options: ClientOptions) -> None:
        options.kube_context = kube_context

    return apply


def with_yaml(yaml_text) -> Option:
    """Use kubeconfig content given directly."""

    def apply(options: ClientOptions) -> None:
        options.yaml_text = yaml_text.decode() if isinstance(yaml_text, bytes) else yaml_text

    return apply


def with_merged_config_files(paths) -> Option:
    """Use several kubeconfig files merged in order."""

    def apply(options: ClientOptions) -> None:
        options.paths = list(paths or [])

    return apply


def with_timeout(seconds: float) -> Option:
    """Set the request timeout in seconds; zero means none."""

    def apply(options: ClientOptions) -> None:
        options.timeout = seconds

    return apply


def with_transport_wrapper(wrapper: TransportWrapper) -> Option:
    """Wrap the HTTP transport adapter used by the client."""

    def apply(options: ClientOptions) -> None:
        options.transport_wrapper = wrapper

    return apply


def in_cluster() -> Option:
    """Access the API from inside a pod."""

    def apply(options: ClientOptions) -> None:
        options.in_cluster = True

    return apply