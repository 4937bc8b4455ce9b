from __future__ import annotations

import os
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from .errors import ClientBootstrapError, ListError
from .models import PRIMARY_LABEL, LabelPatch, PodCandidate
from .settings import Settings

# Failures the API client surfaces for a single request: HTTP status errors and
# transport errors (connection refused, read timeouts from _request_timeout).
API_ERRORS = (ApiException, HTTPError, OSError)


def default_kubeconfig() -> str:
    home = os.getenv("HOME") or os.getenv("USERPROFILE") or ""
    if not home:
        return ""
    return os.path.join(home, ".kube", "config")


def build_core_api(settings: Settings, kubeconfig: str | None = None) -> client.CoreV1Api:
    """Build a CoreV1Api from the in-cluster service account or a local kubeconfig.

    The in-cluster source is used whenever KUBERNETES_SERVICE_HOST is present.
    """
    try:
        if settings.in_cluster:
            config.load_incluster_config()
        else:
            config.load_kube_config(config_file=kubeconfig or default_kubeconfig() or None)
    except (ConfigException, OSError, TypeError, ValueError) as e:
        source = "in-cluster config" if settings.in_cluster else f"kubeconfig {kubeconfig or default_kubeconfig()!r}"
        raise ClientBootstrapError(f"load kubernetes {source}: {e}") from e
    return client.CoreV1Api()


def list_candidates(api: Any, namespace: str, selector: str, timeout_s: float) -> list[PodCandidate]:
    """List pods matching ``selector`` in ``namespace``, in server order."""
    try:
        pods = api.list_namespaced_pod(namespace, label_selector=selector, _request_timeout=timeout_s)
    except API_ERRORS as e:
        raise ListError(f"list pods in namespace {namespace!r} with selector {selector!r}: {e}") from e

    out: list[PodCandidate] = []
    for pod in pods.items:
        labels = pod.metadata.labels or {}
        out.append(PodCandidate(name=pod.metadata.name, primary_label=labels.get(PRIMARY_LABEL)))
    return out


def patch_pod_labels(api: Any, namespace: str, patch: LabelPatch, timeout_s: float) -> None:
    """Apply ``patch`` as a strategic-merge patch. Transport errors propagate to the caller."""
    # A dict body is sent as application/strategic-merge-patch+json.
    api.patch_namespaced_pod(patch.pod, namespace, patch.body(), _request_timeout=timeout_s)
