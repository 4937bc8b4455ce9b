import copy
import logging
import os
import sys

import pytest
from kubernetes.client import V1ObjectMeta, V1Pod, V1PodList

# Ensure project root is importable without an installed package.
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from mpl.settings import Settings  # noqa: E402


class FakeCoreV1Api:
    """In-memory stand-in for CoreV1Api's pod list/patch calls.

    Records every call in ``actions`` and applies patches with strategic-merge label
    semantics (a None value deletes the key).
    """

    def __init__(self, namespace="default", pod_names=(), labels=None):
        self.namespace = namespace
        self.pods = {}
        for name in pod_names:
            self.pods[name] = {"role": "mongo", **(labels or {}).get(name, {})}
        self.actions = []
        self.fail_patch = {}
        self.fail_list = None

    def list_namespaced_pod(self, namespace, label_selector=None, _request_timeout=None):
        self.actions.append(("list", namespace, label_selector))
        if self.fail_list is not None:
            raise self.fail_list
        items = []
        if namespace == self.namespace:
            for name, labels in self.pods.items():
                if _matches(labels, label_selector):
                    meta = V1ObjectMeta(name=name, namespace=namespace, labels=dict(labels))
                    items.append(V1Pod(metadata=meta))
        return V1PodList(items=items)

    def patch_namespaced_pod(self, name, namespace, body, _request_timeout=None):
        self.actions.append(("patch", name, copy.deepcopy(body)))
        if name in self.fail_patch:
            raise self.fail_patch[name]
        labels = self.pods[name]
        for key, value in body["metadata"]["labels"].items():
            if value is None:
                labels.pop(key, None)
            else:
                labels[key] = value
        return V1Pod(metadata=V1ObjectMeta(name=name, namespace=namespace, labels=dict(labels)))

    def patched(self):
        return [a[1] for a in self.actions if a[0] == "patch"]

    def patch_values(self):
        return {a[1]: a[2]["metadata"]["labels"]["primary"] for a in self.actions if a[0] == "patch"}

    def primary_labels(self):
        return {name: labels.get("primary") for name, labels in self.pods.items()}


def _matches(labels, selector):
    if not selector:
        return True
    for term in selector.split(","):
        key, _, value = term.partition("=")
        if labels.get(key.strip()) != value.strip():
            return False
    return True


@pytest.fixture
def mongo_pods():
    return FakeCoreV1Api("default", ["mongo-0", "mongo-1", "mongo-2"])


@pytest.fixture
def make_settings():
    def _make(**overrides):
        values = dict(label_selector="role=mongo", namespace="default", k8s_request_timeout_s=1.0)
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def test_logger():
    return logging.getLogger("mpl-tests")


@pytest.fixture
def fake_api():
    """Factory for FakeCoreV1Api instances with custom pods or labels."""
    return FakeCoreV1Api
