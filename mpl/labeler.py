from __future__ import annotations

import json
import logging
from typing import Any

from .errors import PatchError, PrimaryNotFoundError
from .kube import API_ERRORS, list_candidates, patch_pod_labels
from .models import LabelIntent, LabelPatch, PodCandidate
from .settings import Settings


def plan(candidates: list[PodCandidate], primary: str, label_all: bool) -> list[LabelPatch]:
    """Desired patch for every candidate, in candidate order."""
    return [LabelPatch(pod=c.name, intent=LabelIntent.for_pod(c.name, primary, label_all)) for c in candidates]


class PrimaryLabeler:
    """Converges the ``primary`` label of the selected pods onto the resolved primary."""

    def __init__(self, api: Any, settings: Settings, logger: logging.Logger | None = None):
        self.api = api
        self.settings = settings
        self.log = logger or logging.getLogger(__name__)

    def sync(self, primary: str) -> list[LabelPatch]:
        """Label ``primary`` as the primary pod and reset every other candidate.

        Nothing is patched unless ``primary`` is among the listed pods. Patches go out one
        pod at a time and stop at the first failure; pods already patched stay patched and
        the rest are picked up by the next cycle.

        Returns the patches that were applied.
        """
        s = self.settings
        candidates = list_candidates(self.api, s.namespace, s.label_selector, s.k8s_request_timeout_s)
        self.log.debug("Found %d pods", len(candidates))

        if not any(c.name == primary for c in candidates):
            raise PrimaryNotFoundError(primary, s.namespace, s.label_selector)

        applied: list[LabelPatch] = []
        current = {c.name: c.primary_label for c in candidates}
        for patch in plan(candidates, primary, s.label_all):
            if patch.intent is LabelIntent.SET_TRUE and current[patch.pod] != "true":
                self.log.info("Setting primary to true for pod %s", patch.pod)

            self.log.debug("Patching pod %s with: %s", patch.pod, json.dumps(patch.body()))
            try:
                patch_pod_labels(self.api, s.namespace, patch, s.k8s_request_timeout_s)
            except API_ERRORS as e:
                raise PatchError(patch.pod, e) from e
            applied.append(patch)
        return applied
