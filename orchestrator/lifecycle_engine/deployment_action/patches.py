"""
Patch documents for pausing and resuming workloads.

Pure functions: given a label selector and a target, return the list filter
and the patch to send. Nothing here talks to the API.
"""

from dataclasses import dataclass
from typing import Any, Tuple

MERGE_PATCH = "application/merge-patch+json"
JSON_PATCH = "application/json-patch+json"


@dataclass(frozen=True)
class ListFilter:
    """Which resources a patch applies to."""
    label_selector: str


@dataclass(frozen=True)
class PatchSpec:
    """A patch document and how to send it."""
    body: Any
    content_type: str
    scale_subresource: bool = False


def build_scale_patch(selector: str, desired_replica_count: int) -> Tuple[ListFilter, PatchSpec]:
    """Merge patch setting spec.replicas on the scale subresource (Deployment, StatefulSet)."""
    if desired_replica_count < 0:
        raise ValueError(f"Replica count cannot be negative: {desired_replica_count}")
    patch = PatchSpec(
        body={"spec": {"replicas": desired_replica_count}},
        content_type=MERGE_PATCH,
        scale_subresource=True
    )
    return ListFilter(label_selector=selector), patch


def build_suspend_patch(selector: str, desired_suspend: bool) -> Tuple[ListFilter, PatchSpec]:
    """JSON patch replacing spec.suspend (CronJob)."""
    patch = PatchSpec(
        body=[{"op": "replace", "path": "/spec/suspend", "value": desired_suspend}],
        content_type=JSON_PATCH
    )
    return ListFilter(label_selector=selector), patch
