"""
Service Pause/Resume

Scales a service's workloads to zero when its environment is paused, and
brings them back when it resumes. Deployments and StatefulSets are scaled
through their scale subresource, CronJobs are suspended, DaemonSets and Jobs
are left alone.

Two-tier wait on pause:
1. Per resource: wait for status.ready_replicas to reach the target. This is
   best effort, a failed wait does not fail the pause.
2. Per selector: wait for the number of matching pods to reach the target.
   Terminating pods are excluded from ready replicas but still run (and
   cost money), so only the pod count shows that the scale down is done.

Neither step has its own deadline: PauseServiceAction bounds the whole call
with one timeout. A timed out pause is not rolled back; calling pause again
is safe and resumes convergence from wherever the cluster is.

HPAs do not need to be removed: with replicas set to 0 an HPA deactivates
itself until the replica count is changed back.
"""

import asyncio
import functools
import logging
from datetime import timedelta
from typing import Any, Optional, Tuple

import urllib3
from kubernetes.client.rest import ApiException

from ..config import get_settings
from ..errors import ScaleOperationFailed, ScaleOperationTimedOut
from ..events import EventDetails
from ..kubernetes.client import KubernetesClient
from ..kubernetes.resource_kind import KindPolicy, PatchStrategy, ResourceKind, policy_for
from ..runtime import best_effort, block_on
from .base import DeploymentAction, DeploymentTarget
from .conditions import Condition, await_condition, ready_replicas_equal, suspend_equals
from .patches import ListFilter, PatchSpec, build_scale_patch, build_suspend_patch

logger = logging.getLogger(__name__)

# Replica count used when resuming. Pre-pause counts are not recorded.
RESUME_REPLICAS = 1


def _patch_for(policy: KindPolicy, selector: str, desired_size: int) -> Tuple[ListFilter, PatchSpec]:
    if policy.patch_strategy == PatchStrategy.SCALE:
        return build_scale_patch(selector, desired_size)
    return build_suspend_patch(selector, desired_size == 0)


def _condition_for(policy: KindPolicy, desired_size: int) -> Condition:
    if policy.patch_strategy == PatchStrategy.SCALE:
        return ready_replicas_equal(desired_size)
    return suspend_equals(desired_size == 0)


def _namespace_and_name(resource: Any) -> Tuple[Optional[str], Optional[str]]:
    metadata = resource.metadata
    if metadata is None:
        return None, None
    return metadata.namespace, metadata.name


def _observed_replicas(resource: Any) -> int:
    status = resource.status
    if status is None or status.replicas is None:
        return 0
    return status.replicas


async def _patch(kube: KubernetesClient, kind: ResourceKind, name: str, namespace: str, patch: PatchSpec) -> None:
    await kube.patch_workload(
        kind,
        name,
        namespace,
        body=patch.body,
        content_type=patch.content_type,
        scale_subresource=patch.scale_subresource
    )


async def pause_service(
    kube: KubernetesClient,
    namespace: str,
    selector: str,
    desired_size: int,
    k8s_resource_type: ResourceKind,
    is_cluster_wide_resources_allowed: bool,
    pod_poll_interval: Optional[float] = None,
    condition_poll_interval: Optional[float] = None
) -> None:
    """
    Drive every workload matching selector to desired_size.

    desired_size is 0 when pausing. For CronJobs any desired_size other than
    0 means "not suspended".

    Args:
        kube: Kubernetes client
        namespace: Environment namespace (ignored for listing when cluster wide)
        selector: Label selector of the service's workloads
        desired_size: Target replica count
        k8s_resource_type: Kind of the workloads
        is_cluster_wide_resources_allowed: List across all namespaces

    Raises:
        ApiException: A list or patch call failed, or the pod poll failed
    """
    policy = policy_for(k8s_resource_type)
    if policy.is_noop:
        logger.debug(f"[PAUSE] {k8s_resource_type} has no pause semantics, nothing to do for '{selector}'")
        return

    list_filter, patch = _patch_for(policy, selector, desired_size)
    condition = _condition_for(policy, desired_size)
    list_namespace = None if is_cluster_wide_resources_allowed else namespace

    resources = await kube.list_workloads(k8s_resource_type, list_filter.label_selector, list_namespace)
    for resource in resources:
        resource_namespace, name = _namespace_and_name(resource)
        if not resource_namespace or not name:
            logger.debug(f"[PAUSE] Skipping {k8s_resource_type} without namespace or name")
            continue

        await _patch(kube, k8s_resource_type, name, resource_namespace, patch)
        logger.info(f"[PAUSE] Patched {k8s_resource_type} {resource_namespace}/{name} (target: {desired_size})")

        read = functools.partial(kube.read_workload, k8s_resource_type, name, resource_namespace)
        _, wait_error = await best_effort(
            await_condition(read, condition, condition_poll_interval),
            None,
            logger,
            f"[PAUSE] Waiting for {k8s_resource_type} {resource_namespace}/{name}"
        )
        if wait_error is None:
            logger.debug(f"[PAUSE] {k8s_resource_type} {resource_namespace}/{name} converged")

    if policy.waits_for_pods:
        await wait_for_pods_to_be_in_correct_state(
            kube,
            namespace,
            desired_size,
            is_cluster_wide_resources_allowed,
            list_filter,
            pod_poll_interval
        )


async def wait_for_pods_to_be_in_correct_state(
    kube: KubernetesClient,
    namespace: str,
    desired_size: int,
    is_cluster_wide_resources_allowed: bool,
    list_filter: ListFilter,
    interval: Optional[float] = None
) -> None:
    """
    Poll pods matching list_filter until their count equals desired_size.

    Runs until the caller's timeout fires. A failed list ends the wait and
    propagates.
    """
    if interval is None:
        interval = get_settings().pod_poll_interval_seconds
    list_namespace = None if is_cluster_wide_resources_allowed else namespace

    while True:
        pods = await kube.list_pods(list_filter.label_selector, list_namespace)
        if len(pods) == desired_size:
            logger.info(f"[PAUSE] {len(pods)} pod(s) left for '{list_filter.label_selector}'")
            return
        logger.debug(f"[PAUSE] Waiting for pods of '{list_filter.label_selector}': "
                     f"{len(pods)} running, {desired_size} expected")
        await asyncio.sleep(interval)


async def unpause_service_if_needed(
    kube: KubernetesClient,
    namespace: str,
    selector: str,
    k8s_resource_type: ResourceKind,
    is_cluster_wide_resources_allowed: bool
) -> None:
    """
    Bring paused workloads back.

    Deployments and StatefulSets are scaled to one replica, and only when
    they currently run zero replicas: a replica count set by hand is never
    overwritten. CronJobs are always un-suspended. Does not wait for pods.
    """
    policy = policy_for(k8s_resource_type)
    if policy.is_noop:
        logger.debug(f"[PAUSE] {k8s_resource_type} has no resume semantics, nothing to do for '{selector}'")
        return

    list_filter, patch = _patch_for(policy, selector, RESUME_REPLICAS)
    list_namespace = None if is_cluster_wide_resources_allowed else namespace

    resources = await kube.list_workloads(k8s_resource_type, list_filter.label_selector, list_namespace)
    for resource in resources:
        resource_namespace, name = _namespace_and_name(resource)
        if not resource_namespace or not name:
            logger.debug(f"[PAUSE] Skipping {k8s_resource_type} without namespace or name")
            continue

        if policy.patch_strategy == PatchStrategy.SCALE:
            replicas = _observed_replicas(resource)
            if replicas != 0:
                logger.debug(f"[PAUSE] {k8s_resource_type} {resource_namespace}/{name} "
                             f"already runs {replicas} replica(s), leaving it as is")
                continue

        await _patch(kube, k8s_resource_type, name, resource_namespace, patch)
        logger.info(f"[PAUSE] Resumed {k8s_resource_type} {resource_namespace}/{name}")


class PauseServiceAction(DeploymentAction):
    """
    Deployment action pausing a service's workloads.

    Only on_pause does something: a service is never paused at creation,
    deletion bypasses the graceful pause, and a restart does not resume a
    paused service. Resuming is triggered explicitly through
    unpause_if_needed.
    """

    def __init__(
        self,
        selector: str,
        k8s_resource_type: ResourceKind,
        timeout: timedelta,
        event_details: EventDetails,
        is_cluster_wide_resources_allowed: bool = False
    ):
        self._selector = selector
        self._k8s_resource_type = k8s_resource_type
        self._timeout = timeout
        self._event_details = event_details
        self._is_cluster_wide_resources_allowed = is_cluster_wide_resources_allowed

    @classmethod
    def for_service(
        cls,
        selector: str,
        is_stateful: bool,
        event_details: EventDetails,
        timeout: Optional[timedelta] = None
    ) -> "PauseServiceAction":
        """Action for an application service: a StatefulSet or a Deployment in its own namespace."""
        kind = ResourceKind.STATEFULSET if is_stateful else ResourceKind.DEPLOYMENT
        if timeout is None:
            timeout = timedelta(seconds=get_settings().pause_service_timeout_seconds)
        return cls(selector, kind, timeout, event_details, is_cluster_wide_resources_allowed=False)

    @property
    def selector(self) -> str:
        return self._selector

    @property
    def k8s_resource_type(self) -> ResourceKind:
        return self._k8s_resource_type

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    @property
    def event_details(self) -> EventDetails:
        return self._event_details

    @property
    def is_cluster_wide_resources_allowed(self) -> bool:
        return self._is_cluster_wide_resources_allowed

    # =========================================================================
    # PAUSE / RESUME
    # =========================================================================

    def pause(self, target: DeploymentTarget) -> None:
        """
        Scale the service down to zero and wait for its pods to be gone.

        Raises:
            ScaleOperationTimedOut: The timeout elapsed first. Nothing is rolled back.
            ScaleOperationFailed: A Kubernetes call failed
        """
        self._run(
            pause_service(
                target.kube,
                target.namespace,
                self._selector,
                0,
                self._k8s_resource_type,
                self._is_cluster_wide_resources_allowed
            ),
            target,
            desired_size=0,
            doing="scaling down service"
        )

    def unpause_if_needed(self, target: DeploymentTarget) -> None:
        """
        Resume workloads left at zero replicas, un-suspend CronJobs.

        Raises:
            ScaleOperationTimedOut: The timeout elapsed first
            ScaleOperationFailed: A Kubernetes call failed
        """
        self._run(
            unpause_service_if_needed(
                target.kube,
                target.namespace,
                self._selector,
                self._k8s_resource_type,
                self._is_cluster_wide_resources_allowed
            ),
            target,
            desired_size=RESUME_REPLICAS,
            doing="un-pausing service"
        )

    resume_if_needed = unpause_if_needed

    def _run(self, operation, target: DeploymentTarget, desired_size: int, doing: str) -> None:
        timeout_seconds = self._timeout.total_seconds()
        try:
            block_on(asyncio.wait_for(operation, timeout=timeout_seconds))
        except asyncio.TimeoutError as e:
            logger.error(f"[PAUSE] Timeout of {timeout_seconds:g}s exceeded while {doing} "
                         f"'{self._selector}' in {target.namespace}")
            raise ScaleOperationTimedOut(
                self._selector,
                target.namespace,
                desired_size,
                self._timeout,
                f"Timeout of {timeout_seconds:g}s exceeded while {doing}",
                event_details=self._event_details
            ) from e
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            logger.error(f"[PAUSE] Kubernetes error while {doing} '{self._selector}' in {target.namespace}: {e}")
            raise ScaleOperationFailed(
                self._selector,
                target.namespace,
                desired_size,
                str(e),
                event_details=self._event_details
            ) from e

    # =========================================================================
    # DEPLOYMENT ACTION HOOKS
    # =========================================================================

    def on_create(self, target: DeploymentTarget) -> None:
        return None

    def on_pause(self, target: DeploymentTarget) -> None:
        self.pause(target)

    def on_delete(self, target: DeploymentTarget) -> None:
        return None

    def on_restart(self, target: DeploymentTarget) -> None:
        return None
