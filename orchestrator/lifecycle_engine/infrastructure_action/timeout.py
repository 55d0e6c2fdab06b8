"""
Node group apply timeout derived from the running pod population.

Removing nodes evicts every pod they run, and each eviction may take up to
the pod's terminationGracePeriodSeconds. The terraform apply that removes
node groups must therefore be allowed at least the longest grace period,
plus time proportional to how many pods have to be moved.
"""

import math
from typing import List, Optional, Tuple

from kubernetes import client

from ..config import get_settings
from .models import KubernetesClusterAction

# Minutes added on top of the longest grace period for node draining itself
GRACE_PERIOD_MARGIN_MINUTES = 10


def _termination_grace_period_seconds(pod: client.V1Pod) -> int:
    if pod.spec is None or pod.spec.termination_grace_period_seconds is None:
        return 0
    return pod.spec.termination_grace_period_seconds


def define_cluster_upgrade_timeout(
    pods: List[client.V1Pod],
    action: KubernetesClusterAction,
    default_timeout_minutes: Optional[int] = None,
    pods_per_extra_minute: Optional[int] = None
) -> Tuple[int, Optional[str]]:
    """
    Compute the node group apply timeout, in minutes.

    Args:
        pods: Pods currently running in the cluster (may be empty)
        action: Cluster action being performed
        default_timeout_minutes: Timeout when no pod needs more (default: settings)
        pods_per_extra_minute: Pods per extra minute of timeout, 0 to disable (default: settings)

    Returns:
        (timeout in minutes, advisory message to show the user or None)
    """
    settings = get_settings()
    if default_timeout_minutes is None:
        default_timeout_minutes = settings.cluster_upgrade_default_timeout_minutes
    if pods_per_extra_minute is None:
        pods_per_extra_minute = settings.pods_per_extra_timeout_minute

    # Nothing runs on a cluster being bootstrapped
    if action == KubernetesClusterAction.BOOTSTRAP:
        return default_timeout_minutes, None

    timeout_minutes = default_timeout_minutes
    message = None

    max_grace_period = 0
    slow_pods = []
    for pod in pods:
        grace_period = _termination_grace_period_seconds(pod)
        max_grace_period = max(max_grace_period, grace_period)
        if grace_period > default_timeout_minutes * 60:
            slow_pods.append(f"{pod.metadata.name} [{pod.metadata.namespace}] ({grace_period} seconds)")

    if slow_pods:
        timeout_minutes = math.ceil(max_grace_period / 60) + GRACE_PERIOD_MARGIN_MINUTES

    if pods_per_extra_minute > 0:
        timeout_minutes += len(pods) // pods_per_extra_minute

    if slow_pods:
        message = (
            f"Kubernetes workers timeout will be adjusted to {timeout_minutes} minutes, because some pods "
            f"have terminationGracePeriodSeconds greater than {default_timeout_minutes} minutes. Pods:\n"
            + "\n".join(slow_pods)
        )

    return timeout_minutes, message
