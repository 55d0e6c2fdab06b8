"""
Workload Resource Kinds

Defines the workload kinds the engine can pause and the pause policy that
applies to each. This is pure data: the executor looks a kind up once per
call instead of branching on it at every step.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ResourceKind(str, Enum):
    """
    Kubernetes workload kinds handled by service pause/resume.

    Attributes:
        DEPLOYMENT: Scaled through the scale subresource
        STATEFULSET: Scaled through the scale subresource
        CRONJOB: Suspended through spec.suspend
        DAEMONSET: No desired replica count, pause is a no-op
        JOB: Runs to completion, pause is a no-op
    """

    DEPLOYMENT = "Deployment"
    STATEFULSET = "StatefulSet"
    CRONJOB = "CronJob"
    DAEMONSET = "DaemonSet"
    JOB = "Job"

    @classmethod
    def from_string(cls, value: str) -> "ResourceKind":
        """
        Convert a string to a ResourceKind, ignoring case.

        Raises:
            ValueError: If value is not a known kind
        """
        value_lower = value.lower().strip()
        for kind in cls:
            if kind.value.lower() == value_lower:
                return kind
        valid_kinds = ", ".join([k.value for k in cls])
        raise ValueError(
            f"Invalid resource kind: '{value}'. Valid kinds: {valid_kinds}"
        )

    def __str__(self) -> str:
        return self.value


class PatchStrategy(str, Enum):
    """How the desired state of a kind is written."""

    SCALE = "scale"  # merge patch of spec.replicas on the scale subresource
    SUSPEND = "suspend"  # JSON patch replacing spec.suspend


@dataclass(frozen=True)
class KindPolicy:
    kind: ResourceKind
    patch_strategy: Optional[PatchStrategy]
    # Pods only disappear for kinds that own replicas
    waits_for_pods: bool

    @property
    def is_noop(self) -> bool:
        return self.patch_strategy is None


POLICIES: Dict[ResourceKind, KindPolicy] = {
    ResourceKind.DEPLOYMENT: KindPolicy(ResourceKind.DEPLOYMENT, PatchStrategy.SCALE, waits_for_pods=True),
    ResourceKind.STATEFULSET: KindPolicy(ResourceKind.STATEFULSET, PatchStrategy.SCALE, waits_for_pods=True),
    ResourceKind.CRONJOB: KindPolicy(ResourceKind.CRONJOB, PatchStrategy.SUSPEND, waits_for_pods=False),
    ResourceKind.DAEMONSET: KindPolicy(ResourceKind.DAEMONSET, None, waits_for_pods=False),
    ResourceKind.JOB: KindPolicy(ResourceKind.JOB, None, waits_for_pods=False),
}


def policy_for(kind: ResourceKind) -> KindPolicy:
    return POLICIES[kind]


def is_noop(kind: ResourceKind) -> bool:
    return POLICIES[kind].is_noop
