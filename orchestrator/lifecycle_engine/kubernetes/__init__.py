"""
Kubernetes Module

- KubernetesClient: async access to workload, scale and pod APIs
- ResourceKind: workload kinds handled by pause/resume and their policy
"""

from .client import KubernetesClient, get_k8s_client, load_kube_config
from .resource_kind import (
    ResourceKind,
    PatchStrategy,
    KindPolicy,
    POLICIES,
    policy_for,
    is_noop,
)

__all__ = [
    # Client
    "KubernetesClient",
    "get_k8s_client",
    "load_kube_config",
    # Kinds
    "ResourceKind",
    "PatchStrategy",
    "KindPolicy",
    "POLICIES",
    "policy_for",
    "is_noop",
]
