"""
Infrastructure Actions

Cluster level lifecycle actions. Only pausing is implemented here: worker
capacity is removed either by a managed autoscaling controller or by a
targeted terraform apply on node groups.
"""

from .base import CloudProvider, InfrastructureAction, InfrastructureContext, ManagedCapacityController
from .cluster_pause import NODE_GROUP_RESOURCE_PREFIXES, KubernetesClusterActions, pause_cluster
from .models import Cluster, KubernetesClusterAction, NodeGroup, NodeGroupDesiredState
from .nodegroup import should_update_desired_nodes
from .progress import InfraLogger, send_progress_on_long_task
from .template_context import cluster_tera_context
from .terraform import TerraformInfraResources
from .timeout import define_cluster_upgrade_timeout

__all__ = [
    # Interfaces
    "CloudProvider",
    "InfrastructureAction",
    "InfrastructureContext",
    "ManagedCapacityController",
    # Models
    "Cluster",
    "KubernetesClusterAction",
    "NodeGroup",
    "NodeGroupDesiredState",
    # Pause
    "KubernetesClusterActions",
    "NODE_GROUP_RESOURCE_PREFIXES",
    "pause_cluster",
    # Policies
    "should_update_desired_nodes",
    "define_cluster_upgrade_timeout",
    # Support
    "cluster_tera_context",
    "TerraformInfraResources",
    "InfraLogger",
    "send_progress_on_long_task",
]
