from typing import Any, Dict, List

from .base import CloudProvider
from .models import Cluster, NodeGroupDesiredState


def cluster_tera_context(
    cluster: Cluster,
    cloud_provider: CloudProvider,
    node_groups: List[NodeGroupDesiredState],
    upgrade_timeout_minutes: int
) -> Dict[str, Any]:
    """Variables the cluster's terraform templates are rendered with."""
    context: Dict[str, Any] = dict(cluster.options)
    context.update({
        "cloud_provider": cloud_provider.name,
        "organization_id": cluster.organization_id,
        "kubernetes_cluster_id": cluster.id,
        "kubernetes_cluster_long_id": str(cluster.long_id),
        "kubernetes_cluster_name": cluster.name,
        "kubernetes_cluster_kind": cluster.kind,
        "region": cluster.region,
        "managed_autoscaling_enabled": cluster.managed_autoscaling_enabled,
        "eks_worker_nodes": [node_group.to_template() for node_group in node_groups],
        "eks_upgrade_timeout_in_min": upgrade_timeout_minutes,
    })
    return context
