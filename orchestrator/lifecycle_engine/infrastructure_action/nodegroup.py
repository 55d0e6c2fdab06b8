import logging
from typing import List

from ..errors import NodeGroupConfigError
from ..events import EventDetails
from .models import Cluster, KubernetesClusterAction, NodeGroup, NodeGroupDesiredState

logger = logging.getLogger(__name__)


def should_update_desired_nodes(
    event_details: EventDetails,
    cluster: Cluster,
    action: KubernetesClusterAction,
    node_groups: List[NodeGroup]
) -> List[NodeGroupDesiredState]:
    """
    Compute the sizing to render for each node group.

    Pause drops every group to zero nodes while keeping its maximum, so a
    later resume can scale back within the same bounds. Other actions keep
    the current desired size clamped into [min, max], or the minimum when
    the current size is unknown.

    Raises:
        NodeGroupConfigError: If a group's minimum exceeds its maximum
    """
    desired_states = []
    for node_group in node_groups:
        if node_group.min_nodes > node_group.max_nodes:
            raise NodeGroupConfigError(
                f"Node group `{node_group.name}` of cluster `{cluster.name}` has min nodes "
                f"({node_group.min_nodes}) greater than max nodes ({node_group.max_nodes})",
                event_details=event_details
            )

        if action == KubernetesClusterAction.PAUSE:
            min_nodes, desired_nodes, update_desired = 0, 0, True
        elif action == KubernetesClusterAction.BOOTSTRAP or node_group.desired_nodes is None:
            min_nodes, desired_nodes, update_desired = node_group.min_nodes, node_group.min_nodes, True
        else:
            min_nodes = node_group.min_nodes
            desired_nodes = max(node_group.min_nodes, min(node_group.desired_nodes, node_group.max_nodes))
            # Let the cloud autoscaler keep the size it chose when it is already valid
            update_desired = desired_nodes != node_group.desired_nodes

        desired_states.append(NodeGroupDesiredState(
            name=node_group.name,
            instance_type=node_group.instance_type,
            min_nodes=min_nodes,
            max_nodes=node_group.max_nodes,
            desired_nodes=desired_nodes,
            disk_size_in_gib=node_group.disk_size_in_gib,
            update_desired_nodes=update_desired
        ))
        logger.debug(f"[INFRA] Node group {node_group.name} for {action}: "
                     f"min={min_nodes} desired={desired_nodes} max={node_group.max_nodes}")

    return desired_states
