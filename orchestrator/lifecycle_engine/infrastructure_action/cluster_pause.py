"""
Cluster Pause

Removes a cluster's worker capacity to cut its cost while keeping the
control plane, and with it every deployment's configuration, certificates
and persistent state.

Two strategies, chosen once per call:
- Managed autoscaling: the cluster resident controller owns capacity, the
  pause is delegated to it entirely.
- Node groups (legacy): node groups are terraform resources. They are
  rendered with no workers and applied with a targeted apply that touches
  node groups only.
"""

import asyncio
import logging

from ..errors import ClusterPauseFailed, EngineError
from ..events import InfrastructureStep
from ..runtime import best_effort, block_on
from .base import InfrastructureAction, InfrastructureContext
from .models import Cluster, KubernetesClusterAction
from .nodegroup import should_update_desired_nodes
from .progress import InfraLogger, send_progress_on_long_task
from .template_context import cluster_tera_context
from .terraform import TerraformInfraResources
from .timeout import define_cluster_upgrade_timeout

logger = logging.getLogger(__name__)

# Terraform addresses removed on pause; everything else stays
NODE_GROUP_RESOURCE_PREFIXES = ["aws_eks_node_group."]


async def pause_cluster(
    cluster: Cluster,
    infra_ctx: InfrastructureContext,
    infra_logger: InfraLogger
) -> None:
    """
    Pause a cluster.

    Raises:
        EngineError: Node group, rendering or terraform failures (with event details)
        ClusterPauseFailed: Any other failure, wrapped with the cluster context
    """
    infra_logger.info("Pausing cluster deployment.")
    event_details = cluster.event_details(InfrastructureStep.PAUSE)

    try:
        kube = infra_ctx.mk_kube_client()

        if cluster.managed_autoscaling_enabled:
            if infra_ctx.capacity_controller is None:
                raise ClusterPauseFailed(
                    cluster.name,
                    "managed autoscaling is enabled but no capacity controller is configured",
                    event_details=event_details
                )
            await infra_ctx.capacity_controller.pause(cluster, infra_ctx.cloud_provider, kube)
            infra_logger.info(f"Kubernetes cluster {cluster.name} successfully paused")
            return

        # Legacy flow, that manages node groups
        node_groups_with_desired_states = should_update_desired_nodes(
            event_details,
            cluster,
            KubernetesClusterAction.PAUSE,
            cluster.node_groups
        )

        # Sizing the timeout is not worth failing the pause for
        pods, _ = await best_effort(
            kube.list_pods(),
            [],
            logger,
            f"[INFRA:{cluster.id}] Listing pods to size the node group timeout"
        )
        timeout_minutes, message = define_cluster_upgrade_timeout(pods, KubernetesClusterAction.PAUSE)
        if message:
            infra_logger.info(message)

        tera_context = cluster_tera_context(
            cluster,
            infra_ctx.cloud_provider,
            node_groups_with_desired_states,
            timeout_minutes
        )
        # No workers: keeps the control plane, its config and certificates
        tera_context["eks_worker_nodes"] = []

        tf_resources = TerraformInfraResources(
            tera_context,
            cluster.template_directory / "terraform",
            cluster.temp_dir / "terraform",
            event_details,
            infra_ctx.cloud_provider.credentials_environment_variables(),
            cluster.dry_run
        )
        await asyncio.to_thread(tf_resources.pause, NODE_GROUP_RESOURCE_PREFIXES)

    except EngineError:
        raise
    except Exception as e:
        infra_logger.error(f"Cannot pause cluster {cluster.name}: {e}")
        raise ClusterPauseFailed(cluster.name, str(e), event_details=event_details) from e

    infra_logger.info(f"Kubernetes cluster {cluster.name} successfully paused")


class KubernetesClusterActions(InfrastructureAction):
    """Infrastructure actions of a managed cluster."""

    def __init__(self, cluster: Cluster):
        self.cluster = cluster

    def pause_cluster(self, infra_ctx: InfrastructureContext) -> None:
        infra_logger = InfraLogger(self.cluster, str(InfrastructureStep.PAUSE))
        send_progress_on_long_task(
            self.cluster,
            KubernetesClusterAction.PAUSE,
            lambda: block_on(pause_cluster(self.cluster, infra_ctx, infra_logger))
        )
