"""
Unit tests for the cluster pause.

Tests:
- Managed autoscaling delegates to the capacity controller only
- Legacy node groups render no workers and apply node groups only
- Pod listing failures do not fail the pause
- Terraform and controller failures do
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from kubernetes import client
from kubernetes.client.rest import ApiException

from lifecycle_engine.errors import ClusterPauseFailed, EngineError, TerraformError
from lifecycle_engine.infrastructure_action import (
    InfraLogger,
    InfrastructureContext,
    KubernetesClusterActions,
    ManagedCapacityController,
    NODE_GROUP_RESOURCE_PREFIXES,
    pause_cluster,
)

MODULE = "lifecycle_engine.infrastructure_action.cluster_pause"


@pytest.fixture
def kube():
    kube = MagicMock()
    kube.list_pods = AsyncMock(return_value=[])
    return kube


@pytest.fixture
def infra_ctx(cloud_provider, kube):
    return InfrastructureContext(cloud_provider=cloud_provider, kube_client_factory=lambda: kube)


@pytest.fixture
def infra_logger(cluster):
    return InfraLogger(cluster, "pause")


@pytest.fixture
def terraform():
    with patch(f"{MODULE}.TerraformInfraResources") as tf_class:
        tf_class.return_value.pause.return_value = ["aws_eks_node_group.default"]
        yield tf_class


@pytest.mark.unit
class TestManagedAutoscalingPause:
    """Test clusters whose capacity is owned by an autoscaling controller."""

    @pytest.mark.asyncio
    async def test_delegates_to_controller(self, cluster, infra_ctx, infra_logger, kube, terraform):
        cluster.managed_autoscaling_enabled = True
        controller = MagicMock(spec=ManagedCapacityController)
        controller.pause = AsyncMock()
        infra_ctx.capacity_controller = controller

        with patch(f"{MODULE}.define_cluster_upgrade_timeout") as timeout_policy:
            await pause_cluster(cluster, infra_ctx, infra_logger)

        controller.pause.assert_awaited_once_with(cluster, infra_ctx.cloud_provider, kube)
        timeout_policy.assert_not_called()
        terraform.assert_not_called()
        kube.list_pods.assert_not_called()

    @pytest.mark.asyncio
    async def test_controller_failure_is_wrapped(self, cluster, infra_ctx, infra_logger, terraform):
        cluster.managed_autoscaling_enabled = True
        controller = MagicMock(spec=ManagedCapacityController)
        controller.pause = AsyncMock(side_effect=RuntimeError("nodepool stuck"))
        infra_ctx.capacity_controller = controller

        with pytest.raises(ClusterPauseFailed) as exc_info:
            await pause_cluster(cluster, infra_ctx, infra_logger)

        assert "nodepool stuck" in str(exc_info.value)
        assert exc_info.value.cluster_name == "staging"
        assert exc_info.value.event_details.stage == "pause"

    @pytest.mark.asyncio
    async def test_missing_controller(self, cluster, infra_ctx, infra_logger, terraform):
        cluster.managed_autoscaling_enabled = True

        with pytest.raises(ClusterPauseFailed):
            await pause_cluster(cluster, infra_ctx, infra_logger)

        terraform.assert_not_called()


@pytest.mark.unit
class TestNodeGroupPause:
    """Test clusters whose capacity lives in terraform managed node groups."""

    @pytest.mark.asyncio
    async def test_renders_no_workers_and_targets_node_groups(self, cluster, infra_ctx, infra_logger, terraform):
        await pause_cluster(cluster, infra_ctx, infra_logger)

        tera_context, template_directory, destination, event_details, envs, dry_run = terraform.call_args.args
        assert tera_context["eks_worker_nodes"] == []
        assert tera_context["kubernetes_cluster_name"] == "staging"
        assert tera_context["cloud_provider"] == "aws"
        assert tera_context["vpc_cidr"] == "10.0.0.0/16"
        assert tera_context["eks_upgrade_timeout_in_min"] == 60
        assert template_directory == cluster.template_directory / "terraform"
        assert destination == cluster.temp_dir / "terraform"
        assert event_details.cluster_id == cluster.id
        assert envs["AWS_ACCESS_KEY_ID"] == "AKIATEST"
        assert dry_run is False
        terraform.return_value.pause.assert_called_once_with(NODE_GROUP_RESOURCE_PREFIXES)

    @pytest.mark.asyncio
    async def test_timeout_sized_from_pods(self, cluster, infra_ctx, infra_logger, kube, terraform):
        slow_pod = client.V1Pod(
            metadata=client.V1ObjectMeta(name="batch", namespace="jobs"),
            spec=client.V1PodSpec(containers=[client.V1Container(name="app")],
                                  termination_grace_period_seconds=7200)
        )
        kube.list_pods.return_value = [slow_pod]

        await pause_cluster(cluster, infra_ctx, infra_logger)

        kube.list_pods.assert_awaited_once_with()
        assert terraform.call_args.args[0]["eks_upgrade_timeout_in_min"] == 130

    @pytest.mark.asyncio
    async def test_pod_listing_failure_is_not_fatal(self, cluster, infra_ctx, infra_logger, kube, terraform):
        kube.list_pods.side_effect = ApiException(status=503)

        with patch(f"{MODULE}.define_cluster_upgrade_timeout", return_value=(60, None)) as timeout_policy:
            await pause_cluster(cluster, infra_ctx, infra_logger)

        assert timeout_policy.call_args.args[0] == []
        terraform.return_value.pause.assert_called_once()

    @pytest.mark.asyncio
    async def test_terraform_failure_is_fatal(self, cluster, infra_ctx, infra_logger, terraform):
        terraform.return_value.pause.side_effect = TerraformError("terraform apply", 1, "Error: drain timeout")

        with pytest.raises(TerraformError):
            await pause_cluster(cluster, infra_ctx, infra_logger)

    @pytest.mark.asyncio
    async def test_invalid_node_group_is_fatal(self, cluster, infra_ctx, infra_logger, terraform):
        cluster.node_groups[0].min_nodes = 9

        with pytest.raises(EngineError):
            await pause_cluster(cluster, infra_ctx, infra_logger)

        terraform.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_wrapped(self, cluster, infra_ctx, infra_logger, terraform):
        terraform.return_value.pause.side_effect = OSError("disk full")

        with pytest.raises(ClusterPauseFailed) as exc_info:
            await pause_cluster(cluster, infra_ctx, infra_logger)

        assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.unit
class TestKubernetesClusterActions:
    """Test the synchronous entry point."""

    def test_pause_cluster(self, cluster, infra_ctx, terraform):
        KubernetesClusterActions(cluster).pause_cluster(infra_ctx)

        terraform.return_value.pause.assert_called_once_with(NODE_GROUP_RESOURCE_PREFIXES)

    def test_pause_cluster_failure(self, cluster, infra_ctx, terraform):
        terraform.return_value.pause.side_effect = TerraformError("terraform apply", 1, "boom")

        with pytest.raises(TerraformError):
            KubernetesClusterActions(cluster).pause_cluster(infra_ctx)
