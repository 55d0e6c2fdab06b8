"""
Test configuration and fixtures for pytest.

Provides an in-memory Kubernetes cluster that implements the subset of
KubernetesClient used by pause/resume, with controllers that converge
instantly (or not at all, to exercise timeouts).
"""

import sys
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

# Add the orchestrator directory to sys.path
orchestrator_dir = Path(__file__).parent.parent
sys.path.insert(0, str(orchestrator_dir))

from lifecycle_engine.infrastructure_action.base import CloudProvider  # noqa: E402


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    # Set before any settings are read so polling loops stay fast
    os.environ["POD_POLL_INTERVAL_SECONDS"] = "0.01"
    os.environ["CONDITION_POLL_INTERVAL_SECONDS"] = "0.01"
    os.environ["LONG_TASK_PROGRESS_INTERVAL_SECONDS"] = "0.02"
    os.environ["TERRAFORM_RETRY_ATTEMPTS"] = "2"
    os.environ["K8S_IN_CLUSTER"] = "false"

    from lifecycle_engine.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "kubernetes: mark test as requiring Kubernetes")


# =============================================================================
# IN-MEMORY CLUSTER
# =============================================================================

def _matches(labels: Optional[Dict[str, str]], label_selector: Optional[str]) -> bool:
    if not label_selector:
        return True
    labels = labels or {}
    for requirement in label_selector.split(","):
        key, _, value = requirement.strip().partition("=")
        if labels.get(key) != value:
            return False
    return True


class FakeKubernetesClient:
    """
    In-memory stand-in for KubernetesClient.

    When `converges` is True, a scale patch immediately updates status and
    the pod population, like a controller that reconciles instantly. When
    False, only spec changes: status and pods stay as they were.
    """

    _MODELS = {
        "Deployment": (client.V1Deployment, client.V1DeploymentSpec, client.V1DeploymentStatus),
        "StatefulSet": (client.V1StatefulSet, client.V1StatefulSetSpec, client.V1StatefulSetStatus),
    }

    def __init__(self):
        self.workloads: Dict[Tuple[str, str, str], object] = {}
        self.pods: List[client.V1Pod] = []
        self.patches: List[dict] = []
        self.list_calls: List[dict] = []
        self.converges = True
        self.fail_patch: Optional[ApiException] = None
        self.fail_list_pods: Optional[ApiException] = None
        self.fail_list_workloads: Optional[ApiException] = None

    # -- fixtures helpers -----------------------------------------------------

    def _pods_for(self, name: str, namespace: str, labels: Dict[str, str], count: int) -> None:
        for i in range(count):
            self.pods.append(client.V1Pod(
                metadata=client.V1ObjectMeta(name=f"{name}-{uuid4().hex[:5]}-{i}", namespace=namespace,
                                             labels=dict(labels)),
                spec=client.V1PodSpec(containers=[client.V1Container(name="app")])
            ))

    def _remove_pods(self, namespace: str, labels: Dict[str, str], count: int) -> None:
        owned = [p for p in self.pods if p.metadata.namespace == namespace and p.metadata.labels == labels]
        for pod in owned[:count]:
            self.pods.remove(pod)

    def add_replicated(self, kind: str, name: str, namespace: str, replicas: int = 1,
                       labels: Optional[Dict[str, str]] = None):
        labels = labels or {"app": name}
        model, spec_model, status_model = self._MODELS[kind]
        selector = client.V1LabelSelector(match_labels=labels)
        template = client.V1PodTemplateSpec(metadata=client.V1ObjectMeta(labels=labels))
        spec_kwargs = {"replicas": replicas, "selector": selector, "template": template}
        if kind == "StatefulSet":
            spec_kwargs["service_name"] = name
        resource = model(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
            spec=spec_model(**spec_kwargs),
            status=status_model(replicas=replicas, ready_replicas=replicas or None)
            if kind == "Deployment"
            else status_model(replicas=replicas, ready_replicas=replicas or None, available_replicas=replicas)
        )
        self.workloads[(kind, namespace, name)] = resource
        self._pods_for(name, namespace, labels, replicas)
        return resource

    def add_deployment(self, name: str, namespace: str, replicas: int = 1, labels=None):
        return self.add_replicated("Deployment", name, namespace, replicas, labels)

    def add_stateful_set(self, name: str, namespace: str, replicas: int = 1, labels=None):
        return self.add_replicated("StatefulSet", name, namespace, replicas, labels)

    def add_cron_job(self, name: str, namespace: str, suspend: bool = False, labels=None):
        labels = labels or {"app": name}
        resource = client.V1CronJob(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
            spec=client.V1CronJobSpec(
                schedule="*/5 * * * *",
                suspend=suspend,
                job_template=client.V1JobTemplateSpec()
            )
        )
        self.workloads[("CronJob", namespace, name)] = resource
        return resource

    def add_daemon_set(self, name: str, namespace: str, labels=None):
        labels = labels or {"app": name}
        resource = client.V1DaemonSet(metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels))
        self.workloads[("DaemonSet", namespace, name)] = resource
        self._pods_for(name, namespace, labels, 1)
        return resource

    def add_job(self, name: str, namespace: str, labels=None):
        labels = labels or {"app": name}
        resource = client.V1Job(metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels))
        self.workloads[("Job", namespace, name)] = resource
        self._pods_for(name, namespace, labels, 1)
        return resource

    def get(self, kind: str, namespace: str, name: str):
        return self.workloads[(str(kind), namespace, name)]

    def reconcile(self) -> None:
        """Bring status and pods in line with spec for every replicated workload."""
        for (kind, namespace, name), resource in self.workloads.items():
            if kind in self._MODELS:
                self._reconcile(resource)

    def _reconcile(self, resource) -> None:
        desired = resource.spec.replicas
        labels = resource.metadata.labels
        current = len([p for p in self.pods
                       if p.metadata.namespace == resource.metadata.namespace and p.metadata.labels == labels])
        if current > desired:
            self._remove_pods(resource.metadata.namespace, labels, current - desired)
        elif current < desired:
            self._pods_for(resource.metadata.name, resource.metadata.namespace, labels, desired - current)
        resource.status.replicas = desired
        resource.status.ready_replicas = desired or None

    # -- KubernetesClient interface -------------------------------------------

    async def list_workloads(self, kind, label_selector, namespace=None):
        self.list_calls.append({"kind": str(kind), "label_selector": label_selector, "namespace": namespace})
        if self.fail_list_workloads is not None:
            raise self.fail_list_workloads
        return [
            resource for (k, ns, _), resource in self.workloads.items()
            if k == str(kind)
            and (namespace is None or ns == namespace)
            and _matches(resource.metadata.labels, label_selector)
        ]

    async def read_workload(self, kind, name, namespace):
        return self.workloads.get((str(kind), namespace, name))

    async def patch_workload(self, kind, name, namespace, body, content_type, scale_subresource=False):
        if self.fail_patch is not None:
            raise self.fail_patch
        self.patches.append({
            "kind": str(kind), "name": name, "namespace": namespace, "body": body,
            "content_type": content_type, "scale_subresource": scale_subresource,
        })
        resource = self.workloads[(str(kind), namespace, name)]
        if scale_subresource:
            resource.spec.replicas = body["spec"]["replicas"]
            if self.converges:
                self._reconcile(resource)
        else:
            for operation in body:
                assert operation["op"] == "replace" and operation["path"] == "/spec/suspend"
                resource.spec.suspend = operation["value"]

    async def list_pods(self, label_selector=None, namespace=None):
        if self.fail_list_pods is not None:
            raise self.fail_list_pods
        return [
            pod for pod in self.pods
            if (namespace is None or pod.metadata.namespace == namespace)
            and _matches(pod.metadata.labels, label_selector)
        ]


@pytest.fixture
def fake_kube():
    """Empty in-memory cluster."""
    return FakeKubernetesClient()


@pytest.fixture
def namespace():
    return f"env-{uuid4().hex[:8]}"


@pytest.fixture
def event_details():
    from lifecycle_engine.events import EventDetails
    return EventDetails(organization_id="org123", cluster_id="clu456", cluster_name="test-cluster",
                        stage="pause", transmitter="service:api")


# =============================================================================
# CLUSTERS
# =============================================================================

@pytest.fixture
def cluster(tmp_path):
    """EKS cluster with two node groups and a minimal terraform template directory."""
    from lifecycle_engine.infrastructure_action.models import Cluster, NodeGroup

    templates = tmp_path / "templates"
    (templates / "terraform").mkdir(parents=True)
    (templates / "terraform" / "main.tf").write_text('resource "aws_eks_node_group" "default" {}\n')

    return Cluster(
        id="z1a2b3c4",
        long_id=uuid4(),
        name="staging",
        region="eu-west-3",
        organization_id="org123",
        node_groups=[
            NodeGroup(name="default", instance_type="t3a.large", min_nodes=2, max_nodes=5, desired_nodes=3),
            NodeGroup(name="gpu", instance_type="g4dn.xlarge", min_nodes=1, max_nodes=2),
        ],
        template_directory=templates,
        temp_dir=tmp_path / "work",
        options={"vpc_cidr": "10.0.0.0/16"},
    )


class FakeCloudProvider(CloudProvider):
    """Cloud provider handing out static credentials."""

    @property
    def name(self):
        return "aws"

    def credentials_environment_variables(self):
        return {"AWS_ACCESS_KEY_ID": "AKIATEST", "AWS_SECRET_ACCESS_KEY": "secret"}


@pytest.fixture
def cloud_provider():
    return FakeCloudProvider()
