"""
Infrastructure Action Interfaces

Collaborators the cluster pause depends on but does not implement: the cloud
provider (credentials), the cluster resident autoscaling controller, and
the cluster level action contract itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from ..kubernetes.client import KubernetesClient, get_k8s_client
from .models import Cluster


class CloudProvider(ABC):
    """Cloud account a cluster runs in."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name, e.g. 'aws'."""
        pass

    @abstractmethod
    def credentials_environment_variables(self) -> Dict[str, str]:
        """Environment variables terraform needs to reach the provider."""
        pass


class ManagedCapacityController(ABC):
    """
    Cluster resident controller owning node capacity end to end.

    When a cluster delegates capacity to such a controller, pausing the
    cluster is entirely its responsibility.
    """

    @abstractmethod
    async def pause(
        self,
        cluster: Cluster,
        cloud_provider: CloudProvider,
        kube: KubernetesClient
    ) -> None:
        """
        Remove all worker capacity.

        Raises:
            EngineError: If capacity could not be removed
        """
        pass


@dataclass
class InfrastructureContext:
    """Everything a cluster action needs besides the cluster itself."""
    cloud_provider: CloudProvider
    capacity_controller: Optional[ManagedCapacityController] = None
    kube_client_factory: Callable[[], KubernetesClient] = field(default=get_k8s_client)

    def mk_kube_client(self) -> KubernetesClient:
        return self.kube_client_factory()


class InfrastructureAction(ABC):
    """Cluster level lifecycle actions."""

    @abstractmethod
    def pause_cluster(self, infra_ctx: InfrastructureContext) -> None:
        """
        Remove worker capacity while keeping the control plane.

        Raises:
            EngineError: If the cluster could not be paused
        """
        pass
