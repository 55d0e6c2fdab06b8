"""
Deployment Action Interface

Defines the hooks the deployment pipeline calls on every action attached to
a service. The pipeline decides when each hook runs; actions only decide
what happens.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..kubernetes.client import KubernetesClient


@dataclass(frozen=True)
class DeploymentTarget:
    """Where a service is deployed: a live Kubernetes client and the environment namespace."""
    kube: KubernetesClient
    namespace: str


class DeploymentAction(ABC):
    """
    Abstract base class for actions attached to a deployed service.

    Every hook returns None on success and raises an EngineError on failure.
    """

    @abstractmethod
    def on_create(self, target: DeploymentTarget) -> None:
        """Called when the service is deployed or redeployed."""
        pass

    @abstractmethod
    def on_pause(self, target: DeploymentTarget) -> None:
        """Called when the environment is paused."""
        pass

    @abstractmethod
    def on_delete(self, target: DeploymentTarget) -> None:
        """Called when the service is deleted."""
        pass

    @abstractmethod
    def on_restart(self, target: DeploymentTarget) -> None:
        """Called when the service is restarted."""
        pass
