"""
Kubernetes Client for Workload Pause/Resume

Thin async layer over the official Kubernetes client. Every call of the
blocking client runs in a worker thread so that pause/resume coroutines can
be bounded by asyncio timeouts.

Listing can be namespaced or cluster wide; reads and patches always need the
resource's own namespace ("list broadly, act narrowly").
"""

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from dataclasses import dataclass
import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..config import get_settings
from ..errors import KubernetesConfigError
from .resource_kind import ResourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _WorkloadApi:
    """Names of the client methods serving one workload kind."""
    api: str
    list_namespaced: str
    list_all_namespaces: str
    read: str
    patch: str
    patch_scale: Optional[str] = None


_WORKLOAD_APIS: Dict[ResourceKind, _WorkloadApi] = {
    ResourceKind.DEPLOYMENT: _WorkloadApi(
        api="apps_v1",
        list_namespaced="list_namespaced_deployment",
        list_all_namespaces="list_deployment_for_all_namespaces",
        read="read_namespaced_deployment",
        patch="patch_namespaced_deployment",
        patch_scale="patch_namespaced_deployment_scale",
    ),
    ResourceKind.STATEFULSET: _WorkloadApi(
        api="apps_v1",
        list_namespaced="list_namespaced_stateful_set",
        list_all_namespaces="list_stateful_set_for_all_namespaces",
        read="read_namespaced_stateful_set",
        patch="patch_namespaced_stateful_set",
        patch_scale="patch_namespaced_stateful_set_scale",
    ),
    ResourceKind.CRONJOB: _WorkloadApi(
        api="batch_v1",
        list_namespaced="list_namespaced_cron_job",
        list_all_namespaces="list_cron_job_for_all_namespaces",
        read="read_namespaced_cron_job",
        patch="patch_namespaced_cron_job",
    ),
}


def load_kube_config(in_cluster: Optional[bool] = None, context: str = "") -> None:
    """
    Load Kubernetes credentials into the default client configuration.

    Args:
        in_cluster: True for in-cluster config, False for kubeconfig,
            None to try in-cluster first and fall back to kubeconfig
        context: kubeconfig context to use (kubeconfig only)

    Raises:
        KubernetesConfigError: If no configuration can be loaded
    """
    if in_cluster is True:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return
        except config.ConfigException as e:
            raise KubernetesConfigError("Cannot load in-cluster Kubernetes configuration",
                                        underlying_message=str(e)) from e

    if in_cluster is None:
        try:
            # Try in-cluster config first (for production)
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return
        except config.ConfigException:
            pass

    try:
        # Fall back to kubeconfig (for development)
        config.load_kube_config(context=context or None)
        logger.info(f"Loaded kubeconfig{f' (context: {context})' if context else ''}")
    except config.ConfigException as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        raise KubernetesConfigError("Cannot load Kubernetes configuration",
                                    underlying_message=str(e)) from e


class KubernetesClient:
    """
    Async access to the workload, pod and scale APIs used by pause/resume.

    All methods raise kubernetes.client.ApiException on API errors, except
    read_workload which reports a missing resource as None.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        """
        Initialize API clients.

        Args:
            api_client: Preconfigured API client. When omitted, credentials are
                loaded according to settings (in-cluster or kubeconfig).
        """
        if api_client is None:
            settings = get_settings()
            load_kube_config(settings.k8s_in_cluster, settings.k8s_context)

        self.apps_v1 = client.AppsV1Api(api_client)
        self.batch_v1 = client.BatchV1Api(api_client)
        self.core_v1 = client.CoreV1Api(api_client)
        # Per HTTP call, in seconds
        self.request_timeout = get_settings().k8s_request_timeout_seconds

    def _method(self, kind: ResourceKind, operation: str):
        apis = _WORKLOAD_APIS.get(kind)
        if apis is None:
            raise ValueError(f"{kind} has no pause/resume API")
        name = getattr(apis, operation)
        if name is None:
            raise ValueError(f"{kind} does not support {operation}")
        return getattr(getattr(self, apis.api), name)

    # =========================================================================
    # WORKLOADS
    # =========================================================================

    async def list_workloads(
        self,
        kind: ResourceKind,
        label_selector: str,
        namespace: Optional[str] = None
    ) -> List[Any]:
        """
        List workloads of a kind matching a label selector.

        Args:
            kind: Workload kind
            label_selector: Kubernetes label selector, e.g. "app=api"
            namespace: Namespace to list in, None for all namespaces

        Returns:
            List of client model objects (V1Deployment, V1StatefulSet, ...)
        """
        if namespace is None:
            result = await asyncio.to_thread(
                self._method(kind, "list_all_namespaces"),
                label_selector=label_selector,
                _request_timeout=self.request_timeout
            )
        else:
            result = await asyncio.to_thread(
                self._method(kind, "list_namespaced"),
                namespace=namespace,
                label_selector=label_selector,
                _request_timeout=self.request_timeout
            )
        logger.debug(f"[K8S] Listed {len(result.items)} {kind} matching '{label_selector}' "
                     f"in {namespace or 'all namespaces'}")
        return list(result.items)

    async def read_workload(self, kind: ResourceKind, name: str, namespace: str) -> Optional[Any]:
        """Read a single workload, None if it does not exist."""
        try:
            return await asyncio.to_thread(
                self._method(kind, "read"),
                name=name,
                namespace=namespace,
                _request_timeout=self.request_timeout
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    async def patch_workload(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str,
        body: Any,
        content_type: str,
        scale_subresource: bool = False
    ) -> None:
        """
        Patch a workload or its scale subresource.

        Args:
            kind: Workload kind
            name: Resource name
            namespace: Resource namespace (always required, even after a
                cluster wide listing)
            body: Patch document (dict for merge patches, list for JSON patches)
            content_type: Patch content type header
            scale_subresource: Patch /scale instead of the resource itself
        """
        operation = "patch_scale" if scale_subresource else "patch"
        await asyncio.to_thread(
            self._method(kind, operation),
            name=name,
            namespace=namespace,
            body=body,
            _content_type=content_type,
            _request_timeout=self.request_timeout
        )

    # =========================================================================
    # PODS
    # =========================================================================

    async def list_pods(
        self,
        label_selector: Optional[str] = None,
        namespace: Optional[str] = None
    ) -> List[client.V1Pod]:
        """
        List pods, optionally filtered by label selector.

        Args:
            label_selector: Kubernetes label selector, None for every pod
            namespace: Namespace to list in, None for all namespaces
        """
        kwargs = {"_request_timeout": self.request_timeout}
        if label_selector:
            kwargs["label_selector"] = label_selector

        if namespace is None:
            result = await asyncio.to_thread(
                self.core_v1.list_pod_for_all_namespaces,
                **kwargs
            )
        else:
            result = await asyncio.to_thread(
                self.core_v1.list_namespaced_pod,
                namespace=namespace,
                **kwargs
            )
        return list(result.items)


# Global instance - lazily initialized
_k8s_client_instance: Optional[KubernetesClient] = None


def get_k8s_client() -> KubernetesClient:
    """Get or create the global Kubernetes client instance."""
    global _k8s_client_instance
    if _k8s_client_instance is None:
        _k8s_client_instance = KubernetesClient()
    return _k8s_client_instance
