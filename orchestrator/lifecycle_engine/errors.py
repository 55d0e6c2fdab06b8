"""
Engine error types.

Authoritative state-changing calls (patch, targeted apply) propagate as one of
these, wrapped with the selector/namespace/cluster context a user needs to
understand the failure. Best-effort reads never raise them.
"""

from datetime import timedelta
from typing import Optional

from .events import EventDetails


class EngineError(Exception):
    """Base class for every error surfaced by the engine."""

    def __init__(
        self,
        message: str,
        event_details: Optional[EventDetails] = None,
        underlying_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.event_details = event_details
        self.underlying_message = underlying_message

    def __str__(self) -> str:
        text = self.message
        if self.underlying_message:
            text = f"{text}: {self.underlying_message}"
        if self.event_details is not None:
            text = f"{text} ({self.event_details.describe()})"
        return text


class KubernetesConfigError(EngineError):
    """Neither in-cluster config nor a kubeconfig could be loaded."""


class ScaleOperationFailed(EngineError):
    """A Kubernetes API call failed while scaling or suspending workloads."""

    def __init__(
        self,
        selector: str,
        namespace: str,
        desired_size: int,
        underlying_message: str,
        event_details: Optional[EventDetails] = None
    ):
        super().__init__(
            f"Cannot scale replicas to {desired_size} for selector `{selector}` in namespace `{namespace}`",
            event_details=event_details,
            underlying_message=underlying_message
        )
        self.selector = selector
        self.namespace = namespace
        self.desired_size = desired_size


class ScaleOperationTimedOut(ScaleOperationFailed):
    """The aggregate deadline elapsed before workloads converged."""

    def __init__(
        self,
        selector: str,
        namespace: str,
        desired_size: int,
        timeout: timedelta,
        underlying_message: str,
        event_details: Optional[EventDetails] = None
    ):
        super().__init__(
            selector,
            namespace,
            desired_size,
            underlying_message,
            event_details=event_details
        )
        self.timeout = timeout


class ClusterPauseFailed(EngineError):
    """The cluster level pause could not complete."""

    def __init__(
        self,
        cluster_name: str,
        underlying_message: str,
        event_details: Optional[EventDetails] = None
    ):
        super().__init__(
            f"Cannot pause cluster `{cluster_name}`",
            event_details=event_details,
            underlying_message=underlying_message
        )
        self.cluster_name = cluster_name


class TerraformError(EngineError):
    """A terraform command exited with a non-zero status or could not be run."""

    def __init__(
        self,
        command: str,
        exit_code: Optional[int],
        stderr: str,
        event_details: Optional[EventDetails] = None
    ):
        super().__init__(
            f"Terraform command `{command}` failed"
            + (f" with exit code {exit_code}" if exit_code is not None else ""),
            event_details=event_details,
            underlying_message=stderr.strip() or None
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class NodeGroupConfigError(EngineError):
    """A node group definition cannot be turned into a desired size."""
