"""
Deployment Actions

Actions the deployment pipeline attaches to a service and drives through
the on_create / on_pause / on_delete / on_restart hooks.

Usage:
    from lifecycle_engine.deployment_action import PauseServiceAction, DeploymentTarget

    action = PauseServiceAction.for_service("app=api", is_stateful=False, event_details=details,
                                            timeout=timedelta(minutes=10))
    action.on_pause(DeploymentTarget(kube=get_k8s_client(), namespace="env-1234"))
"""

from .base import DeploymentAction, DeploymentTarget
from .conditions import await_condition, ready_replicas_equal, suspend_equals
from .patches import ListFilter, PatchSpec, build_scale_patch, build_suspend_patch
from .pause_service import (
    PauseServiceAction,
    pause_service,
    unpause_service_if_needed,
    wait_for_pods_to_be_in_correct_state,
)

__all__ = [
    # Interface
    "DeploymentAction",
    "DeploymentTarget",
    # Patches
    "ListFilter",
    "PatchSpec",
    "build_scale_patch",
    "build_suspend_patch",
    # Conditions
    "await_condition",
    "ready_replicas_equal",
    "suspend_equals",
    # Pause
    "PauseServiceAction",
    "pause_service",
    "unpause_service_if_needed",
    "wait_for_pods_to_be_in_correct_state",
]
