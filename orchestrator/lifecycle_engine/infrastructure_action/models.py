"""
Cluster and node group models used by infrastructure actions.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..events import EventDetails, InfrastructureStep


class KubernetesClusterAction(str, Enum):
    """What is being done to a cluster; drives node group sizing and timeouts."""

    BOOTSTRAP = "bootstrap"
    UPDATE = "update"
    UPGRADE = "upgrade"
    PAUSE = "pause"
    RESUME = "resume"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


class NodeGroup(BaseModel):
    """A worker node group as configured by the user."""
    name: str = Field(..., description="Node group name")
    instance_type: str = Field(..., description="Cloud instance type, e.g. t3a.large")
    min_nodes: int = Field(..., ge=0, description="Minimum number of nodes")
    max_nodes: int = Field(..., ge=0, description="Maximum number of nodes")
    desired_nodes: Optional[int] = Field(None, ge=0, description="Currently desired nodes, if known")
    disk_size_in_gib: int = Field(default=20, description="Root volume size")


class NodeGroupDesiredState(BaseModel):
    """Sizing to render for one node group."""
    name: str
    instance_type: str
    min_nodes: int
    max_nodes: int
    desired_nodes: int
    disk_size_in_gib: int
    # When False the cloud autoscaler keeps ownership of the desired size
    update_desired_nodes: bool

    def to_template(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "instance_type": self.instance_type,
            "min_nodes": self.min_nodes,
            "max_nodes": self.max_nodes,
            "desired_nodes": self.desired_nodes,
            "disk_size_in_gib": self.disk_size_in_gib,
            "enable_desired_size": self.update_desired_nodes,
        }


class Cluster(BaseModel):
    """A managed Kubernetes cluster and where its infrastructure templates live."""
    id: str = Field(..., description="Short cluster id")
    long_id: UUID = Field(..., description="Cluster UUID")
    name: str = Field(..., description="Cluster name")
    kind: str = Field(default="eks", description="Managed Kubernetes flavor")
    region: str = Field(..., description="Cloud region")
    organization_id: Optional[str] = Field(None, description="Owning organization short id")
    node_groups: List[NodeGroup] = Field(default_factory=list)
    # Capacity owned by a cluster resident autoscaling controller instead of node groups
    managed_autoscaling_enabled: bool = False
    template_directory: Path = Field(..., description="Directory holding the terraform templates")
    temp_dir: Path = Field(..., description="Working directory for rendered templates")
    dry_run: bool = False
    options: Dict[str, Any] = Field(default_factory=dict, description="Extra template variables")

    def event_details(self, step: InfrastructureStep) -> EventDetails:
        return EventDetails(
            organization_id=self.organization_id,
            cluster_id=self.id,
            cluster_name=self.name,
            stage=str(step),
            transmitter=f"{self.kind}:{self.id}"
        )
