"""
Event context attached to engine errors and log lines.

Every long-running operation (a service pause, a cluster pause) knows which
organization, cluster and stage it runs for. That context travels with the
errors it raises so the caller can report a failure to the user without
re-deriving where it happened.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class InfrastructureStep(str, Enum):
    """Cluster level steps."""

    CREATE = "create"
    PAUSE = "pause"
    RESUME = "resume"
    UPGRADE = "upgrade"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


class EnvironmentStep(str, Enum):
    """Workload level steps driven by the deployment pipeline."""

    DEPLOY = "deploy"
    PAUSE = "pause"
    RESUME = "resume"
    DELETE = "delete"
    RESTART = "restart"

    def __str__(self) -> str:
        return self.value


class EventDetails(BaseModel):
    """Where an event happened."""
    organization_id: Optional[str] = Field(None, description="Organization short id")
    cluster_id: Optional[str] = Field(None, description="Cluster short id")
    cluster_name: Optional[str] = Field(None, description="Human readable cluster name")
    stage: str = Field(..., description="Step being executed, e.g. 'pause'")
    transmitter: Optional[str] = Field(None, description="Service or cluster emitting the event")

    class Config:
        frozen = True

    def describe(self) -> str:
        """Short human readable context, e.g. 'cluster=abc123 stage=pause'."""
        parts = []
        if self.organization_id:
            parts.append(f"organization={self.organization_id}")
        if self.cluster_id:
            parts.append(f"cluster={self.cluster_id}")
        if self.cluster_name:
            parts.append(f"name={self.cluster_name}")
        parts.append(f"stage={self.stage}")
        if self.transmitter:
            parts.append(f"transmitter={self.transmitter}")
        return " ".join(parts)
