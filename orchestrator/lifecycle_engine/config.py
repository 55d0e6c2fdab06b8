from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # ==========================================================================
    # Kubernetes Connection
    # ==========================================================================
    # None: try in-cluster config first, then fall back to kubeconfig
    # True/False: force one of the two
    k8s_in_cluster: Optional[bool] = None
    k8s_context: str = ""  # kubeconfig context, empty for current context
    # Seconds, per HTTP call; the pause timeout bounds the whole operation
    k8s_request_timeout_seconds: float = 30.0

    # ==========================================================================
    # Service Pause/Resume
    # ==========================================================================
    # Aggregate deadline for one pause or resume call (all list/patch/wait steps)
    pause_service_timeout_seconds: int = 600

    # Interval between pod population polls while waiting for scale down
    pod_poll_interval_seconds: float = 10.0

    # Interval between single resource reads while awaiting a condition
    condition_poll_interval_seconds: float = 1.0

    # ==========================================================================
    # Cluster Pause
    # ==========================================================================
    # Node group apply timeout when no pod needs a longer grace period
    cluster_upgrade_default_timeout_minutes: int = 60
    # Extra minute of apply timeout granted per this many running pods
    pods_per_extra_timeout_minute: int = 50

    # Heartbeat log interval for long infrastructure tasks
    long_task_progress_interval_seconds: float = 60.0

    # ==========================================================================
    # Terraform
    # ==========================================================================
    terraform_binary: str = "terraform"
    terraform_command_timeout_seconds: int = 7200  # 2 hours, node group drains are slow
    terraform_retry_attempts: int = 3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names


@lru_cache()
def get_settings():
    return Settings()
