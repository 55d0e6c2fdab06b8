"""
Logging helpers for long running cluster actions.
"""

import logging
import threading
import time
from typing import Callable, TypeVar

from ..config import get_settings
from .models import Cluster, KubernetesClusterAction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InfraLogger(logging.LoggerAdapter):
    """Logger adapter prefixing every message with the cluster it is about."""

    def __init__(self, cluster: Cluster, step: str, base_logger: logging.Logger = None):
        super().__init__(base_logger or logger, {"cluster_id": cluster.id, "step": step})

    def process(self, msg, kwargs):
        return f"[INFRA:{self.extra['cluster_id']}:{self.extra['step']}] {msg}", kwargs


def send_progress_on_long_task(
    cluster: Cluster,
    action: KubernetesClusterAction,
    task: Callable[[], T],
    interval: float = None
) -> T:
    """
    Run task, logging a heartbeat every interval seconds until it returns.

    The task's result is returned and its exceptions propagate unchanged.
    """
    if interval is None:
        interval = get_settings().long_task_progress_interval_seconds

    done = threading.Event()
    started = time.monotonic()

    def heartbeat():
        while not done.wait(interval):
            elapsed = int(time.monotonic() - started)
            logger.info(f"[INFRA:{cluster.id}] Cluster {cluster.name} {action} still in progress "
                        f"({elapsed // 60}m{elapsed % 60:02d}s elapsed)")

    thread = threading.Thread(target=heartbeat, name=f"progress-{cluster.id}", daemon=True)
    thread.start()
    try:
        return task()
    finally:
        done.set()
        thread.join()
