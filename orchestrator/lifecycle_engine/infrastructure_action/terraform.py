"""
Terraform Runner

Renders a cluster's terraform templates into a working directory and runs
terraform there. Only what cluster actions need is exposed: a full apply
(create) and a targeted apply limited to some resource addresses (pause).

The template context is written as terraform.tfvars.json next to the
templates; terraform loads it automatically.
"""

import json
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import get_settings
from ..errors import TerraformError
from ..events import EventDetails

logger = logging.getLogger(__name__)

TFVARS_FILE = "terraform.tfvars.json"


class TerraformInfraResources:
    """Terraform templates of one cluster, rendered with a given context."""

    def __init__(
        self,
        tera_context: Dict[str, Any],
        template_directory: Path,
        destination_folder: Path,
        event_details: EventDetails,
        envs: Dict[str, str],
        is_dry_run: bool
    ):
        self.tera_context = tera_context
        self.template_directory = Path(template_directory)
        self.destination_folder = Path(destination_folder)
        self.event_details = event_details
        self.envs = envs
        self.is_dry_run = is_dry_run
        self.settings = get_settings()

    # =========================================================================
    # RENDERING
    # =========================================================================

    def prepare(self) -> None:
        """Copy templates to the working directory and write the context as tfvars."""
        try:
            shutil.copytree(self.template_directory, self.destination_folder, dirs_exist_ok=True)
            with open(self.destination_folder / TFVARS_FILE, "w", encoding="utf-8") as f:
                json.dump(self.tera_context, f, indent=2, sort_keys=True, default=str)
        except (OSError, TypeError, ValueError) as e:
            raise TerraformError(
                f"render {self.template_directory}",
                None,
                str(e),
                event_details=self.event_details
            ) from e
        logger.info(f"[TERRAFORM] Rendered templates into {self.destination_folder}")

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def _run(self, *args: str) -> str:
        command = [self.settings.terraform_binary, *args]
        command_str = " ".join(command)
        logger.info(f"[TERRAFORM] Running: {command_str}")
        try:
            result = subprocess.run(
                command,
                cwd=self.destination_folder,
                env={**os.environ, **self.envs},
                capture_output=True,
                text=True,
                timeout=self.settings.terraform_command_timeout_seconds
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TerraformError(command_str, None, str(e), event_details=self.event_details) from e

        if result.returncode != 0:
            logger.error(f"[TERRAFORM] {command_str} failed: {result.stderr.strip()}")
            raise TerraformError(command_str, result.returncode, result.stderr,
                                 event_details=self.event_details)
        return result.stdout

    def _run_with_retry(self, *args: str) -> str:
        """Run a read-only or idempotent command, retrying transient failures."""
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.terraform_retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(TerraformError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )
        return retrying(self._run, *args)

    def init(self) -> None:
        self._run_with_retry("init", "-input=false", "-no-color")

    def state_list(self) -> List[str]:
        output = self._run_with_retry("state", "list", "-no-color")
        return [line.strip() for line in output.splitlines() if line.strip()]

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def create(self) -> Dict[str, Any]:
        """
        Apply everything and return terraform outputs.

        Returns:
            Output name -> value ({} on dry run)
        """
        self.prepare()
        if self.is_dry_run:
            logger.warning("[TERRAFORM] Dry run: templates rendered, nothing applied")
            return {}

        self.init()
        self._run("apply", "-auto-approve", "-input=false", "-no-color")
        outputs = json.loads(self._run("output", "-json", "-no-color") or "{}")
        return {name: output.get("value") for name, output in outputs.items()}

    def pause(self, resource_prefixes: Sequence[str]) -> Optional[List[str]]:
        """
        Apply only the resources whose address starts with one of the prefixes.

        Everything else in the state (control plane, network, ...) is left
        untouched.

        Returns:
            Targeted addresses, None on dry run
        """
        self.prepare()
        if self.is_dry_run:
            logger.warning("[TERRAFORM] Dry run: templates rendered, nothing applied")
            return None

        self.init()
        targets = [address for address in self.state_list() if address.startswith(tuple(resource_prefixes))]
        if not targets:
            logger.info(f"[TERRAFORM] No resource matching {list(resource_prefixes)}, nothing to apply")
            return targets

        target_args = [f"-target={address}" for address in targets]
        self._run("apply", "-auto-approve", "-input=false", "-no-color", *target_args)
        logger.info(f"[TERRAFORM] Applied {len(targets)} targeted resource(s)")
        return targets
