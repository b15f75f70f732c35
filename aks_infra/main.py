"""
CDKTF entrypoint for the AKS infrastructure.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from constructs import Construct
from cdktf import App, AzurermBackend, TerraformOutput, TerraformStack

from cdktf_cdktf_provider_azurerm.provider import AzurermProvider

from aks_infra.catalog.terraform_catalog import TerraformCatalog
from aks_infra.iac_types import (
    AksInfrastructureConfig,
    ProviderCredentials,
    RemoteStateConfig,
)
from aks_infra.stacks.azure_stack import dumps, resolve_stack, synth_config_json
from aks_infra.utils.backend import load_remote_state
from aks_infra.utils.config_loader import load_credentials, load_tfvars_config
from aks_infra.utils.validation import format_missing_env_message, missing_env

STACK_ID = "aks"


class AksStack(TerraformStack):
    """TerraformStack that wires the AKS resources from typed config."""

    def __init__(
        self,
        scope: Construct,
        id: str,
        config: AksInfrastructureConfig,
        credentials: ProviderCredentials,
        remote_state: Optional[RemoteStateConfig] = None,
    ) -> None:
        super().__init__(scope, id)

        # Provider; credentials are passed through untouched when present
        AzurermProvider(
            self,
            "azurerm",
            features=[{}],
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            tenant_id=credentials.tenant_id,
            subscription_id=credentials.subscription_id,
        )

        if remote_state is not None:
            AzurermBackend(
                self,
                resource_group_name=remote_state.resource_group_name,
                storage_account_name=remote_state.storage_account_name,
                container_name=remote_state.container_name,
                key=remote_state.key,
            )

        resolution = resolve_stack(config, TerraformCatalog(self))

        for name, value in resolution.outputs.items():
            if value is None:
                continue
            TerraformOutput(self, name, value=value)


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    repo_root = Path.cwd()

    # Preflight: ensure required env vars are present before synthesizing
    required_env = ["ARM_SUBSCRIPTION_ID"]
    missing = missing_env(env=os.environ, keys=required_env)
    if missing:
        msg = format_missing_env_message(missing)
        print(msg, file=sys.stderr)
        sys.exit(2)

    try:
        cfg = load_tfvars_config(repo_root=repo_root)
    except (ValueError, FileNotFoundError) as ex:
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)

    remote_state = load_remote_state(os.environ, cfg.identity.environment)

    app = App()
    try:
        AksStack(app, STACK_ID, cfg, load_credentials(os.environ), remote_state)
    except ValueError as ex:
        # Surface a concise, friendly message instead of a long traceback
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)

    # Surface a copy of the config used for traceability
    TerraformOutput(
        app.node.try_find_child(STACK_ID),
        "config_json",
        value=dumps(synth_config_json(cfg)),
    )

    try:
        app.synth()
    except Exception as ex:  # noqa: BLE001 - present actionable error
        print("Synthesis failed.", file=sys.stderr)
        print(str(ex), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
