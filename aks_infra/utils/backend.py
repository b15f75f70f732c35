"""
Remote state helpers.

Derives the azurerm backend location (resource group, storage account,
container and blob key) from TERRAFORM_STATE_* environment variables.
"""

from __future__ import annotations

from typing import Mapping, Optional

from aks_infra.iac_types import RemoteStateConfig

DEFAULT_STATE_RESOURCE_GROUP = "rg-terraform-state"
DEFAULT_STATE_CONTAINER = "tfstate"
DEFAULT_PROJECT_NAME = "aks-cluster"


def state_key(project: str, environment: str, custom_key: Optional[str] = None) -> str:
    """Blob key holding the state for one environment of a project."""
    if environment == "custom" and custom_key:
        return custom_key
    return f"{project}/{environment}/terraform.tfstate"


def load_remote_state(
    env: Mapping[str, str], environment: str
) -> Optional[RemoteStateConfig]:
    """Return the backend settings, or None to keep local state.

    The key's project segment comes from PROJECT_NAME, so keys line up with
    state already initialized by the backend scripts.
    """
    storage_account = env.get("TERRAFORM_STATE_SA")
    if not storage_account:
        return None
    project = env.get("PROJECT_NAME") or DEFAULT_PROJECT_NAME
    return RemoteStateConfig(
        resource_group_name=env.get("TERRAFORM_STATE_RG") or DEFAULT_STATE_RESOURCE_GROUP,
        storage_account_name=storage_account,
        container_name=env.get("TERRAFORM_STATE_CONTAINER") or DEFAULT_STATE_CONTAINER,
        key=state_key(project, environment, env.get("TERRAFORM_STATE_KEY")),
    )
