"""
Resource group module.

Either declares a new resource group or references an existing one by name.
Both branches return the same ResourceGroupRef shape.
"""

from __future__ import annotations

import logging
from typing import Dict

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.errors import ConfigurationError
from aks_infra.iac_types import (
    CreateResourceGroup,
    DeploymentIdentity,
    ExistingResourceGroup,
    NamingContext,
    ResourceGroupChoice,
    ResourceGroupRef,
)
from aks_infra.modules.naming.naming import pick_name
from aks_infra.utils.validation import require_non_empty

logger = logging.getLogger(__name__)


def resolve_resource_group(
    *,
    choice: ResourceGroupChoice,
    identity: DeploymentIdentity,
    naming: NamingContext,
    catalog: ResourceCatalog,
    tags: Dict[str, str],
) -> ResourceGroupRef:
    """Resolve the deployment's resource group and return its reference."""
    if isinstance(choice, CreateResourceGroup):
        name = pick_name(choice.name, "rg", naming)
        logger.debug("Creating resource group %s in %s", name, identity.location)
        return catalog.create_resource_group(name, identity.location, tags)

    if isinstance(choice, ExistingResourceGroup):
        name = require_non_empty("existing_resource_group_name", choice.name)
        logger.debug("Referencing existing resource group %s", name)
        return catalog.find_resource_group(name)

    raise ConfigurationError(
        "resource_group", f"unsupported resource group choice: {type(choice).__name__}"
    )
