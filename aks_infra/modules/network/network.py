"""
Network module.

Creates the VNet, the AKS subnet and optionally an NSG associated to it, or
references an existing VNet/subnet pair, possibly in another resource group
(hub-spoke). A referenced VNet never gets an NSG attached.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Dict

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.errors import ConfigurationError, ValidationError
from aks_infra.iac_types import (
    CreateNetwork,
    DeploymentIdentity,
    ExistingNetwork,
    NamingContext,
    NetworkChoice,
    NetworkRef,
    ResourceGroupRef,
)
from aks_infra.modules.naming.naming import pick_name
from aks_infra.utils.validation import require_cidr, require_non_empty

logger = logging.getLogger(__name__)


def validate_network_choice(choice: NetworkChoice) -> NetworkChoice:
    """Check the network inputs; raises before anything is declared."""
    if isinstance(choice, CreateNetwork):
        require_cidr("vnet_address_space", choice.address_space)
        require_cidr("subnet_address_prefix", choice.subnet_address_prefix)
        _require_subnet_in_vnet(choice.address_space, choice.subnet_address_prefix)
    elif isinstance(choice, ExistingNetwork):
        require_non_empty("existing_vnet_name", choice.vnet_name)
        require_non_empty("existing_subnet_name", choice.subnet_name)
    else:
        raise ConfigurationError(
            "network", f"unsupported network choice: {type(choice).__name__}"
        )
    return choice


def _require_subnet_in_vnet(address_space: str, subnet_prefix: str) -> None:
    vnet = ipaddress.ip_network(address_space, strict=False)
    subnet = ipaddress.ip_network(subnet_prefix, strict=False)
    if subnet.version != vnet.version or not subnet.subnet_of(vnet):
        raise ValidationError(
            "subnet_address_prefix",
            subnet_prefix,
            message=f"must lie within vnet_address_space ({address_space})",
        )


def _create_network(
    choice: CreateNetwork,
    rg: ResourceGroupRef,
    identity: DeploymentIdentity,
    naming: NamingContext,
    catalog: ResourceCatalog,
    tags: Dict[str, str],
) -> NetworkRef:
    vnet_name = pick_name(choice.vnet_name, "vnet", naming)
    subnet_name = pick_name(choice.subnet_name, "snet-aks", naming)

    vnet_id = catalog.create_virtual_network(
        vnet_name, rg.name, identity.location, [choice.address_space], tags
    )
    subnet_id = catalog.create_subnet(
        subnet_name, rg.name, vnet_name, choice.subnet_address_prefix
    )

    nsg_id = None
    nsg_name = None
    if choice.create_nsg:
        nsg_name = pick_name(choice.nsg_name, "nsg-aks", naming)
        nsg_id = catalog.create_network_security_group(
            nsg_name, rg.name, identity.location, tags
        )
        catalog.associate_network_security_group(subnet_id, nsg_id)

    return NetworkRef(
        vnet_id=vnet_id,
        vnet_name=vnet_name,
        subnet_id=subnet_id,
        subnet_name=subnet_name,
        vnet_resource_group_name=rg.name,
        created=True,
        nsg_id=nsg_id,
        nsg_name=nsg_name,
    )


def _reference_network(
    choice: ExistingNetwork, rg: ResourceGroupRef, catalog: ResourceCatalog
) -> NetworkRef:
    vnet_name = choice.vnet_name
    subnet_name = choice.subnet_name
    # The VNet may live in a hub resource group unrelated to the deployment's.
    vnet_rg = choice.resource_group_name or rg.name

    vnet_id = catalog.find_virtual_network(vnet_name, vnet_rg)
    subnet_id = catalog.find_subnet(subnet_name, vnet_name, vnet_rg)
    return NetworkRef(
        vnet_id=vnet_id,
        vnet_name=vnet_name,
        subnet_id=subnet_id,
        subnet_name=subnet_name,
        vnet_resource_group_name=vnet_rg,
        created=False,
    )


def resolve_network(
    *,
    choice: NetworkChoice,
    resource_group: ResourceGroupRef,
    identity: DeploymentIdentity,
    naming: NamingContext,
    catalog: ResourceCatalog,
    tags: Dict[str, str],
) -> NetworkRef:
    """Resolve the cluster network and return (vnet, subnet, nsg) identifiers."""
    validate_network_choice(choice)
    if isinstance(choice, CreateNetwork):
        logger.debug(
            "Creating network in %s (nsg=%s)", resource_group.name, choice.create_nsg
        )
        return _create_network(choice, resource_group, identity, naming, catalog, tags)

    logger.debug("Referencing existing network %s", choice.vnet_name)
    return _reference_network(choice, resource_group, catalog)
