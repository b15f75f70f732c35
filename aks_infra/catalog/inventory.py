"""
In-memory catalog.

Records declared resources into an ordered desired-state document and answers
lookups from a static inventory of existing resources. No cloud calls are
made, so results depend only on the inputs.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.errors import ResourceNotFoundError
from aks_infra.iac_types import ClusterRef, ClusterSpec, ResourceGroupRef
from aks_infra.modules.aks.aks import cluster_arguments, user_pool_arguments

DEFAULT_SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


class InventoryCatalog(ResourceCatalog):
    """Catalog backed by a dict inventory instead of the Azure API."""

    def __init__(
        self,
        subscription_id: str = DEFAULT_SUBSCRIPTION_ID,
        resource_groups: Optional[Mapping[str, str]] = None,
        virtual_networks: Optional[Mapping[str, List[str]]] = None,
        subnets: Optional[Mapping[str, Mapping[str, List[str]]]] = None,
    ) -> None:
        self.subscription_id = subscription_id
        self._resource_groups: Dict[str, str] = dict(resource_groups or {})
        self._vnets: Set[Tuple[str, str]] = {
            (rg, vnet)
            for rg, names in (virtual_networks or {}).items()
            for vnet in names
        }
        self._subnets: Set[Tuple[str, str, str]] = {
            (rg, vnet, subnet)
            for rg, by_vnet in (subnets or {}).items()
            for vnet, names in by_vnet.items()
            for subnet in names
        }
        self.declared: List[Dict[str, Any]] = []

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], subscription_id: str = DEFAULT_SUBSCRIPTION_ID
    ) -> "InventoryCatalog":
        return cls(
            subscription_id=subscription_id,
            resource_groups=data.get("resource_groups") or {},
            virtual_networks=data.get("virtual_networks") or {},
            subnets=data.get("subnets") or {},
        )

    @classmethod
    def from_file(
        cls, path: Path, subscription_id: str = DEFAULT_SUBSCRIPTION_ID
    ) -> "InventoryCatalog":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data, subscription_id=subscription_id)

    # ARM identifiers

    def _rg_id(self, rg: str) -> str:
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{rg}"

    def _network_id(self, rg: str, kind: str, name: str) -> str:
        return f"{self._rg_id(rg)}/providers/Microsoft.Network/{kind}/{name}"

    def _subnet_id(self, rg: str, vnet: str, name: str) -> str:
        return f"{self._network_id(rg, 'virtualNetworks', vnet)}/subnets/{name}"

    def _declare(self, kind: str, name: str, properties: Dict[str, Any]) -> None:
        self.declared.append({"type": kind, "name": name, "properties": properties})

    # ResourceCatalog

    def create_resource_group(
        self, name: str, location: str, tags: Dict[str, str]
    ) -> ResourceGroupRef:
        self._declare(
            "azurerm_resource_group", name, {"location": location, "tags": dict(tags)}
        )
        self._resource_groups[name] = location
        return ResourceGroupRef(
            name=name, id=self._rg_id(name), location=location, created=True
        )

    def find_resource_group(self, name: str) -> ResourceGroupRef:
        if name not in self._resource_groups:
            raise ResourceNotFoundError("resource group", name)
        return ResourceGroupRef(
            name=name,
            id=self._rg_id(name),
            location=self._resource_groups[name],
            created=False,
        )

    def create_virtual_network(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        address_space: List[str],
        tags: Dict[str, str],
    ) -> str:
        self._declare(
            "azurerm_virtual_network",
            name,
            {
                "resource_group_name": resource_group_name,
                "location": location,
                "address_space": list(address_space),
                "tags": dict(tags),
            },
        )
        self._vnets.add((resource_group_name, name))
        return self._network_id(resource_group_name, "virtualNetworks", name)

    def find_virtual_network(self, name: str, resource_group_name: str) -> str:
        if (resource_group_name, name) not in self._vnets:
            raise ResourceNotFoundError("virtual network", name, resource_group_name)
        return self._network_id(resource_group_name, "virtualNetworks", name)

    def create_subnet(
        self,
        name: str,
        resource_group_name: str,
        virtual_network_name: str,
        address_prefix: str,
    ) -> str:
        self._declare(
            "azurerm_subnet",
            name,
            {
                "resource_group_name": resource_group_name,
                "virtual_network_name": virtual_network_name,
                "address_prefixes": [address_prefix],
            },
        )
        self._subnets.add((resource_group_name, virtual_network_name, name))
        return self._subnet_id(resource_group_name, virtual_network_name, name)

    def find_subnet(
        self, name: str, virtual_network_name: str, resource_group_name: str
    ) -> str:
        if (resource_group_name, virtual_network_name, name) not in self._subnets:
            raise ResourceNotFoundError(
                "subnet", f"{virtual_network_name}/{name}", resource_group_name
            )
        return self._subnet_id(resource_group_name, virtual_network_name, name)

    def create_network_security_group(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        tags: Dict[str, str],
    ) -> str:
        self._declare(
            "azurerm_network_security_group",
            name,
            {
                "resource_group_name": resource_group_name,
                "location": location,
                "tags": dict(tags),
            },
        )
        return self._network_id(resource_group_name, "networkSecurityGroups", name)

    def associate_network_security_group(self, subnet_id: str, nsg_id: str) -> None:
        self._declare(
            "azurerm_subnet_network_security_group_association",
            subnet_id.rsplit("/", 1)[-1],
            {"subnet_id": subnet_id, "network_security_group_id": nsg_id},
        )

    def create_cluster(self, spec: ClusterSpec) -> ClusterRef:
        cluster_id = (
            f"{self._rg_id(spec.resource_group.name)}"
            f"/providers/Microsoft.ContainerService/managedClusters/{spec.name}"
        )
        self._declare("azurerm_kubernetes_cluster", spec.name, cluster_arguments(spec))
        self._declare(
            "azurerm_kubernetes_cluster_node_pool",
            spec.user_pool.name,
            user_pool_arguments(spec, cluster_id),
        )
        return ClusterRef(id=cluster_id, name=spec.name)
