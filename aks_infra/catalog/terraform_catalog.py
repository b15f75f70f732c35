"""
CDKTF catalog.

Declares azurerm resources for owned objects and azurerm data sources for
referenced ones. Identifiers handed back are Terraform tokens, so every
reference between resources becomes a dependency edge Terraform can order.
Missing referenced resources surface when Terraform plans, not here.
"""

from __future__ import annotations

from typing import Dict, List

from constructs import Construct

from cdktf_cdktf_provider_azurerm.data_azurerm_resource_group import (
    DataAzurermResourceGroup,
)
from cdktf_cdktf_provider_azurerm.data_azurerm_subnet import DataAzurermSubnet
from cdktf_cdktf_provider_azurerm.data_azurerm_virtual_network import (
    DataAzurermVirtualNetwork,
)
from cdktf_cdktf_provider_azurerm.kubernetes_cluster import KubernetesCluster
from cdktf_cdktf_provider_azurerm.kubernetes_cluster_node_pool import (
    KubernetesClusterNodePool,
)
from cdktf_cdktf_provider_azurerm.network_security_group import NetworkSecurityGroup
from cdktf_cdktf_provider_azurerm.resource_group import ResourceGroup
from cdktf_cdktf_provider_azurerm.subnet import Subnet
from cdktf_cdktf_provider_azurerm.subnet_network_security_group_association import (
    SubnetNetworkSecurityGroupAssociation,
)
from cdktf_cdktf_provider_azurerm.virtual_network import VirtualNetwork

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.iac_types import ClusterRef, ClusterSpec, ResourceGroupRef
from aks_infra.modules.aks.aks import cluster_arguments, user_pool_arguments


class TerraformCatalog(ResourceCatalog):
    """Catalog that emits CDKTF constructs into ``scope``."""

    def __init__(self, scope: Construct) -> None:
        self.scope = scope
        # literal VNet name -> name token of the construct that owns it
        self._vnet_names: Dict[str, str] = {}

    def create_resource_group(
        self, name: str, location: str, tags: Dict[str, str]
    ) -> ResourceGroupRef:
        rg = ResourceGroup(self.scope, "rg", name=name, location=location, tags=tags)
        return ResourceGroupRef(name=rg.name, id=rg.id, location=rg.location, created=True)

    def find_resource_group(self, name: str) -> ResourceGroupRef:
        rg = DataAzurermResourceGroup(self.scope, "existingRg", name=name)
        return ResourceGroupRef(name=rg.name, id=rg.id, location=rg.location, created=False)

    def create_virtual_network(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        address_space: List[str],
        tags: Dict[str, str],
    ) -> str:
        vnet = VirtualNetwork(
            self.scope,
            "vnet",
            name=name,
            location=location,
            resource_group_name=resource_group_name,
            address_space=address_space,
            tags=tags,
        )
        self._vnet_names[name] = vnet.name
        return vnet.id

    def find_virtual_network(self, name: str, resource_group_name: str) -> str:
        vnet = DataAzurermVirtualNetwork(
            self.scope,
            "existingVnet",
            name=name,
            resource_group_name=resource_group_name,
        )
        return vnet.id

    def create_subnet(
        self,
        name: str,
        resource_group_name: str,
        virtual_network_name: str,
        address_prefix: str,
    ) -> str:
        subnet = Subnet(
            self.scope,
            "subnetAks",
            name=name,
            resource_group_name=resource_group_name,
            virtual_network_name=self._vnet_names.get(
                virtual_network_name, virtual_network_name
            ),
            address_prefixes=[address_prefix],
        )
        return subnet.id

    def find_subnet(
        self, name: str, virtual_network_name: str, resource_group_name: str
    ) -> str:
        subnet = DataAzurermSubnet(
            self.scope,
            "existingSubnet",
            name=name,
            virtual_network_name=virtual_network_name,
            resource_group_name=resource_group_name,
        )
        return subnet.id

    def create_network_security_group(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        tags: Dict[str, str],
    ) -> str:
        nsg = NetworkSecurityGroup(
            self.scope,
            "nsgAks",
            name=name,
            location=location,
            resource_group_name=resource_group_name,
            tags=tags,
        )
        return nsg.id

    def associate_network_security_group(self, subnet_id: str, nsg_id: str) -> None:
        SubnetNetworkSecurityGroupAssociation(
            self.scope,
            "subnetAksNsgAssoc",
            subnet_id=subnet_id,
            network_security_group_id=nsg_id,
        )

    def create_cluster(self, spec: ClusterSpec) -> ClusterRef:
        aks = KubernetesCluster(self.scope, "aks", **cluster_arguments(spec))
        KubernetesClusterNodePool(
            self.scope, "aksUserPool", **user_pool_arguments(spec, aks.id)
        )
        return ClusterRef(id=aks.id, name=aks.name)
