"""
Azure stack composition.

Runs the resolvers in dependency order (naming, resource group, network,
cluster), threading each resolved output explicitly into the next, and
derives the stack outputs. Used by both the CDKTF stack and the CLI.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.iac_types import (
    AksInfrastructureConfig,
    ClusterRef,
    ClusterSpec,
    NamingContext,
    NetworkRef,
    ResourceGroupRef,
)
from aks_infra.modules.aks.aks import resolve_cluster, validate_cluster_config
from aks_infra.modules.naming.naming import resolve_naming
from aks_infra.modules.network.network import (
    resolve_network,
    validate_network_choice,
)
from aks_infra.modules.resource_group.resource_group import resolve_resource_group


@dataclass(frozen=True)
class StackResolution:
    naming: NamingContext
    resource_group: ResourceGroupRef
    network: NetworkRef
    cluster: ClusterSpec
    cluster_ref: ClusterRef
    outputs: Dict[str, Any]


def common_tags(config: AksInfrastructureConfig) -> Dict[str, str]:
    """Baseline tags; user-supplied tags win on conflicts."""
    tags = {
        "Workload": config.identity.workload,
        "Environment": config.identity.environment,
        "ManagedBy": "cdktf",
    }
    tags.update(config.tags)
    return tags


def kube_credentials_command(resource_group_name: str, cluster_name: str) -> str:
    return (
        f"az aks get-credentials --resource-group {resource_group_name} "
        f"--name {cluster_name}"
    )


def build_outputs(
    rg: ResourceGroupRef, network: NetworkRef, cluster: ClusterSpec, ref: ClusterRef
) -> Dict[str, Any]:
    return {
        "resource_group_name": rg.name,
        "resource_group_id": rg.id,
        "vnet_id": network.vnet_id,
        "vnet_name": network.vnet_name,
        "subnet_id": network.subnet_id,
        "nsg_id": network.nsg_id,
        "cluster_id": ref.id,
        "cluster_name": ref.name,
        "node_resource_group": cluster.node_resource_group,
        "kube_credentials_command": kube_credentials_command(rg.name, ref.name),
        "deployment_summary": {
            "resource_group": {"created": rg.created, "name": rg.name},
            "vnet": {"created": network.created, "name": network.vnet_name},
            "nsg": {"created": network.nsg_id is not None, "name": network.nsg_name},
        },
    }


def resolve_stack(
    config: AksInfrastructureConfig, catalog: ResourceCatalog
) -> StackResolution:
    """Resolve the whole desired state against ``catalog``."""
    naming = resolve_naming(config.identity, strict=config.strict_location)
    # Network and cluster inputs are checked up front so nothing is declared
    # for a configuration that would fail later.
    validate_network_choice(config.network)
    validate_cluster_config(config.cluster)
    tags = common_tags(config)

    rg = resolve_resource_group(
        choice=config.resource_group,
        identity=config.identity,
        naming=naming,
        catalog=catalog,
        tags=tags,
    )
    network = resolve_network(
        choice=config.network,
        resource_group=rg,
        identity=config.identity,
        naming=naming,
        catalog=catalog,
        tags=tags,
    )
    cluster, ref = resolve_cluster(
        config=config.cluster,
        network=network,
        resource_group=rg,
        identity=config.identity,
        naming=naming,
        catalog=catalog,
        tags=tags,
    )
    return StackResolution(
        naming=naming,
        resource_group=rg,
        network=network,
        cluster=cluster,
        cluster_ref=ref,
        outputs=build_outputs(rg, network, cluster, ref),
    )


def synth_config_json(config: AksInfrastructureConfig) -> Dict[str, Any]:
    """Convert dataclasses to plain dict for diagnostics or outputs."""
    data = asdict(config)
    # asdict drops the variant type of the create/reference unions.
    data["resource_group"]["kind"] = type(config.resource_group).__name__
    data["network"]["kind"] = type(config.network).__name__
    return data


def dumps(data: Any) -> str:
    """Stable JSON rendering; equal inputs give byte-identical text."""
    return json.dumps(data, indent=2, sort_keys=True)
