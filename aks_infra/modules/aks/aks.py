"""
AKS module.

Assembles the cluster declaration: a system pool reserved for critical
add-ons and a user pool that may run on Spot capacity. Every check runs
before the catalog is asked to declare the cluster.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Tuple

from aks_infra.catalog.base import ResourceCatalog
from aks_infra.errors import ConfigurationError, ValidationError
from aks_infra.iac_types import (
    ClusterConfig,
    ClusterRef,
    ClusterSpec,
    DeploymentIdentity,
    NamingContext,
    NetworkProfile,
    NetworkRef,
    NetworkSettings,
    NodePoolConfig,
    NodePoolSpec,
    ResourceGroupRef,
)
from aks_infra.modules.naming.naming import pick_name
from aks_infra.utils.validation import (
    require_cidr,
    require_ip,
    require_one_of,
    require_range,
)

logger = logging.getLogger(__name__)

VM_SKU_PRESETS: Dict[str, Tuple[str, str]] = {
    "low": ("Standard_B2ms", "Standard_B2ms"),
    "high": ("Standard_D4s_v5", "Standard_D8s_v5"),
}
NODE_POOL_PRESETS = ("low", "high", "custom")

NETWORK_PLUGINS = ("azure", "kubenet", "none")
NETWORK_PLUGIN_MODES = ("", "overlay")
NETWORK_POLICIES = ("", "azure", "calico", "cilium")
# Network policies each plugin accepts.
PLUGIN_POLICIES: Dict[str, Tuple[str, ...]] = {
    "azure": NETWORK_POLICIES,
    "kubenet": ("", "calico"),
    "none": ("",),
}
OUTBOUND_TYPES = (
    "loadBalancer",
    "userDefinedRouting",
    "managedNATGateway",
    "userAssignedNATGateway",
)
OS_DISK_TYPES = ("Managed", "Ephemeral")
PRIORITIES = ("Regular", "Spot")
EVICTION_POLICIES = ("Delete", "Deallocate")
SKU_TIERS = ("Free", "Standard", "Premium")
EXPANDERS = ("random", "least-waste", "most-pods", "priority")

SPOT_LABEL_KEY = "kubernetes.azure.com/scalesetpriority"
SPOT_TAINT = f"{SPOT_LABEL_KEY}=spot:NoSchedule"


def resolve_vm_skus(
    preset: str, custom_system_vm_sku: str = "", custom_user_vm_sku: str = ""
) -> Tuple[str, str]:
    """Return (system_sku, user_sku) for a node pool preset."""
    require_one_of("node_pool_preset", preset, NODE_POOL_PRESETS)
    if preset != "custom":
        return VM_SKU_PRESETS[preset]
    if not custom_system_vm_sku or not custom_system_vm_sku.strip():
        raise ConfigurationError(
            "custom_system_vm_sku", "required when node_pool_preset is 'custom'"
        )
    if not custom_user_vm_sku or not custom_user_vm_sku.strip():
        raise ConfigurationError(
            "custom_user_vm_sku", "required when node_pool_preset is 'custom'"
        )
    return custom_system_vm_sku, custom_user_vm_sku


def _validate_pool(prefix: str, pool: NodePoolConfig, autoscale: bool, floor: int) -> None:
    require_one_of(f"{prefix}_os_disk_type", pool.os_disk_type, OS_DISK_TYPES)
    require_range(f"{prefix}_os_disk_size_gb", pool.os_disk_size_gb, 30, 2048)
    require_range(f"{prefix}_node_count", pool.node_count, floor, 1000)
    if not autoscale:
        return
    require_range(f"{prefix}_node_min_count", pool.min_count, floor, 1000)
    require_range(f"{prefix}_node_max_count", pool.max_count, floor, 1000)
    if not pool.min_count <= pool.node_count <= pool.max_count:
        raise ValidationError(
            f"{prefix}_node_count",
            pool.node_count,
            message=(
                f"must satisfy min ({pool.min_count}) <= count <= max ({pool.max_count})"
            ),
        )


def _validate_network(settings: NetworkSettings) -> None:
    require_one_of("network_plugin", settings.network_plugin, NETWORK_PLUGINS)
    require_one_of("network_plugin_mode", settings.network_plugin_mode, NETWORK_PLUGIN_MODES)
    require_one_of("network_policy", settings.network_policy, NETWORK_POLICIES)
    require_one_of(
        "network_policy",
        settings.network_policy,
        PLUGIN_POLICIES[settings.network_plugin],
    )
    if settings.network_policy == "cilium" and settings.network_plugin_mode != "overlay":
        raise ValidationError(
            "network_plugin_mode",
            settings.network_plugin_mode,
            allowed=("overlay",),
            message="cilium network policy needs Azure CNI overlay",
        )
    require_one_of("outbound_type", settings.outbound_type, OUTBOUND_TYPES)
    require_cidr("service_cidr", settings.service_cidr)
    require_ip("dns_service_ip", settings.dns_service_ip)
    if _uses_pod_cidr(settings):
        require_cidr("pod_cidr", settings.pod_cidr)


def validate_cluster_config(config: ClusterConfig) -> ClusterConfig:
    """Check every cluster input; raises before anything is declared."""
    resolve_vm_skus(
        config.node_pool_preset, config.custom_system_vm_sku, config.custom_user_vm_sku
    )
    require_one_of("sku_tier", config.sku_tier, SKU_TIERS)
    _validate_pool("system", config.system_pool, config.enable_auto_scaling, floor=1)
    _validate_pool("user", config.user_pool, config.enable_auto_scaling, floor=0)
    require_one_of("user_node_pool_priority", config.user_pool.priority, PRIORITIES)
    if config.user_pool.priority == "Spot":
        require_one_of(
            "user_node_pool_eviction_policy",
            config.user_pool.eviction_policy,
            EVICTION_POLICIES,
        )
        price = config.user_pool.spot_max_price
        if price != -1 and not price > 0:
            raise ValidationError(
                "user_node_pool_spot_max_price", price, message="must be -1 or > 0"
            )
    _validate_network(config.network)
    for cidr in config.api_server_authorized_ip_ranges:
        require_cidr("api_server_authorized_ip_ranges", cidr)
    if config.enable_auto_scaling:
        require_one_of("auto_scaler_profile.expander", config.auto_scaler_profile.expander, EXPANDERS)
    return config


def _uses_pod_cidr(settings: NetworkSettings) -> bool:
    # Pod CIDR only applies to kubenet and Azure CNI overlay.
    return settings.network_plugin == "kubenet" or (
        settings.network_plugin == "azure" and settings.network_plugin_mode == "overlay"
    )


def build_network_profile(settings: NetworkSettings) -> NetworkProfile:
    return NetworkProfile(
        network_plugin=settings.network_plugin,
        network_plugin_mode=(
            settings.network_plugin_mode or None
            if settings.network_plugin == "azure"
            else None
        ),
        network_policy=settings.network_policy or None,
        network_data_plane="cilium" if settings.network_policy == "cilium" else None,
        pod_cidr=settings.pod_cidr if _uses_pod_cidr(settings) else None,
        service_cidr=settings.service_cidr,
        dns_service_ip=settings.dns_service_ip,
        outbound_type=settings.outbound_type,
    )


def build_node_pool(
    *,
    name: str,
    mode: str,
    vm_sku: str,
    pool: NodePoolConfig,
    autoscale: bool,
    priority: str = "Regular",
) -> NodePoolSpec:
    spot = priority == "Spot"
    return NodePoolSpec(
        name=name,
        mode=mode,
        vm_sku=vm_sku,
        node_count=pool.node_count,
        auto_scaling_enabled=autoscale,
        min_count=pool.min_count if autoscale else None,
        max_count=pool.max_count if autoscale else None,
        os_disk_size_gb=pool.os_disk_size_gb,
        os_disk_type=pool.os_disk_type,
        priority=priority,
        eviction_policy=pool.eviction_policy if spot else None,
        spot_max_price=pool.spot_max_price if spot else None,
        only_critical_addons_enabled=mode == "System",
        node_labels={SPOT_LABEL_KEY: "spot"} if spot else {},
        node_taints=[SPOT_TAINT] if spot else [],
    )


def resolve_cluster(
    *,
    config: ClusterConfig,
    network: NetworkRef,
    resource_group: ResourceGroupRef,
    identity: DeploymentIdentity,
    naming: NamingContext,
    catalog: ResourceCatalog,
    tags: Dict[str, str],
) -> Tuple[ClusterSpec, ClusterRef]:
    """Assemble the cluster declaration and hand it to the catalog."""
    validate_cluster_config(config)
    system_sku, user_sku = resolve_vm_skus(
        config.node_pool_preset, config.custom_system_vm_sku, config.custom_user_vm_sku
    )
    autoscale = config.enable_auto_scaling
    name = pick_name(config.cluster_name, "aks", naming)

    spec = ClusterSpec(
        identity=identity,
        name=name,
        dns_prefix=f"{name}-dns",
        kubernetes_version=config.kubernetes_version or None,
        sku_tier=config.sku_tier,
        resource_group=resource_group,
        network=network,
        node_resource_group=pick_name(config.node_resource_group_name, "rg-mc", naming),
        system_pool=build_node_pool(
            name="system",
            mode="System",
            vm_sku=system_sku,
            pool=config.system_pool,
            autoscale=autoscale,
        ),
        user_pool=build_node_pool(
            name="user",
            mode="User",
            vm_sku=user_sku,
            pool=config.user_pool,
            autoscale=autoscale,
            priority=config.user_pool.priority,
        ),
        api_server_authorized_ip_ranges=tuple(config.api_server_authorized_ip_ranges),
        network_profile=build_network_profile(config.network),
        auto_scaler_profile=config.auto_scaler_profile if autoscale else None,
        authorization=config.authorization,
        tags=dict(tags),
    )
    logger.debug(
        "Cluster %s: system=%s user=%s (%s)",
        name,
        system_sku,
        user_sku,
        spec.user_pool.priority,
    )
    return spec, catalog.create_cluster(spec)


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _pool_arguments(pool: NodePoolSpec, subnet_id: str) -> Dict[str, Any]:
    return _compact(
        {
            "name": pool.name,
            "vm_size": pool.vm_sku,
            "node_count": pool.node_count,
            "auto_scaling_enabled": pool.auto_scaling_enabled,
            "min_count": pool.min_count,
            "max_count": pool.max_count,
            "os_disk_size_gb": pool.os_disk_size_gb,
            "os_disk_type": pool.os_disk_type,
            "vnet_subnet_id": subnet_id,
        }
    )


def cluster_arguments(spec: ClusterSpec) -> Dict[str, Any]:
    """Keyword arguments for azurerm_kubernetes_cluster."""
    default_node_pool = _pool_arguments(spec.system_pool, spec.network.subnet_id)
    default_node_pool.update(
        {
            "type": "VirtualMachineScaleSets",
            "only_critical_addons_enabled": spec.system_pool.only_critical_addons_enabled,
            "temporary_name_for_rotation": "systemtmp",
        }
    )
    api_access: Optional[Dict[str, Any]] = (
        {"authorized_ip_ranges": list(spec.api_server_authorized_ip_ranges)}
        if spec.api_server_authorized_ip_ranges
        else None
    )
    return _compact(
        {
            "name": spec.name,
            "location": spec.identity.location,
            "resource_group_name": spec.resource_group.name,
            "dns_prefix": spec.dns_prefix,
            "kubernetes_version": spec.kubernetes_version,
            "sku_tier": spec.sku_tier,
            "node_resource_group": spec.node_resource_group,
            "default_node_pool": default_node_pool,
            "identity": {"type": "SystemAssigned"},
            "role_based_access_control_enabled": True,
            "local_account_disabled": spec.authorization.local_account_disabled,
            "azure_active_directory_role_based_access_control": {
                "azure_rbac_enabled": spec.authorization.azure_rbac_enabled,
                "admin_group_object_ids": list(spec.authorization.admin_group_object_ids),
            },
            "api_server_access_profile": api_access,
            "network_profile": _compact(asdict(spec.network_profile)),
            "auto_scaler_profile": (
                asdict(spec.auto_scaler_profile) if spec.auto_scaler_profile else None
            ),
            "tags": dict(spec.tags),
        }
    )


def user_pool_arguments(spec: ClusterSpec, cluster_id: str) -> Dict[str, Any]:
    """Keyword arguments for azurerm_kubernetes_cluster_node_pool."""
    pool = spec.user_pool
    args = _pool_arguments(pool, spec.network.subnet_id)
    args.update(
        _compact(
            {
                "kubernetes_cluster_id": cluster_id,
                "mode": pool.mode,
                "priority": pool.priority,
                "eviction_policy": pool.eviction_policy,
                "spot_max_price": pool.spot_max_price,
                "node_labels": dict(pool.node_labels) or None,
                "node_taints": list(pool.node_taints) or None,
                "tags": dict(spec.tags),
            }
        )
    )
    return args
