from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class DeploymentIdentity:
    workload: str
    environment: str
    location: str
    instance: int  # 1..99


@dataclass(frozen=True)
class NamingContext:
    location_short: str
    suffix: str  # {workload}-{environment}-{location_short}-{instance:02d}


@dataclass(frozen=True)
class CreateResourceGroup:
    name: Optional[str] = None  # explicit override of the derived name


@dataclass(frozen=True)
class ExistingResourceGroup:
    name: str


ResourceGroupChoice = Union[CreateResourceGroup, ExistingResourceGroup]


@dataclass(frozen=True)
class ResourceGroupRef:
    name: str
    id: str
    location: str
    created: bool


@dataclass(frozen=True)
class CreateNetwork:
    address_space: str = "10.0.0.0/16"
    subnet_address_prefix: str = "10.0.1.0/24"
    create_nsg: bool = True
    vnet_name: Optional[str] = None
    subnet_name: Optional[str] = None
    nsg_name: Optional[str] = None


@dataclass(frozen=True)
class ExistingNetwork:
    vnet_name: str
    subnet_name: str
    resource_group_name: Optional[str] = None  # None: the deployment's own RG


NetworkChoice = Union[CreateNetwork, ExistingNetwork]


@dataclass(frozen=True)
class NetworkRef:
    vnet_id: str
    vnet_name: str
    subnet_id: str
    subnet_name: str
    vnet_resource_group_name: str
    created: bool
    nsg_id: Optional[str] = None
    nsg_name: Optional[str] = None


@dataclass(frozen=True)
class NodePoolConfig:
    node_count: int = 1
    min_count: int = 1
    max_count: int = 3
    os_disk_size_gb: int = 128
    os_disk_type: str = "Managed"  # Managed or Ephemeral
    priority: str = "Regular"  # Regular or Spot
    eviction_policy: str = "Delete"  # Delete or Deallocate
    spot_max_price: float = -1


@dataclass(frozen=True)
class NodePoolSpec:
    name: str
    mode: str  # System or User
    vm_sku: str
    node_count: int
    auto_scaling_enabled: bool
    min_count: Optional[int]
    max_count: Optional[int]
    os_disk_size_gb: int
    os_disk_type: str
    priority: str
    eviction_policy: Optional[str] = None
    spot_max_price: Optional[float] = None
    only_critical_addons_enabled: bool = False
    node_labels: Dict[str, str] = field(default_factory=dict)
    node_taints: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AutoScalerProfile:
    balance_similar_node_groups: bool = False
    expander: str = "random"
    max_graceful_termination_sec: str = "600"
    scale_down_delay_after_add: str = "10m"
    scale_down_unneeded: str = "10m"
    scale_down_unready: str = "20m"
    scale_down_utilization_threshold: str = "0.5"
    scan_interval: str = "10s"
    skip_nodes_with_system_pods: bool = True


@dataclass(frozen=True)
class NetworkSettings:
    network_plugin: str = "azure"  # azure, kubenet or none
    network_plugin_mode: str = "overlay"
    network_policy: str = "azure"
    pod_cidr: str = "10.244.0.0/16"
    service_cidr: str = "172.16.0.0/16"
    dns_service_ip: str = "172.16.0.10"
    outbound_type: str = "loadBalancer"


@dataclass(frozen=True)
class NetworkProfile:
    network_plugin: str
    network_plugin_mode: Optional[str]
    network_policy: Optional[str]
    pod_cidr: Optional[str]
    service_cidr: str
    dns_service_ip: str
    outbound_type: str
    load_balancer_sku: str = "standard"
    network_data_plane: Optional[str] = None


@dataclass(frozen=True)
class AuthorizationConfig:
    azure_rbac_enabled: bool = True
    admin_group_object_ids: Tuple[str, ...] = ()
    local_account_disabled: bool = False


@dataclass(frozen=True)
class ClusterConfig:
    node_pool_preset: str = "low"  # low, high or custom
    custom_system_vm_sku: str = "Standard_D2s_v5"
    custom_user_vm_sku: str = "Standard_D4s_v5"
    system_pool: NodePoolConfig = NodePoolConfig(os_disk_size_gb=64)
    user_pool: NodePoolConfig = NodePoolConfig(max_count=5)
    enable_auto_scaling: bool = True
    auto_scaler_profile: AutoScalerProfile = AutoScalerProfile()
    network: NetworkSettings = NetworkSettings()
    api_server_authorized_ip_ranges: Tuple[str, ...] = ()
    authorization: AuthorizationConfig = AuthorizationConfig()
    cluster_name: Optional[str] = None
    kubernetes_version: Optional[str] = None
    sku_tier: str = "Free"
    node_resource_group_name: Optional[str] = None


@dataclass(frozen=True)
class ClusterSpec:
    identity: DeploymentIdentity
    name: str
    dns_prefix: str
    kubernetes_version: Optional[str]
    sku_tier: str
    resource_group: ResourceGroupRef
    network: NetworkRef
    node_resource_group: str
    system_pool: NodePoolSpec
    user_pool: NodePoolSpec
    api_server_authorized_ip_ranges: Tuple[str, ...]
    network_profile: NetworkProfile
    auto_scaler_profile: Optional[AutoScalerProfile]
    authorization: AuthorizationConfig
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ClusterRef:
    id: str
    name: str


@dataclass(frozen=True)
class AksInfrastructureConfig:
    identity: DeploymentIdentity
    resource_group: ResourceGroupChoice
    network: NetworkChoice
    cluster: ClusterConfig
    tags: Dict[str, str] = field(default_factory=dict)
    strict_location: bool = False


@dataclass(frozen=True)
class RemoteStateConfig:
    resource_group_name: str
    storage_account_name: str
    container_name: str
    key: str


@dataclass(frozen=True)
class ProviderCredentials:
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    tenant_id: Optional[str] = None
    subscription_id: Optional[str] = None
