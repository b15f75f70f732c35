"""
Config loader for tfvars -> typed config used by the CDKTF stack.

Functional, pure helpers that parse the literal subset of .tfvars syntax used
by this repo (strings, numbers, booleans, null, lists and maps, on one or
several lines). No external dependencies.
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from aks_infra.errors import ConfigurationError, ValidationError
from aks_infra.iac_types import (
    AksInfrastructureConfig,
    AuthorizationConfig,
    AutoScalerProfile,
    ClusterConfig,
    CreateNetwork,
    CreateResourceGroup,
    DeploymentIdentity,
    ExistingNetwork,
    ExistingResourceGroup,
    NetworkChoice,
    NetworkSettings,
    NodePoolConfig,
    ProviderCredentials,
    ResourceGroupChoice,
)
from aks_infra.modules.aks.aks import validate_cluster_config
from aks_infra.modules.naming.naming import resolve_naming
from aks_infra.modules.network.network import validate_network_choice
from aks_infra.utils.validation import require_non_empty

logger = logging.getLogger(__name__)

DEFAULT_TFVARS_FILE = "vars/dev.tfvars"
REQUIRED_KEYS = ("workload", "environment")

DEFAULTS: Dict[str, Any] = {
    "location": "italynorth",
    "instance": 1,
    "strict_location": False,
    "create_resource_group": True,
    "resource_group_name": "",
    "existing_resource_group_name": "",
    "create_vnet": True,
    "vnet_name": "",
    "vnet_address_space": "10.0.0.0/16",
    "subnet_name": "",
    "subnet_address_prefix": "10.0.1.0/24",
    "existing_vnet_name": "",
    "existing_vnet_resource_group_name": "",
    "existing_subnet_name": "",
    "create_nsg": True,
    "nsg_name": "",
    "cluster_name": "",
    "kubernetes_version": None,
    "sku_tier": "Free",
    "node_resource_group_name": "",
    "node_pool_preset": "low",
    "custom_system_vm_sku": "Standard_D2s_v5",
    "custom_user_vm_sku": "Standard_D4s_v5",
    "enable_auto_scaling": True,
    "system_node_count": 1,
    "system_node_min_count": 1,
    "system_node_max_count": 3,
    "system_os_disk_size_gb": 64,
    "system_os_disk_type": "Managed",
    "user_node_count": 1,
    "user_node_min_count": 1,
    "user_node_max_count": 5,
    "user_os_disk_size_gb": 128,
    "user_os_disk_type": "Managed",
    "user_node_pool_priority": "Regular",
    "user_node_pool_eviction_policy": "Delete",
    "user_node_pool_spot_max_price": -1,
    "api_server_authorized_ip_ranges": [],
    "network_plugin": "azure",
    "network_plugin_mode": "overlay",
    "network_policy": "azure",
    "pod_cidr": "10.244.0.0/16",
    "service_cidr": "172.16.0.0/16",
    "dns_service_ip": "172.16.0.10",
    "outbound_type": "loadBalancer",
    "azure_rbac_enabled": True,
    "admin_group_object_ids": [],
    "local_account_disabled": False,
    "auto_scaler_profile": {},
    "tags": {},
}

_PUNCT = "[]{},=:"
_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


# tfvars literal parsing


def _strip_comment(line: str) -> str:
    in_string = False
    i = 0
    while i < len(line):
        ch = line[i]
        if in_string:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "#" or line.startswith("//", i):
            return line[:i]
        i += 1
    return line


def _depth(text: str) -> int:
    depth = 0
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
        i += 1
    return depth


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == "\n":
            tokens.append(("nl", ch))
            i += 1
        elif ch.isspace():
            i += 1
        elif ch == '"':
            i += 1
            out: List[str] = []
            while i < n and text[i] != '"':
                if text[i] == "\\" and i + 1 < n:
                    out.append(_ESCAPES.get(text[i + 1], text[i + 1]))
                    i += 2
                else:
                    out.append(text[i])
                    i += 1
            if i >= n:
                raise ValueError(f"Unterminated string: {text}")
            tokens.append(("str", "".join(out)))
            i += 1
        elif ch in _PUNCT:
            tokens.append(("punct", ch))
            i += 1
        else:
            j = i
            while j < n and not text[j].isspace() and text[j] not in _PUNCT + '"':
                j += 1
            tokens.append(("word", text[i:j]))
            i = j
    return tokens


def _scalar(word: str) -> Any:
    if word == "true":
        return True
    if word == "false":
        return False
    if word == "null":
        return None
    try:
        return int(word)
    except ValueError:
        pass
    try:
        return float(word)
    except ValueError as ex:
        raise ValueError(f"Unsupported tfvars literal: {word}") from ex


class _ValueParser:
    """Recursive-descent reader for a single tfvars value."""

    def __init__(self, text: str) -> None:
        self.tokens = _tokenize(text)
        self.pos = 0

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise ValueError("Unexpected end of tfvars value")
        self.pos += 1
        return tok

    def _skip(self, *kinds: Tuple[str, str]) -> None:
        while self._peek() in kinds:
            self.pos += 1

    def parse(self) -> Any:
        value = self._value()
        self._skip(("nl", "\n"))
        if self._peek() is not None:
            raise ValueError(f"Unexpected trailing content: {self._peek()[1]}")
        return value

    def _value(self) -> Any:
        self._skip(("nl", "\n"))
        kind, text = self._next()
        if kind == "str":
            return text
        if kind == "word":
            return _scalar(text)
        if text == "[":
            return self._list()
        if text == "{":
            return self._map()
        raise ValueError(f"Unexpected token in tfvars value: {text}")

    def _list(self) -> List[Any]:
        items: List[Any] = []
        while True:
            self._skip(("nl", "\n"), ("punct", ","))
            if self._peek() == ("punct", "]"):
                self.pos += 1
                return items
            items.append(self._value())

    def _map(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        while True:
            self._skip(("nl", "\n"), ("punct", ","))
            if self._peek() == ("punct", "}"):
                self.pos += 1
                return result
            kind, key = self._next()
            if kind not in ("str", "word"):
                raise ValueError(f"Invalid map key: {key}")
            _, sep = self._next()
            if sep not in ("=", ":"):
                raise ValueError(f"Expected '=' after map key {key}")
            result[key] = self._value()


def _parse_value(text: str) -> Any:
    return _ValueParser(text).parse()


def _parse_tfvars(content: str) -> Dict[str, Any]:
    """Small tfvars parser for ``key = value`` assignments.

    Values may span several lines while a list or map is open.
    ``#`` and ``//`` comments are ignored.
    """
    vars_map: Dict[str, Any] = {}
    key: Optional[str] = None
    buf: List[str] = []
    for raw in content.splitlines():
        line = _strip_comment(raw).strip()
        if key is None:
            if not line or "=" not in line:
                continue
            name, val = line.split("=", 1)
            key = name.strip()
            buf = [val.strip()]
        else:
            buf.append(line)
        text = "\n".join(buf)
        if _depth(text) <= 0:
            vars_map[key] = _parse_value(text)
            key = None
    if key is not None:
        raise ValueError(f"Unterminated value for tfvars key: {key}")
    return vars_map


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect TF_VAR_<name> overrides; lists and maps are parsed as tfvars."""
    overrides: Dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith("TF_VAR_"):
            continue
        value = raw.strip()
        overrides[name[len("TF_VAR_"):]] = (
            _parse_value(value) if value[:1] in ("[", "{") else raw
        )
    return overrides


# typed conversion


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if str(value).lower() in ("true", "1"):
        return True
    if str(value).lower() in ("false", "0"):
        return False
    raise ValidationError(key, value, message="must be a boolean")


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(key, value, message="must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(key, value, message="must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError) as ex:
        raise ValidationError(key, value, message="must be an integer") from ex


def _to_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(key, value, message="must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as ex:
        raise ValidationError(key, value, message="must be a number") from ex


def _to_str(key: str, value: Any) -> str:
    if isinstance(value, (list, dict)):
        raise ValidationError(key, value, message="must be a string")
    return "" if value is None else str(value)


def _to_str_list(key: str, value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        raise ValidationError(key, value, message="must be a list of strings")
    return tuple(_to_str(key, v) for v in value)


def _to_str_map(key: str, value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise ValidationError(key, value, message="must be a map")
    return {str(k): _to_str(f"{key}.{k}", v) for k, v in value.items()}


def _required(vars_map: Mapping[str, Any], key: str) -> str:
    if vars_map.get(key) is None:
        raise ConfigurationError(key, "missing required var")
    return require_non_empty(key, _to_str(key, vars_map[key]))


def _build_resource_group(v: Mapping[str, Any]) -> ResourceGroupChoice:
    if _to_bool("create_resource_group", v["create_resource_group"]):
        return CreateResourceGroup(
            name=_to_str("resource_group_name", v["resource_group_name"]) or None
        )
    return ExistingResourceGroup(
        name=require_non_empty(
            "existing_resource_group_name",
            _to_str("existing_resource_group_name", v["existing_resource_group_name"]),
        )
    )


def _build_network(v: Mapping[str, Any]) -> NetworkChoice:
    create_nsg = _to_bool("create_nsg", v["create_nsg"])
    if _to_bool("create_vnet", v["create_vnet"]):
        return CreateNetwork(
            address_space=_to_str("vnet_address_space", v["vnet_address_space"]),
            subnet_address_prefix=_to_str(
                "subnet_address_prefix", v["subnet_address_prefix"]
            ),
            create_nsg=create_nsg,
            vnet_name=_to_str("vnet_name", v["vnet_name"]) or None,
            subnet_name=_to_str("subnet_name", v["subnet_name"]) or None,
            nsg_name=_to_str("nsg_name", v["nsg_name"]) or None,
        )
    if create_nsg:
        logger.debug("create_nsg is ignored for an existing virtual network")
    return ExistingNetwork(
        vnet_name=require_non_empty(
            "existing_vnet_name", _to_str("existing_vnet_name", v["existing_vnet_name"])
        ),
        subnet_name=require_non_empty(
            "existing_subnet_name",
            _to_str("existing_subnet_name", v["existing_subnet_name"]),
        ),
        resource_group_name=_to_str(
            "existing_vnet_resource_group_name", v["existing_vnet_resource_group_name"]
        )
        or None,
    )


def _build_pool(v: Mapping[str, Any], prefix: str) -> NodePoolConfig:
    return NodePoolConfig(
        node_count=_to_int(f"{prefix}_node_count", v[f"{prefix}_node_count"]),
        min_count=_to_int(f"{prefix}_node_min_count", v[f"{prefix}_node_min_count"]),
        max_count=_to_int(f"{prefix}_node_max_count", v[f"{prefix}_node_max_count"]),
        os_disk_size_gb=_to_int(
            f"{prefix}_os_disk_size_gb", v[f"{prefix}_os_disk_size_gb"]
        ),
        os_disk_type=_to_str(f"{prefix}_os_disk_type", v[f"{prefix}_os_disk_type"]),
    )


def _build_auto_scaler_profile(value: Any) -> AutoScalerProfile:
    if not isinstance(value, dict):
        raise ValidationError("auto_scaler_profile", value, message="must be a map")
    known = {f.name: f for f in fields(AutoScalerProfile)}
    unknown = sorted(set(value) - set(known))
    if unknown:
        raise ValidationError(
            "auto_scaler_profile", unknown[0], allowed=sorted(known), message="unknown field"
        )
    kwargs: Dict[str, Any] = {}
    for name, raw in value.items():
        key = f"auto_scaler_profile.{name}"
        kwargs[name] = (
            _to_bool(key, raw) if isinstance(known[name].default, bool) else _to_str(key, raw)
        )
    return AutoScalerProfile(**kwargs)


def _build_cluster(v: Mapping[str, Any]) -> ClusterConfig:
    system = _build_pool(v, "system")
    user = _build_pool(v, "user")
    user = NodePoolConfig(
        node_count=user.node_count,
        min_count=user.min_count,
        max_count=user.max_count,
        os_disk_size_gb=user.os_disk_size_gb,
        os_disk_type=user.os_disk_type,
        priority=_to_str("user_node_pool_priority", v["user_node_pool_priority"]),
        eviction_policy=_to_str(
            "user_node_pool_eviction_policy", v["user_node_pool_eviction_policy"]
        ),
        spot_max_price=_to_float(
            "user_node_pool_spot_max_price", v["user_node_pool_spot_max_price"]
        ),
    )
    return ClusterConfig(
        node_pool_preset=_to_str("node_pool_preset", v["node_pool_preset"]),
        custom_system_vm_sku=_to_str("custom_system_vm_sku", v["custom_system_vm_sku"]),
        custom_user_vm_sku=_to_str("custom_user_vm_sku", v["custom_user_vm_sku"]),
        system_pool=system,
        user_pool=user,
        enable_auto_scaling=_to_bool("enable_auto_scaling", v["enable_auto_scaling"]),
        auto_scaler_profile=_build_auto_scaler_profile(v["auto_scaler_profile"]),
        network=NetworkSettings(
            network_plugin=_to_str("network_plugin", v["network_plugin"]),
            network_plugin_mode=_to_str("network_plugin_mode", v["network_plugin_mode"]),
            network_policy=_to_str("network_policy", v["network_policy"]),
            pod_cidr=_to_str("pod_cidr", v["pod_cidr"]),
            service_cidr=_to_str("service_cidr", v["service_cidr"]),
            dns_service_ip=_to_str("dns_service_ip", v["dns_service_ip"]),
            outbound_type=_to_str("outbound_type", v["outbound_type"]),
        ),
        api_server_authorized_ip_ranges=_to_str_list(
            "api_server_authorized_ip_ranges", v["api_server_authorized_ip_ranges"]
        ),
        authorization=AuthorizationConfig(
            azure_rbac_enabled=_to_bool("azure_rbac_enabled", v["azure_rbac_enabled"]),
            admin_group_object_ids=_to_str_list(
                "admin_group_object_ids", v["admin_group_object_ids"]
            ),
            local_account_disabled=_to_bool(
                "local_account_disabled", v["local_account_disabled"]
            ),
        ),
        cluster_name=_to_str("cluster_name", v["cluster_name"]) or None,
        kubernetes_version=_to_str("kubernetes_version", v["kubernetes_version"]) or None,
        sku_tier=_to_str("sku_tier", v["sku_tier"]),
        node_resource_group_name=_to_str(
            "node_resource_group_name", v["node_resource_group_name"]
        )
        or None,
    )


def build_config(vars_map: Mapping[str, Any]) -> AksInfrastructureConfig:
    """Build and fully validate the typed config from a flat variable map."""
    for key in sorted(set(vars_map) - set(DEFAULTS) - set(REQUIRED_KEYS)):
        logger.warning("Ignoring unknown variable: %s", key)

    v: Dict[str, Any] = dict(DEFAULTS)
    v.update({k: val for k, val in vars_map.items() if val is not None})

    identity = DeploymentIdentity(
        workload=_required(vars_map, "workload"),
        environment=_required(vars_map, "environment"),
        location=_to_str("location", v["location"]),
        instance=_to_int("instance", v["instance"]),
    )
    config = AksInfrastructureConfig(
        identity=identity,
        resource_group=_build_resource_group(v),
        network=_build_network(v),
        cluster=_build_cluster(v),
        tags=_to_str_map("tags", v["tags"]),
        strict_location=_to_bool("strict_location", v["strict_location"]),
    )
    # Fail fast: everything is checked before any resource is declared.
    resolve_naming(config.identity, strict=config.strict_location)
    validate_network_choice(config.network)
    validate_cluster_config(config.cluster)
    return config


def load_tfvars_config(
    *,
    repo_root: Path,
    tfvars_file: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AksInfrastructureConfig:
    env = os.environ if env is None else env
    # Use default if env var is missing or empty
    tfvars_file_env = env.get("TFVARS_FILE")
    tfvars_file = tfvars_file or (
        tfvars_file_env
        if (tfvars_file_env and tfvars_file_env.strip())
        else DEFAULT_TFVARS_FILE
    )
    vars_path = (repo_root / tfvars_file).resolve()
    if not vars_path.exists():
        raise FileNotFoundError(f"tfvars file not found: {vars_path}")

    content = vars_path.read_text(encoding="utf-8")
    vars_map = _parse_tfvars(content)
    vars_map.update(_env_overrides(env))
    return build_config(vars_map)


def load_credentials(env: Mapping[str, str]) -> ProviderCredentials:
    """Read the ARM_* service principal values; they are passed through as-is."""
    return ProviderCredentials(
        client_id=env.get("ARM_CLIENT_ID") or None,
        client_secret=env.get("ARM_CLIENT_SECRET") or None,
        tenant_id=env.get("ARM_TENANT_ID") or None,
        subscription_id=env.get("ARM_SUBSCRIPTION_ID") or None,
    )
