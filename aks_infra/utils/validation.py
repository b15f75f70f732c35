"""
Preflight validation helpers.

Pure, minimal functions to validate configuration values and required
environment variables, and to format actionable error messages for users.
"""

from __future__ import annotations

import ipaddress
from typing import Any, Iterable, List, Mapping

from aks_infra.errors import ConfigurationError, ValidationError


def missing_env(env: Mapping[str, str], keys: List[str]) -> List[str]:
    """Return the list of keys missing in the provided environment mapping."""
    return [k for k in keys if not env.get(k)]


def format_missing_env_message(missing: List[str]) -> str:
    """Format a friendly, actionable message for missing env vars (bash)."""
    if not missing:
        return ""
    lines: List[str] = []
    lines.append("Preflight check failed: missing environment variables")
    lines.append("")
    lines.append("Missing:")
    for k in missing:
        lines.append(f"  - {k}")
    lines.append("")
    lines.append("How to set them in bash (current session):")
    for k in missing:
        lines.append(f'  export {k}="<value>"')
    lines.append("")
    lines.append("Then re-run: cdktf synth")
    return "\n".join(lines)


def require_one_of(field: str, value: Any, allowed: Iterable[Any]) -> Any:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(field, value, allowed=allowed)
    return value


def require_range(field: str, value: int, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, value, message="must be an integer")
    if not low <= value <= high:
        raise ValidationError(field, value, message=f"must be within [{low}, {high}]")
    return value


def require_non_empty(field: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(field, "must be set to a non-empty value")
    return str(value)


def require_cidr(field: str, value: str) -> str:
    try:
        ipaddress.ip_network(value, strict=False)
    except (TypeError, ValueError) as ex:
        raise ValidationError(field, value, message="must be a CIDR block") from ex
    return value


def require_ip(field: str, value: str) -> str:
    try:
        ipaddress.ip_address(value)
    except (TypeError, ValueError) as ex:
        raise ValidationError(field, value, message="must be an IP address") from ex
    return value
