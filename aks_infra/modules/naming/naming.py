"""
Naming module.

Derives the short region code and the canonical resource names shared by
every other module.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from aks_infra.errors import ValidationError
from aks_infra.iac_types import DeploymentIdentity, NamingContext
from aks_infra.utils.validation import require_non_empty, require_range

logger = logging.getLogger(__name__)

LOCATION_SHORT_CODES: Dict[str, str] = {
    "eastus": "eus",
    "westus": "wus",
    "centralus": "cus",
    "northcentralus": "ncu",
    "southcentralus": "scu",
    "northeurope": "neu",
    "westeurope": "weu",
    "uksouth": "uks",
    "ukwest": "ukw",
    "francecentral": "frc",
    "germanywestcentral": "gwc",
    "italynorth": "itn",
    "swedencentral": "swc",
    "switzerlandnorth": "szn",
    "norwayeast": "nwe",
    "eastasia": "eas",
    "southeastasia": "sea",
}


def resolve_location_short(location: str, strict: bool = False) -> str:
    """Return the short code for an Azure region.

    Unmapped regions fall back to their first three characters, lowercased.
    With ``strict`` set they are rejected instead.
    """
    short = LOCATION_SHORT_CODES.get(location)
    if short is not None:
        return short
    if strict:
        raise ValidationError(
            "location",
            location,
            allowed=sorted(LOCATION_SHORT_CODES),
            message="unknown Azure region",
        )
    fallback = location[:3].lower()
    logger.warning(
        "Region %r has no short code; falling back to %r", location, fallback
    )
    return fallback


def validate_identity(identity: DeploymentIdentity) -> DeploymentIdentity:
    require_non_empty("workload", identity.workload)
    require_non_empty("environment", identity.environment)
    if not identity.location:
        raise ValidationError("location", identity.location, message="must not be empty")
    require_range("instance", identity.instance, 1, 99)
    return identity


def resolve_naming(identity: DeploymentIdentity, strict: bool = False) -> NamingContext:
    validate_identity(identity)
    short = resolve_location_short(identity.location, strict=strict)
    suffix = f"{identity.workload}-{identity.environment}-{short}-{identity.instance:02d}"
    return NamingContext(location_short=short, suffix=suffix)


def resource_name(prefix: str, naming: NamingContext) -> str:
    """Build ``{prefix}-{workload}-{environment}-{region}-{NN}``."""
    return f"{prefix}-{naming.suffix}"


def pick_name(explicit: Optional[str], prefix: str, naming: NamingContext) -> str:
    """Use an explicit, non-empty name override, else the derived one."""
    if explicit and explicit.strip():
        return explicit
    return resource_name(prefix, naming)
