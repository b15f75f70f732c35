"""
Resolution errors.

Every error raised while resolving the desired state derives from
ResolutionError, itself a ValueError, so entrypoints can surface a short
message instead of a traceback.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple


class ResolutionError(ValueError):
    """Base class for configuration-time failures."""


class ConfigurationError(ResolutionError):
    """A field required by the selected branch is missing or empty."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class ValidationError(ResolutionError):
    """A value is out of range or not one of the allowed values."""

    def __init__(
        self,
        field: str,
        value: Any,
        allowed: Optional[Iterable[Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.field = field
        self.value = value
        self.allowed: Optional[Tuple[Any, ...]] = (
            tuple(allowed) if allowed is not None else None
        )
        detail = message or "invalid value"
        text = f"{field}: {detail} (got {value!r})"
        if self.allowed is not None:
            text += f"; allowed: {', '.join(repr(a) for a in self.allowed)}"
        super().__init__(text)


class ResourceNotFoundError(ResolutionError):
    """A referenced, pre-existing resource does not exist."""

    def __init__(
        self, kind: str, name: str, resource_group: Optional[str] = None
    ) -> None:
        self.kind = kind
        self.name = name
        self.resource_group = resource_group
        where = f" in resource group '{resource_group}'" if resource_group else ""
        super().__init__(f"{kind} '{name}' not found{where}")
