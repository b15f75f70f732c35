import pytest

from aks_infra.errors import ConfigurationError, ValidationError
from aks_infra.iac_types import DeploymentIdentity
from aks_infra.modules.naming.naming import (
    LOCATION_SHORT_CODES,
    pick_name,
    resolve_location_short,
    resolve_naming,
    resource_name,
)


@pytest.mark.parametrize(
    "location,expected",
    [
        ("eastus", "eus"),
        ("westus", "wus"),
        ("centralus", "cus"),
        ("northcentralus", "ncu"),
        ("southcentralus", "scu"),
        ("northeurope", "neu"),
        ("westeurope", "weu"),
        ("uksouth", "uks"),
        ("ukwest", "ukw"),
        ("francecentral", "frc"),
        ("germanywestcentral", "gwc"),
        ("italynorth", "itn"),
        ("swedencentral", "swc"),
        ("switzerlandnorth", "szn"),
        ("norwayeast", "nwe"),
        ("eastasia", "eas"),
        ("southeastasia", "sea"),
    ],
)
def test_mapped_regions(location, expected):
    assert resolve_location_short(location) == expected


def test_table_has_seventeen_regions():
    assert len(LOCATION_SHORT_CODES) == 17


@pytest.mark.parametrize(
    "location,expected",
    [("brazilsouth", "bra"), ("KoreaCentral", "kor"), ("jp", "jp")],
)
def test_unmapped_region_falls_back_to_prefix(location, expected, caplog):
    assert resolve_location_short(location) == expected
    assert "no short code" in caplog.text


def test_unmapped_region_rejected_in_strict_mode():
    with pytest.raises(ValidationError) as exc:
        resolve_location_short("brazilsouth", strict=True)
    assert exc.value.field == "location"
    assert "italynorth" in exc.value.allowed


@pytest.mark.parametrize("instance,suffix", [(1, "-01"), (7, "-07"), (42, "-42"), (99, "-99")])
def test_instance_is_zero_padded(instance, suffix):
    naming = resolve_naming(DeploymentIdentity("myapp", "prod", "italynorth", instance))
    assert naming.suffix == f"myapp-prod-itn{suffix}"
    assert resource_name("rg", naming).endswith(suffix)


@pytest.mark.parametrize("instance", [0, 100, -1])
def test_instance_out_of_range(instance):
    with pytest.raises(ValidationError) as exc:
        resolve_naming(DeploymentIdentity("myapp", "prod", "italynorth", instance))
    assert exc.value.field == "instance"


def test_missing_workload():
    with pytest.raises(ConfigurationError):
        resolve_naming(DeploymentIdentity("", "prod", "italynorth", 1))


def test_empty_location_is_rejected():
    with pytest.raises(ValidationError):
        resolve_naming(DeploymentIdentity("myapp", "prod", "", 1))


def test_pick_name_prefers_override(naming):
    assert pick_name("custom-name", "vnet", naming) == "custom-name"
    assert pick_name("", "vnet", naming) == "vnet-myapp-prod-itn-01"
    assert pick_name(None, "aks", naming) == "aks-myapp-prod-itn-01"
