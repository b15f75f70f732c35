import pytest

from aks_infra.errors import ConfigurationError, ResourceNotFoundError, ValidationError
from aks_infra.iac_types import CreateNetwork, ExistingNetwork, ResourceGroupRef
from aks_infra.modules.network.network import resolve_network, validate_network_choice
from aks_infra.utils.config_loader import build_config


def _resolve(choice, rg, identity, naming, catalog):
    return resolve_network(
        choice=choice,
        resource_group=rg,
        identity=identity,
        naming=naming,
        catalog=catalog,
        tags={"Environment": "prod"},
    )


def test_create_with_nsg(owned_rg, identity, naming, catalog):
    net = _resolve(CreateNetwork(create_nsg=True), owned_rg, identity, naming, catalog)

    assert net.created is True
    assert net.vnet_name == "vnet-myapp-prod-itn-01"
    assert net.subnet_name == "snet-aks-myapp-prod-itn-01"
    assert net.vnet_resource_group_name == "rg-myapp-prod-itn-01"
    assert net.nsg_name == "nsg-aks-myapp-prod-itn-01"
    assert net.nsg_id.endswith("/networkSecurityGroups/nsg-aks-myapp-prod-itn-01")
    assert net.subnet_id.endswith(
        "/virtualNetworks/vnet-myapp-prod-itn-01/subnets/snet-aks-myapp-prod-itn-01"
    )
    assert [r["type"] for r in catalog.declared] == [
        "azurerm_virtual_network",
        "azurerm_subnet",
        "azurerm_network_security_group",
        "azurerm_subnet_network_security_group_association",
    ]
    assoc = catalog.declared[-1]["properties"]
    assert assoc == {"subnet_id": net.subnet_id, "network_security_group_id": net.nsg_id}


def test_create_without_nsg(owned_rg, identity, naming, catalog):
    net = _resolve(CreateNetwork(create_nsg=False), owned_rg, identity, naming, catalog)

    assert net.nsg_id is None
    assert net.nsg_name is None
    assert [r["type"] for r in catalog.declared] == [
        "azurerm_virtual_network",
        "azurerm_subnet",
    ]


def test_create_uses_supplied_prefixes_and_names(owned_rg, identity, naming, catalog):
    choice = CreateNetwork(
        address_space="10.10.0.0/16",
        subnet_address_prefix="10.10.4.0/22",
        vnet_name="vnet-custom",
        subnet_name="snet-custom",
    )
    net = _resolve(choice, owned_rg, identity, naming, catalog)

    vnet, subnet = catalog.declared[0], catalog.declared[1]
    assert vnet["properties"]["address_space"] == ["10.10.0.0/16"]
    assert subnet["properties"]["address_prefixes"] == ["10.10.4.0/22"]
    assert subnet["properties"]["virtual_network_name"] == "vnet-custom"
    assert net.vnet_name == "vnet-custom"
    assert net.subnet_name == "snet-custom"


def test_reference_hub_network_in_other_group(owned_rg, identity, naming, catalog):
    choice = ExistingNetwork(
        vnet_name="vnet-hub", subnet_name="snet-spoke", resource_group_name="rg-hub"
    )
    net = _resolve(choice, owned_rg, identity, naming, catalog)

    assert net.created is False
    assert net.vnet_resource_group_name == "rg-hub"
    assert net.subnet_id == (
        "/subscriptions/sub-1/resourceGroups/rg-hub/providers/Microsoft.Network"
        "/virtualNetworks/vnet-hub/subnets/snet-spoke"
    )
    assert net.nsg_id is None
    assert catalog.declared == []


def test_reference_defaults_to_deployment_group(identity, naming, catalog):
    rg = ResourceGroupRef(name="rg-x", id="rg-x-id", location="italynorth", created=False)
    net = _resolve(
        ExistingNetwork(vnet_name="vnet-local", subnet_name="snet-local"),
        rg,
        identity,
        naming,
        catalog,
    )
    assert net.vnet_resource_group_name == "rg-x"


def test_missing_vnet_propagates(owned_rg, identity, naming, catalog):
    choice = ExistingNetwork(
        vnet_name="vnet-nope", subnet_name="snet-spoke", resource_group_name="rg-hub"
    )
    with pytest.raises(ResourceNotFoundError) as exc:
        _resolve(choice, owned_rg, identity, naming, catalog)
    assert exc.value.kind == "virtual network"
    assert exc.value.resource_group == "rg-hub"


def test_missing_subnet_propagates(owned_rg, identity, naming, catalog):
    choice = ExistingNetwork(
        vnet_name="vnet-hub", subnet_name="snet-nope", resource_group_name="rg-hub"
    )
    with pytest.raises(ResourceNotFoundError) as exc:
        _resolve(choice, owned_rg, identity, naming, catalog)
    assert exc.value.kind == "subnet"
    assert catalog.declared == []


def test_reference_requires_names(owned_rg, identity, naming, catalog):
    with pytest.raises(ConfigurationError) as exc:
        _resolve(ExistingNetwork(vnet_name="", subnet_name="x"), owned_rg, identity, naming, catalog)
    assert exc.value.field == "existing_vnet_name"


def test_invalid_address_space(owned_rg, identity, naming, catalog):
    with pytest.raises(ValidationError) as exc:
        _resolve(CreateNetwork(address_space="not-a-cidr"), owned_rg, identity, naming, catalog)
    assert exc.value.field == "vnet_address_space"
    assert catalog.declared == []


@pytest.mark.parametrize(
    "create_vnet,create_nsg,has_nsg",
    [(True, True, True), (True, False, False), (False, True, False), (False, False, False)],
)
def test_nsg_only_for_created_network(
    base_vars, owned_rg, identity, naming, catalog, create_vnet, create_nsg, has_nsg
):
    base_vars.update(
        {
            "create_vnet": create_vnet,
            "create_nsg": create_nsg,
            "existing_vnet_name": "vnet-hub",
            "existing_subnet_name": "snet-spoke",
            "existing_vnet_resource_group_name": "rg-hub",
        }
    )
    cfg = build_config(base_vars)
    net = _resolve(cfg.network, owned_rg, identity, naming, catalog)

    assert (net.nsg_id is not None) is has_nsg


@pytest.mark.parametrize(
    "vnet,subnet",
    [("10.0.0.0/16", "10.1.0.0/24"), ("10.0.0.0/16", "10.0.0.0/8"), ("10.0.0.0/16", "fd00::/64")],
)
def test_subnet_must_lie_within_vnet(vnet, subnet):
    with pytest.raises(ValidationError) as exc:
        validate_network_choice(CreateNetwork(address_space=vnet, subnet_address_prefix=subnet))
    assert exc.value.field == "subnet_address_prefix"


def test_valid_choices_pass_through():
    create = CreateNetwork(address_space="10.10.0.0/16", subnet_address_prefix="10.10.4.0/22")
    existing = ExistingNetwork(vnet_name="vnet-hub", subnet_name="snet-spoke")
    assert validate_network_choice(create) is create
    assert validate_network_choice(existing) is existing
