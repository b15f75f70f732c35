import pytest

from aks_infra.errors import ConfigurationError, ResourceNotFoundError
from aks_infra.iac_types import CreateResourceGroup, ExistingResourceGroup
from aks_infra.modules.resource_group.resource_group import resolve_resource_group


def _resolve(choice, identity, naming, catalog):
    return resolve_resource_group(
        choice=choice, identity=identity, naming=naming, catalog=catalog, tags={}
    )


def test_create_uses_derived_name(identity, naming, catalog):
    rg = _resolve(CreateResourceGroup(), identity, naming, catalog)

    assert rg.name == "rg-myapp-prod-itn-01"
    assert rg.location == "italynorth"
    assert rg.created is True
    assert rg.id == "/subscriptions/sub-1/resourceGroups/rg-myapp-prod-itn-01"
    assert [r["type"] for r in catalog.declared] == ["azurerm_resource_group"]


def test_create_with_empty_override_uses_derived_name(identity, naming, catalog):
    rg = _resolve(CreateResourceGroup(name=""), identity, naming, catalog)
    assert rg.name == "rg-myapp-prod-itn-01"


def test_create_with_explicit_name(identity, naming, catalog):
    rg = _resolve(CreateResourceGroup(name="rg-explicit"), identity, naming, catalog)
    assert rg.name == "rg-explicit"
    assert catalog.declared[0]["name"] == "rg-explicit"


def test_existing_is_referenced_without_creation(identity, naming, catalog):
    rg = _resolve(ExistingResourceGroup(name="rg-x"), identity, naming, catalog)

    assert rg.name == "rg-x"
    assert rg.created is False
    assert catalog.declared == []


def test_both_branches_share_the_same_shape(identity, naming, catalog):
    created = _resolve(CreateResourceGroup(), identity, naming, catalog)
    existing = _resolve(ExistingResourceGroup(name="rg-x"), identity, naming, catalog)
    assert type(created) is type(existing)


def test_existing_requires_a_name(identity, naming, catalog):
    with pytest.raises(ConfigurationError) as exc:
        _resolve(ExistingResourceGroup(name=""), identity, naming, catalog)
    assert exc.value.field == "existing_resource_group_name"


def test_missing_existing_group_propagates(identity, naming, catalog):
    with pytest.raises(ResourceNotFoundError) as exc:
        _resolve(ExistingResourceGroup(name="rg-missing"), identity, naming, catalog)
    assert exc.value.name == "rg-missing"
    assert catalog.declared == []


def test_unknown_choice_is_rejected(identity, naming, catalog):
    with pytest.raises(ConfigurationError):
        _resolve("rg-x", identity, naming, catalog)
