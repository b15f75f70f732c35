"""Pytest configuration and shared fixtures."""

import pytest

from aks_infra.catalog.inventory import InventoryCatalog
from aks_infra.iac_types import DeploymentIdentity, ResourceGroupRef
from aks_infra.modules.naming.naming import resolve_naming


@pytest.fixture
def base_vars():
    """Minimal flat variable map; everything else takes its default."""
    return {
        "workload": "myapp",
        "environment": "prod",
        "location": "italynorth",
        "instance": 1,
    }


@pytest.fixture
def identity():
    return DeploymentIdentity(
        workload="myapp", environment="prod", location="italynorth", instance=1
    )


@pytest.fixture
def naming(identity):
    return resolve_naming(identity)


@pytest.fixture
def catalog():
    """Catalog with a workload RG and a hub RG holding a shared VNet."""
    return InventoryCatalog(
        subscription_id="sub-1",
        resource_groups={"rg-x": "italynorth", "rg-hub": "westeurope"},
        virtual_networks={"rg-hub": ["vnet-hub"], "rg-x": ["vnet-local"]},
        subnets={
            "rg-hub": {"vnet-hub": ["snet-spoke"]},
            "rg-x": {"vnet-local": ["snet-local"]},
        },
    )


@pytest.fixture
def owned_rg():
    return ResourceGroupRef(
        name="rg-myapp-prod-itn-01",
        id="/subscriptions/sub-1/resourceGroups/rg-myapp-prod-itn-01",
        location="italynorth",
        created=True,
    )


@pytest.fixture
def write_tfvars(tmp_path):
    def _write(content, name="test.tfvars"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
