import json

import pytest

from aks_infra import cli

TFVARS = """
workload    = "myapp"
environment = "dev"
location    = "westeurope"
"""


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ARM_SUBSCRIPTION_ID", raising=False)
    monkeypatch.delenv("TFVARS_FILE", raising=False)


def test_resolve_prints_desired_state(write_tfvars, capsys):
    path = write_tfvars(TFVARS)
    assert cli.main(["resolve", "--tfvars", str(path)]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["config"]["identity"]["workload"] == "myapp"
    assert data["desired_state"][0]["type"] == "azurerm_resource_group"
    assert data["desired_state"][0]["name"] == "rg-myapp-dev-weu-01"
    assert data["outputs"]["resource_group_id"].startswith(
        "/subscriptions/00000000-0000-0000-0000-000000000000/"
    )


def test_outputs_with_inventory(write_tfvars, tmp_path, capsys):
    path = write_tfvars(
        TFVARS
        + 'create_resource_group = false\nexisting_resource_group_name = "rg-shared"\n'
    )
    inventory = tmp_path / "inventory.json"
    inventory.write_text(json.dumps({"resource_groups": {"rg-shared": "westeurope"}}))

    rc = cli.main(
        [
            "outputs",
            "--tfvars",
            str(path),
            "--inventory",
            str(inventory),
            "--subscription-id",
            "sub-9",
        ]
    )
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["resource_group_id"] == "/subscriptions/sub-9/resourceGroups/rg-shared"
    assert out["deployment_summary"]["resource_group"]["created"] is False


def test_missing_reference_reports_error(write_tfvars, capsys):
    path = write_tfvars(
        TFVARS
        + 'create_resource_group = false\nexisting_resource_group_name = "rg-shared"\n'
    )
    assert cli.main(["outputs", "--tfvars", str(path)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "rg-shared" in err


def test_invalid_value_reports_error(write_tfvars, capsys):
    path = write_tfvars(TFVARS + 'sku_tier = "Gold"\n')
    assert cli.main(["resolve", "--tfvars", str(path)]) == 1
    assert "sku_tier" in capsys.readouterr().err


def test_missing_tfvars_file(capsys):
    assert cli.main(["resolve", "--tfvars", "nope.tfvars"]) == 1
    assert "tfvars file not found" in capsys.readouterr().err


def test_missing_inventory_file(write_tfvars, capsys):
    path = write_tfvars(TFVARS)
    assert cli.main(["resolve", "--tfvars", str(path), "--inventory", "none.json"]) == 1
    assert "Inventory file not found" in capsys.readouterr().err


@pytest.fixture
def cdktf_calls(monkeypatch):
    calls = []

    def fake_cdktf(project_dir, args, env=None):
        calls.append((args, env))
        return ""

    monkeypatch.setattr(cli, "cdktf", fake_cdktf)
    return calls


def test_deploy_runs_get_synth_and_deploy(cdktf_calls):
    assert cli.main(["deploy"]) == 0
    assert [args for args, _ in cdktf_calls] == [
        ["get"],
        ["synth"],
        ["deploy", "--auto-approve"],
    ]
    assert all(env is None for _, env in cdktf_calls)


def test_diff_passes_tfvars_to_the_app(cdktf_calls, write_tfvars):
    path = write_tfvars(TFVARS, name="prod.tfvars")
    assert cli.main(["diff", "--tfvars", "prod.tfvars"]) == 0

    assert [args for args, _ in cdktf_calls] == [["get"], ["diff"]]
    env = cdktf_calls[-1][1]
    assert env["TFVARS_FILE"] == str(path.resolve())


def test_destroy_requires_auto_approve(cdktf_calls, capsys):
    assert cli.main(["destroy"]) == 1
    assert "--auto-approve" in capsys.readouterr().err
    assert cdktf_calls == []


def test_destroy(cdktf_calls):
    assert cli.main(["destroy", "-y"]) == 0
    assert cdktf_calls[0][0] == ["destroy", "--auto-approve"]


def test_missing_project_dir(cdktf_calls, capsys):
    assert cli.main(["deploy", "--project-dir", "missing"]) == 1
    assert "Project directory not found" in capsys.readouterr().err
    assert cdktf_calls == []
