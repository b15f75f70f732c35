from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from aks_infra.catalog.inventory import DEFAULT_SUBSCRIPTION_ID, InventoryCatalog
from aks_infra.stacks.azure_stack import dumps, resolve_stack, synth_config_json
from aks_infra.utils.commands import CmdError, cdktf
from aks_infra.utils.config_loader import load_tfvars_config


def _catalog(args: argparse.Namespace) -> InventoryCatalog:
    subscription_id = args.subscription_id or os.getenv(
        "ARM_SUBSCRIPTION_ID", DEFAULT_SUBSCRIPTION_ID
    )
    if args.inventory:
        path = Path(args.inventory)
        if not path.exists():
            raise CmdError(f"Inventory file not found: {path}")
        return InventoryCatalog.from_file(path, subscription_id=subscription_id)
    return InventoryCatalog(subscription_id=subscription_id)


def _resolve(args: argparse.Namespace) -> Dict[str, Any]:
    cfg = load_tfvars_config(repo_root=Path.cwd(), tfvars_file=args.tfvars)
    catalog = _catalog(args)
    resolution = resolve_stack(cfg, catalog)
    return {
        "config": synth_config_json(cfg),
        "desired_state": catalog.declared,
        "outputs": resolution.outputs,
    }


def resolve(args: argparse.Namespace) -> None:
    print(dumps(_resolve(args)))


def outputs(args: argparse.Namespace) -> None:
    print(dumps(_resolve(args)["outputs"]))


def _project(args: argparse.Namespace) -> Path:
    project = Path(args.project_dir)
    if not project.exists():
        raise CmdError(f"Project directory not found: {project}")
    return project


def _cdktf_env(args: argparse.Namespace) -> Optional[Dict[str, str]]:
    """Child environment; --tfvars selects the variables file for the app."""
    if not args.tfvars:
        return None
    env = dict(os.environ)
    env["TFVARS_FILE"] = str(Path(args.tfvars).resolve())
    return env


def synth(args: argparse.Namespace) -> None:
    project = _project(args)
    print("Synthesizing CDKTF...")
    cdktf(project, ["synth"], env=_cdktf_env(args))
    print("CDKTF synth completed.")


def diff(args: argparse.Namespace) -> None:
    project = _project(args)
    env = _cdktf_env(args)
    cdktf(project, ["get"], env=env)  # ensure providers
    print("Planning CDKTF changes...")
    cdktf(project, ["diff"], env=env)


def deploy(args: argparse.Namespace) -> None:
    project = _project(args)
    env = _cdktf_env(args)
    print("Synthesizing CDKTF...")
    cdktf(project, ["get"], env=env)  # ensure providers
    cdktf(project, ["synth"], env=env)  # generate JSON tf
    print("Deploying CDKTF...")
    cdktf(project, ["deploy", "--auto-approve"], env=env)
    print("CDKTF deploy completed.")


def destroy(args: argparse.Namespace) -> None:
    if not args.auto_approve:
        raise CmdError("Refusing to destroy without --auto-approve")
    project = _project(args)
    print("Destroying CDKTF-managed infrastructure...")
    cdktf(project, ["destroy", "--auto-approve"], env=_cdktf_env(args))
    print("Destroy completed.")


def _add_resolve_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--tfvars", help="tfvars file (default: $TFVARS_FILE or vars/dev.tfvars)")
    p.add_argument(
        "--inventory", help="JSON file describing pre-existing resources to reference"
    )
    p.add_argument("--subscription-id", help="Subscription used to derive resource IDs")


def _add_project_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project-dir", default=".")
    p.add_argument("--tfvars", help="tfvars file passed to the app as TFVARS_FILE")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="aks-infra", description="AKS desired-state CLI"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    res = sub.add_parser("resolve", help="Resolve config and print the desired state")
    _add_resolve_args(res)
    res.set_defaults(func=resolve)

    out = sub.add_parser("outputs", help="Resolve config and print only the outputs")
    _add_resolve_args(out)
    out.set_defaults(func=outputs)

    syn = sub.add_parser("synth", help="Synthesize Terraform JSON via CDKTF")
    _add_project_args(syn)
    syn.set_defaults(func=synth)

    dif = sub.add_parser("diff", help="Show the Terraform plan via CDKTF")
    _add_project_args(dif)
    dif.set_defaults(func=diff)

    dep = sub.add_parser("deploy", help="Synthesize and deploy via CDKTF")
    _add_project_args(dep)
    dep.set_defaults(func=deploy)

    des = sub.add_parser("destroy", help="Destroy CDKTF-managed infrastructure")
    _add_project_args(des)
    des.add_argument("-y", "--auto-approve", action="store_true")
    des.set_defaults(func=destroy)

    args = parser.parse_args(argv)
    level = "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level)
    try:
        args.func(args)
    except (ValueError, CmdError, FileNotFoundError) as ex:
        # ResolutionError and tfvars syntax errors are ValueErrors
        print(f"Error: {ex}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
