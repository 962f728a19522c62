#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.13"
# dependencies = ["boto3", "cyclopts>=2.9", "pyyaml", "tenacity"]
# ///
"""Validate a cluster configuration against live AWS state.

This script:
- loads and statically validates ``cluster.yaml``;
- checks an existing VPC, the EC2 key pair, and the Route 53 hosted zone;
- optionally asks CloudFormation to validate the rendered stack template.

No resources are created.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from kube_stack._aws_clients import build_aws_clients
from kube_stack._cli_support import (
    EXIT_OK,
    HANDLED_ERRORS,
    configure_logging,
    read_template,
    report_error,
)
from kube_stack._cluster_config import load_cluster_config
from kube_stack._preflight import run_preflight
from kube_stack._provision_inputs import RawClusterInputs, resolve_cluster_inputs
from kube_stack._stack_orchestration import validate_template

app = App(help="Validate cluster configuration against live AWS state.")


@app.default
def main(
    config: Annotated[Path | None, Parameter(help="Cluster YAML (env CLUSTER_CONFIG).")] = None,
    template: Annotated[
        Path | None, Parameter(help="Rendered stack template to validate (env STACK_TEMPLATE).")
    ] = None,
    profile: Annotated[str | None, Parameter(help="AWS profile (env AWS_PROFILE).")] = None,
    verbose: bool = False,
) -> int:
    """Validate the cluster configuration and, when given, the stack template."""
    configure_logging(verbose=verbose)
    inputs = resolve_cluster_inputs(
        RawClusterInputs(config_path=config, template_path=template, aws_profile=profile)
    )

    try:
        cluster = load_cluster_config(inputs.config_path)
        clients = build_aws_clients(cluster.region, profile=inputs.aws_profile)
        print(f"Validating cluster '{cluster.cluster_name}' in {cluster.region}...")
        run_preflight(cluster, clients)
        if inputs.template_path is not None:
            template_body = read_template(inputs.template_path)
            description = validate_template(clients.cloudformation, template_body)
            print(f"Stack template is valid: {description or inputs.template_path}")
    except HANDLED_ERRORS as exc:
        return report_error(exc)

    print("Cluster configuration is valid.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(app())
