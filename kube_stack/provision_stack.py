#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.13"
# dependencies = ["boto3", "cyclopts>=2.9", "pyyaml", "tenacity"]
# ///
"""Provision the cluster CloudFormation stack.

This script:
- loads and validates ``cluster.yaml``;
- runs the preflight checks against the existing VPC, key pair and DNS zone;
- submits the rendered stack template with the configured stack tags; and
- waits for the stack and prints root-cause failures if creation fails.
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
    EXIT_FAILURE,
    EXIT_OK,
    HANDLED_ERRORS,
    configure_logging,
    read_template,
    report_error,
)
from kube_stack._cluster_config import load_cluster_config
from kube_stack._provision_inputs import RawClusterInputs, resolve_cluster_inputs
from kube_stack._provision_stack_flow import provision_stack

app = App(help="Validate cluster configuration and create the CloudFormation stack.")


@app.default
def main(
    config: Annotated[Path | None, Parameter(help="Cluster YAML (env CLUSTER_CONFIG).")] = None,
    template: Annotated[
        Path | None, Parameter(help="Rendered stack template (env STACK_TEMPLATE).")
    ] = None,
    profile: Annotated[str | None, Parameter(help="AWS profile (env AWS_PROFILE).")] = None,
    poll_interval: Annotated[
        str | None, Parameter(help="Seconds between status polls (env STACK_POLL_INTERVAL).")
    ] = None,
    timeout: Annotated[
        str | None, Parameter(help="Seconds to wait for the stack (env STACK_TIMEOUT).")
    ] = None,
    dry_run: Annotated[
        bool | None, Parameter(help="Stop after preflight checks (env DRY_RUN).")
    ] = None,
    verbose: bool = False,
) -> int:
    """Provision the cluster stack.

    This command resolves inputs from CLI parameters and environment
    variables, runs the preflight checks, creates the stack and waits for it
    to finish.
    """
    configure_logging(verbose=verbose)
    inputs = resolve_cluster_inputs(
        RawClusterInputs(
            config_path=config,
            template_path=template,
            aws_profile=profile,
            poll_interval=poll_interval,
            wait_timeout=timeout,
            dry_run=None if dry_run is None else str(dry_run),
        ),
        require_template=True,
    )
    assert inputs.template_path is not None, "STACK_TEMPLATE is required"

    try:
        cluster = load_cluster_config(inputs.config_path)
        template_body = read_template(inputs.template_path)
        clients = build_aws_clients(cluster.region, profile=inputs.aws_profile)
        result = provision_stack(
            cluster,
            clients,
            template_body,
            dry_run=inputs.dry_run,
            poll_interval=inputs.poll_interval,
            wait_timeout=inputs.wait_timeout,
        )
    except HANDLED_ERRORS as exc:
        return report_error(exc)

    if not result.success:
        return EXIT_FAILURE

    print("\nCluster provisioning complete.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(app())
