"""Validate, submit and monitor the cluster CloudFormation stack.

This module runs the preflight validators, creates the stack, polls it to a
terminal status and, on failure, distils the stack events into root-cause
messages. Use it after inputs and the cluster configuration have been
resolved (typically via ``kube_stack/provision_stack.py``).

Prerequisites
-------------
AWS credentials for the configured region must be available to boto3, and
the rendered CloudFormation template must already exist on disk.

Examples
--------
>>> clients = build_aws_clients(config.region)
>>> result = provision_stack(config, clients, template_body)
>>> result.success
True

Side Effects
------------
Creates a CloudFormation stack named after the cluster unless ``dry_run`` is
set. Nothing is rolled back on failure (``OnFailure=DO_NOTHING``) so the
failed resources remain available for inspection.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from kube_stack._aws_clients import AWSClients
from kube_stack._cluster_config import ClusterConfig
from kube_stack._preflight import run_preflight
from kube_stack._stack_models import StackStatus
from kube_stack._stack_orchestration import create_stack, wait_and_describe_failure
from kube_stack._stack_polling import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_WAIT_TIMEOUT,
    wait_for_stack,
)


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Outcome of a provisioning run.

    Attributes
    ----------
    success
        Whether the stack reached ``CREATE_COMPLETE`` (or the run was a dry
        run that passed preflight).
    stack_id
        Provider-assigned stack id; ``None`` for dry runs.
    status
        Terminal stack status; ``None`` for dry runs.
    failure_messages
        Root-cause messages distilled from the stack events.

    Examples
    --------
    >>> ProvisionResult(success=True).failure_messages
    ()
    """

    success: bool
    stack_id: str | None = None
    status: StackStatus | None = None
    failure_messages: tuple[str, ...] = field(default_factory=tuple)


def provision_stack(
    config: ClusterConfig,
    clients: AWSClients,
    template_body: str,
    *,
    dry_run: bool = False,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
) -> ProvisionResult:
    """Run preflight checks, then create the stack and wait for it.

    Parameters
    ----------
    config : ClusterConfig
        Validated cluster configuration.
    clients : AWSClients
        Clients for the configured region.
    template_body : str
        Rendered CloudFormation template.
    dry_run : bool, optional
        Stop after the preflight checks.
    poll_interval : float, optional
        Seconds between stack status polls.
    wait_timeout : float, optional
        Overall deadline for the stack to reach a terminal status.
    sleep : Callable[[float], None], optional
        Sleep function used while polling.

    Returns
    -------
    ProvisionResult
        Outcome of the run.

    Raises
    ------
    PreflightError
        If any validator fails; no stack is created.
    StackOrchestrationError
        If the stack disappears or does not settle before the deadline.
    botocore.exceptions.ClientError
        Transport failures and stack submission rejections, unchanged.
    """
    print(f"Provisioning cluster '{config.cluster_name}' in {config.region}...")
    print(f"  VPC: {config.vpc_id or 'new'}")
    print(f"  Stack tags: {len(config.stack_tags)}")
    print(f"  Dry run: {dry_run}")

    print("\n--- Running preflight checks ---")
    run_preflight(config, clients)
    print("Preflight checks passed.")

    if dry_run:
        print("\nDry run mode - skipping stack creation")
        return ProvisionResult(success=True)

    print("\n--- Creating stack ---")
    stack_id = create_stack(config, clients.cloudformation, template_body)
    print(f"Stack submitted: {stack_id}")

    print("\n--- Waiting for stack ---")
    status = wait_for_stack(
        clients.cloudformation,
        stack_id,
        interval=poll_interval,
        timeout=wait_timeout,
        sleep=sleep,
    )
    if status.is_success:
        print(f"Stack {stack_id} reached {status.status}")
        return ProvisionResult(success=True, stack_id=stack_id, status=status)

    messages = wait_and_describe_failure(clients.cloudformation, stack_id)
    detail = f"{status.status}: {status.reason}" if status.reason else status.status
    print(f"error: stack creation failed: {detail}", file=sys.stderr)
    if messages:
        print("\nPrinting the most recent failed stack events:", file=sys.stderr)
        for message in messages:
            print(message, file=sys.stderr)
    return ProvisionResult(
        success=False,
        stack_id=stack_id,
        status=status,
        failure_messages=tuple(messages),
    )


__all__ = ["ProvisionResult", "provision_stack"]
