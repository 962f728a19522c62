"""Submit the cluster stack to CloudFormation and explain failures.

Creation is the only side-effecting call in the package and is never retried
here: resubmitting with the same stack name fails with a naming collision,
which prevents duplicate provisioning. When a stack fails, CloudFormation
reports a failure for every resource whose creation was cancelled because a
sibling failed; :func:`stack_event_err_msgs` drops those so that only root
causes remain.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from kube_stack._aws_protocols import (
    OrchestrationAPI,
    StackStatusAPI,
    TemplateValidationAPI,
)
from kube_stack._cluster_config import ClusterConfig
from kube_stack._preflight_errors import StackNotFoundError
from kube_stack._stack_models import CREATE_FAILED, StackEvent, StackStatus, StackTag

logger = logging.getLogger(__name__)

CANCELLATION_REASON = "Resource creation cancelled"
ON_FAILURE = "DO_NOTHING"
CAPABILITIES = ("CAPABILITY_IAM",)


def build_stack_tags(stack_tags: Iterable[tuple[str, str]]) -> list[StackTag]:
    """Convert configured ``stackTags`` pairs into stack tags, one per entry.

    Examples
    --------
    >>> build_stack_tags(())
    []
    >>> build_stack_tags([("Owner", "ops")])
    [StackTag(key='Owner', value='ops')]
    """
    return [StackTag(key=key, value=value) for key, value in stack_tags]


def create_stack(
    config: ClusterConfig,
    orchestration_api: OrchestrationAPI,
    template_body: str,
) -> str:
    """Submit the rendered template as a new stack named after the cluster.

    Parameters
    ----------
    config : ClusterConfig
        Declared cluster configuration; supplies the stack name and tags.
    orchestration_api : OrchestrationAPI
        CloudFormation client.
    template_body : str
        Rendered CloudFormation template.

    Returns
    -------
    str
        The provider-assigned stack id.

    Raises
    ------
    botocore.exceptions.ClientError
        Provider rejections (template errors, name collisions, quotas),
        unchanged.
    """
    tags = [tag.to_request() for tag in build_stack_tags(config.stack_tags)]
    logger.info(
        "Creating stack %s in %s with %d tag(s)",
        config.cluster_name,
        config.region,
        len(tags),
    )
    response = orchestration_api.create_stack(
        StackName=config.cluster_name,
        TemplateBody=template_body,
        OnFailure=ON_FAILURE,
        Capabilities=list(CAPABILITIES),
        Tags=tags,
    )
    return response.get("StackId") or config.cluster_name


def is_cancellation_cascade(reason: str | None) -> bool:
    """Return whether *reason* marks a failure caused by a sibling's failure.

    Examples
    --------
    >>> is_cancellation_cascade("Resource creation cancelled")
    True
    >>> is_cancellation_cascade(None)
    False
    """
    return bool(reason) and CANCELLATION_REASON in reason


def _format_event(event: StackEvent) -> str:
    parts = (
        event.resource_status,
        event.resource_type,
        event.logical_resource_id,
        event.resource_status_reason,
    )
    return " ".join(part for part in parts if part)


def stack_event_err_msgs(events: Iterable[StackEvent]) -> list[str]:
    """Reduce stack events to one message per root-cause creation failure.

    Events keep their input order. Absent fields are left out of a message
    rather than rendered as blanks.

    Examples
    --------
    >>> stack_event_err_msgs([
    ...     StackEvent("CREATE_FAILED", "Computer", "test_comp", "BAD HD"),
    ...     StackEvent("CREATE_FAILED", "Computer", None, "Resource creation cancelled"),
    ... ])
    ['CREATE_FAILED Computer test_comp BAD HD']
    """
    return [
        _format_event(event)
        for event in events
        if event.resource_status == CREATE_FAILED
        and not is_cancellation_cascade(event.resource_status_reason)
    ]


def _iter_stack_events(
    orchestration_api: OrchestrationAPI,
    stack_handle: str,
) -> Iterator[StackEvent]:
    request: dict[str, Any] = {"StackName": stack_handle}
    while True:
        response = orchestration_api.describe_stack_events(**request)
        for event in response.get("StackEvents") or []:
            yield StackEvent.from_response(event)
        next_token = response.get("NextToken")
        if not next_token:
            return
        request["NextToken"] = next_token


def wait_and_describe_failure(
    orchestration_api: OrchestrationAPI,
    stack_handle: str,
) -> list[str]:
    """Fetch the event history of a failed stack and distil root causes.

    Call once, after polling has observed a terminal failure status.

    Returns
    -------
    list[str]
        Failure messages in the order CloudFormation returned the events.
    """
    events = list(_iter_stack_events(orchestration_api, stack_handle))
    logger.debug("Fetched %d events for stack %s", len(events), stack_handle)
    return stack_event_err_msgs(events)


def describe_stack_status(status_api: StackStatusAPI, stack_handle: str) -> StackStatus:
    """Return the current status of *stack_handle*.

    Raises
    ------
    StackNotFoundError
        If CloudFormation returns no stack for the handle.
    """
    response = status_api.describe_stacks(StackName=stack_handle)
    stacks = response.get("Stacks") or []
    if not stacks:
        msg = f"stack {stack_handle} not found"
        raise StackNotFoundError(msg)
    stack = stacks[0]
    return StackStatus(
        stack_id=stack.get("StackId") or stack_handle,
        status=stack.get("StackStatus") or "",
        reason=stack.get("StackStatusReason") or None,
    )


def validate_template(
    validation_api: TemplateValidationAPI,
    template_body: str,
) -> str:
    """Ask CloudFormation to validate *template_body*.

    Returns
    -------
    str
        The template description, or an empty string when it has none.

    Raises
    ------
    botocore.exceptions.ClientError
        If CloudFormation rejects the template.
    """
    response = validation_api.validate_template(TemplateBody=template_body)
    capabilities = response.get("Capabilities") or []
    if capabilities:
        logger.info("Template requires capabilities: %s", ", ".join(capabilities))
    return response.get("Description") or ""


__all__ = [
    "CANCELLATION_REASON",
    "build_stack_tags",
    "create_stack",
    "describe_stack_status",
    "is_cancellation_cascade",
    "stack_event_err_msgs",
    "validate_template",
    "wait_and_describe_failure",
]
