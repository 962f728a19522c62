"""Data models for CloudFormation stack orchestration.

These models give the orchestration helpers a small typed contract over the
dictionaries boto3 returns, tolerating fields the provider leaves out.

Examples
--------
>>> StackTag("Owner", "ops").to_request()
{'Key': 'Owner', 'Value': 'ops'}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

CREATE_FAILED = "CREATE_FAILED"
CREATE_COMPLETE = "CREATE_COMPLETE"


@dataclass(frozen=True, slots=True)
class StackTag:
    """A key/value tag attached to a stack.

    Attributes
    ----------
    key
        Tag key.
    value
        Tag value.
    """

    key: str
    value: str

    def to_request(self) -> dict[str, str]:
        """Return the tag in CloudFormation request shape."""
        return {"Key": self.key, "Value": self.value}


@dataclass(frozen=True, slots=True)
class StackEvent:
    """One resource event reported by CloudFormation.

    Attributes
    ----------
    resource_status
        Status code such as ``CREATE_FAILED``.
    resource_type
        Resource type such as ``AWS::EC2::Instance``.
    logical_resource_id
        Template logical id, when reported.
    resource_status_reason
        Provider explanation, when reported.

    Examples
    --------
    >>> StackEvent.from_response({"ResourceStatus": "CREATE_FAILED"}).resource_type
    ''
    """

    resource_status: str
    resource_type: str
    logical_resource_id: str | None = None
    resource_status_reason: str | None = None

    @classmethod
    def from_response(cls, event: Mapping[str, Any]) -> StackEvent:
        """Build an event from a ``DescribeStackEvents`` entry."""
        return cls(
            resource_status=event.get("ResourceStatus") or "",
            resource_type=event.get("ResourceType") or "",
            logical_resource_id=event.get("LogicalResourceId") or None,
            resource_status_reason=event.get("ResourceStatusReason") or None,
        )


@dataclass(frozen=True, slots=True)
class StackStatus:
    """Current status of a stack.

    Attributes
    ----------
    stack_id
        Provider-assigned stack identifier.
    status
        Stack status code such as ``CREATE_IN_PROGRESS``.
    reason
        Provider explanation for the status, when reported.

    Examples
    --------
    >>> StackStatus("arn:stack", "CREATE_IN_PROGRESS").is_terminal
    False
    """

    stack_id: str
    status: str
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Return whether no further automatic transitions are expected."""
        return not self.status.endswith("_IN_PROGRESS")

    @property
    def is_success(self) -> bool:
        """Return whether the stack finished creating successfully."""
        return self.status == CREATE_COMPLETE

    @property
    def is_failure(self) -> bool:
        """Return whether the stack reached a terminal non-success status."""
        return self.is_terminal and not self.is_success


__all__ = [
    "CREATE_COMPLETE",
    "CREATE_FAILED",
    "StackEvent",
    "StackStatus",
    "StackTag",
]
