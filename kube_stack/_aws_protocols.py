"""Capability interfaces for the AWS services consulted by preflight checks.

Each protocol exposes only the boto3 client methods this package calls, using
boto3's keyword-argument request shape and dictionary responses. A real
``boto3.client("ec2")`` satisfies :class:`NetworkAPI` and
:class:`IdentityAPI` structurally; tests substitute small fake classes.
"""

from __future__ import annotations

from typing import Any, Protocol

type Response = dict[str, Any]


class NetworkAPI(Protocol):
    """EC2 VPC and subnet lookups."""

    def describe_vpcs(self, **kwargs: Any) -> Response: ...

    def describe_subnets(self, **kwargs: Any) -> Response: ...


class IdentityAPI(Protocol):
    """EC2 key pair lookups."""

    def describe_key_pairs(self, **kwargs: Any) -> Response: ...


class DNSAPI(Protocol):
    """Route 53 hosted zone and record set lookups."""

    def list_hosted_zones_by_name(self, **kwargs: Any) -> Response: ...

    def list_resource_record_sets(self, **kwargs: Any) -> Response: ...


class OrchestrationAPI(Protocol):
    """CloudFormation stack submission and event history."""

    def create_stack(self, **kwargs: Any) -> Response: ...

    def describe_stack_events(self, **kwargs: Any) -> Response: ...


class StackStatusAPI(Protocol):
    """CloudFormation stack status lookups used while polling."""

    def describe_stacks(self, **kwargs: Any) -> Response: ...


class TemplateValidationAPI(Protocol):
    """CloudFormation template validation."""

    def validate_template(self, **kwargs: Any) -> Response: ...


__all__ = [
    "DNSAPI",
    "IdentityAPI",
    "NetworkAPI",
    "OrchestrationAPI",
    "Response",
    "StackStatusAPI",
    "TemplateValidationAPI",
]
