"""Construct the boto3 clients consulted during preflight and provisioning."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3


@dataclass(frozen=True, slots=True)
class AWSClients:
    """boto3 clients for one region.

    Attributes
    ----------
    ec2
        EC2 client; serves VPC, subnet and key pair lookups.
    route53
        Route 53 client; serves hosted zone and record lookups.
    cloudformation
        CloudFormation client; serves stack submission and polling.
    """

    ec2: Any
    route53: Any
    cloudformation: Any


def build_aws_clients(region: str, *, profile: str | None = None) -> AWSClients:
    """Create clients for *region* using the default credential chain.

    Parameters
    ----------
    region : str
        AWS region name, e.g. ``us-west-1``.
    profile : str | None, optional
        Named profile from the shared credentials file.

    Returns
    -------
    AWSClients
        Clients bound to *region*.

    Examples
    --------
    >>> clients = build_aws_clients("us-west-1")
    >>> clients.ec2.meta.region_name
    'us-west-1'
    """
    session = boto3.Session(profile_name=profile, region_name=region)
    return AWSClients(
        ec2=session.client("ec2"),
        route53=session.client("route53"),
        cloudformation=session.client("cloudformation"),
    )


__all__ = ["AWSClients", "build_aws_clients"]
