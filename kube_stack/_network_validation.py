"""Validate cluster placement against an existing VPC.

When ``vpcId`` is set the cluster subnet is carved out of a VPC that already
exists, so the declared CIDR layout must agree with what EC2 reports. Live
state is fetched on every call; nothing is cached because other operators
may change the VPC between runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError

from kube_stack._aws_protocols import NetworkAPI
from kube_stack._cidr import overlaps, parse_cidr
from kube_stack._cluster_config import ClusterConfig
from kube_stack._preflight_errors import (
    NetworkCIDRMismatchError,
    NetworkNotFoundError,
    PreflightError,
    SubnetCIDROverlapError,
)

logger = logging.getLogger(__name__)

_VPC_NOT_FOUND_CODES = frozenset({"InvalidVpcID.NotFound", "InvalidVpcID.Malformed"})


@dataclass(frozen=True, slots=True)
class ExistingNetworkState:
    """Live CIDR layout of a VPC.

    Attributes
    ----------
    vpc_id
        Identifier of the VPC.
    cidr
        Primary CIDR block exactly as EC2 reports it.
    subnet_cidrs
        CIDR blocks of every subnet in the VPC, in provider order.
    """

    vpc_id: str
    cidr: str
    subnet_cidrs: tuple[str, ...]


def _describe_vpc(network_api: NetworkAPI, vpc_id: str, region: str) -> dict[str, Any]:
    try:
        response = network_api.describe_vpcs(VpcIds=[vpc_id])
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "")
        if code in _VPC_NOT_FOUND_CODES:
            msg = f"could not find vpc {vpc_id} in region {region}"
            raise NetworkNotFoundError(msg) from exc
        raise

    vpcs = response.get("Vpcs") or []
    if not vpcs:
        msg = f"could not find vpc {vpc_id} in region {region}"
        raise NetworkNotFoundError(msg)
    if len(vpcs) > 1:
        msg = f"found {len(vpcs)} vpcs with id {vpc_id}; expected exactly one"
        raise PreflightError(msg)
    return vpcs[0]


def _iter_subnet_cidrs(network_api: NetworkAPI, vpc_id: str) -> Iterator[str]:
    """Yield subnet CIDR blocks for *vpc_id*, following pagination."""
    request: dict[str, Any] = {"Filters": [{"Name": "vpc-id", "Values": [vpc_id]}]}
    while True:
        response = network_api.describe_subnets(**request)
        for subnet in response.get("Subnets") or []:
            cidr = subnet.get("CidrBlock")
            if not cidr:
                logger.debug(
                    "Skipping subnet %s without an IPv4 CIDR block",
                    subnet.get("SubnetId", "<unknown>"),
                )
                continue
            yield cidr
        next_token = response.get("NextToken")
        if not next_token:
            return
        request["NextToken"] = next_token


def fetch_existing_network_state(
    network_api: NetworkAPI,
    vpc_id: str,
    *,
    region: str = "",
) -> ExistingNetworkState:
    """Fetch the VPC CIDR and its subnet CIDRs from EC2.

    Parameters
    ----------
    network_api : NetworkAPI
        EC2 client used for the lookups.
    vpc_id : str
        Identifier of the VPC to inspect.
    region : str, optional
        Region name, used only in error messages.

    Returns
    -------
    ExistingNetworkState
        Freshly fetched network layout.

    Raises
    ------
    NetworkNotFoundError
        If EC2 does not know *vpc_id*.
    """
    vpc = _describe_vpc(network_api, vpc_id, region)
    cidr = vpc.get("CidrBlock")
    if not cidr:
        msg = f"vpc {vpc_id} reported no IPv4 CIDR block"
        raise PreflightError(msg)
    subnet_cidrs = tuple(_iter_subnet_cidrs(network_api, vpc.get("VpcId") or vpc_id))
    return ExistingNetworkState(vpc_id=vpc_id, cidr=cidr, subnet_cidrs=subnet_cidrs)


def check_network_state(config: ClusterConfig, state: ExistingNetworkState) -> None:
    """Compare the declared CIDR layout with *state*.

    The declared ``vpcCIDR`` must match the live block character for
    character, and ``instanceCIDR`` must be disjoint from every existing
    subnet.

    Examples
    --------
    >>> config = ClusterConfig(
    ...     region="us-west-1",
    ...     availability_zone="us-west-1c",
    ...     cluster_name="demo",
    ...     key_name="ops",
    ...     external_dns_name="api.example.com",
    ...     kms_key_arn="arn:aws:kms:us-west-1:111111111111:key/demo",
    ...     vpc_cidr="10.5.0.0/16",
    ...     vpc_id="vpc-1",
    ...     instance_cidr="10.5.11.0/24",
    ...     controller_ip="10.5.11.10",
    ... )
    >>> state = ExistingNetworkState("vpc-1", "10.5.0.0/16", ("10.5.1.0/24",))
    >>> check_network_state(config, state)
    """
    if config.vpc_cidr != state.cidr:
        msg = (
            f"configured vpcCIDR ({config.vpc_cidr}) does not match actual "
            f"existing vpc cidr ({state.cidr})"
        )
        raise NetworkCIDRMismatchError(msg)

    instance_net = parse_cidr(config.instance_cidr)
    for subnet_cidr in state.subnet_cidrs:
        if overlaps(instance_net, subnet_cidr):
            msg = (
                f"instance cidr ({instance_net}) conflicts with existing "
                f"subnet cidr={subnet_cidr}"
            )
            raise SubnetCIDROverlapError(msg)


def validate_existing_vpc_state(config: ClusterConfig, network_api: NetworkAPI) -> None:
    """Validate the declared network against the live VPC, if one is reused.

    Parameters
    ----------
    config : ClusterConfig
        Declared cluster configuration.
    network_api : NetworkAPI
        EC2 client used for the lookups.

    Raises
    ------
    NetworkNotFoundError
        If ``vpcId`` does not exist.
    NetworkCIDRMismatchError
        If ``vpcCIDR`` differs from the live VPC CIDR.
    SubnetCIDROverlapError
        If ``instanceCIDR`` overlaps an existing subnet.
    """
    if not config.reuses_existing_vpc:
        logger.debug("No vpcId configured; a new VPC will be created")
        return

    logger.info("Validating existing VPC %s", config.vpc_id)
    state = fetch_existing_network_state(
        network_api,
        config.vpc_id,
        region=config.region,
    )
    check_network_state(config, state)


__all__ = [
    "ExistingNetworkState",
    "check_network_state",
    "fetch_existing_network_state",
    "validate_existing_vpc_state",
]
