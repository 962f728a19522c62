"""Run every preflight validator in order before a stack is submitted.

The validators are read-only and fetch fresh state on each call, so a passing
preflight is a point-in-time guarantee only.

Examples
--------
>>> run_preflight(config, clients)
"""

from __future__ import annotations

import logging

from kube_stack._aws_clients import AWSClients
from kube_stack._cluster_config import ClusterConfig
from kube_stack._dns_validation import validate_dns_config
from kube_stack._identity_validation import validate_key_pair
from kube_stack._network_validation import validate_existing_vpc_state

logger = logging.getLogger(__name__)


def run_preflight(config: ClusterConfig, clients: AWSClients) -> None:
    """Validate the network, key pair and DNS configuration.

    Parameters
    ----------
    config : ClusterConfig
        Declared cluster configuration.
    clients : AWSClients
        Clients for the configured region.

    Raises
    ------
    PreflightError
        The first validation failure; later validators do not run.
    botocore.exceptions.ClientError
        Transport failures from any lookup, unchanged.
    """
    validate_existing_vpc_state(config, clients.ec2)
    validate_key_pair(config, clients.ec2)
    validate_dns_config(config, clients.route53)
    logger.info("Preflight checks passed for cluster %s", config.cluster_name)


__all__ = ["run_preflight"]
