"""Validate that the configured EC2 key pair exists."""

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

from kube_stack._aws_protocols import IdentityAPI
from kube_stack._cluster_config import ClusterConfig
from kube_stack._preflight_errors import KeyPairNotFoundError

logger = logging.getLogger(__name__)

KEY_PAIR_NOT_FOUND_CODE = "InvalidKeyPair.NotFound"


def validate_key_pair(config: ClusterConfig, identity_api: IdentityAPI) -> None:
    """Confirm ``keyName`` names a key pair in the target region.

    Parameters
    ----------
    config : ClusterConfig
        Declared cluster configuration.
    identity_api : IdentityAPI
        EC2 client used for the lookup.

    Raises
    ------
    KeyPairNotFoundError
        If EC2 reports the key pair as missing.
    botocore.exceptions.ClientError
        For any other provider error, unchanged.
    """
    logger.info("Validating key pair %s in %s", config.key_name, config.region)
    try:
        response = identity_api.describe_key_pairs(KeyNames=[config.key_name])
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == KEY_PAIR_NOT_FOUND_CODE:
            msg = f"key pair {config.key_name!r} does not exist in {config.region}"
            raise KeyPairNotFoundError(msg) from exc
        raise

    names = {pair.get("KeyName") for pair in response.get("KeyPairs") or []}
    if config.key_name not in names:
        msg = f"key pair {config.key_name!r} does not exist in {config.region}"
        raise KeyPairNotFoundError(msg)


__all__ = ["KEY_PAIR_NOT_FOUND_CODE", "validate_key_pair"]
