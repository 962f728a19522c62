"""Exception hierarchy for cluster preflight checks and stack orchestration.

Preflight errors describe a mismatch between the declared cluster
configuration and the live state of AWS. They require a human to correct the
configuration, so callers should abort rather than retry. botocore errors are
not wrapped; use :func:`is_transport_error` to tell retryable transport
failures apart from provider rejections such as a stack name collision.

Exceptions
----------
PreflightError
ClusterConfigError
InvalidNetworkFormatError
NetworkNotFoundError
NetworkCIDRMismatchError
SubnetCIDROverlapError
KeyPairNotFoundError
HostedZoneNotFoundError
DNSRecordConflictError
StackOrchestrationError
StackNotFoundError
StackWaitTimeoutError

Examples
--------
>>> raise KeyPairNotFoundError("key pair 'ops' does not exist in us-west-1")
"""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError


class PreflightError(Exception):
    """Base error for configuration and preflight validation failures.

    Parameters
    ----------
    message
        Human-readable error message describing the mismatch.

    Examples
    --------
    >>> raise PreflightError("unexpected preflight failure")
    """


class ClusterConfigError(PreflightError):
    """Raised when the cluster configuration is malformed or inconsistent."""


class InvalidNetworkFormatError(ClusterConfigError):
    """Raised when a CIDR block or IP address cannot be parsed.

    Examples
    --------
    >>> raise InvalidNetworkFormatError("invalid CIDR block: '10.0.0.0/33'")
    """


class NetworkNotFoundError(PreflightError):
    """Raised when the referenced VPC does not exist in the target region."""


class NetworkCIDRMismatchError(PreflightError):
    """Raised when ``vpcCIDR`` differs from the live VPC CIDR block."""


class SubnetCIDROverlapError(PreflightError):
    """Raised when ``instanceCIDR`` overlaps a subnet already in the VPC."""


class KeyPairNotFoundError(PreflightError):
    """Raised when the configured EC2 key pair does not exist."""


class HostedZoneNotFoundError(PreflightError):
    """Raised when no Route 53 hosted zone matches ``hostedZone`` exactly."""


class DNSRecordConflictError(PreflightError):
    """Raised when ``externalDNSName`` already exists in the hosted zone."""


class StackOrchestrationError(Exception):
    """Base error for failures while driving a CloudFormation stack."""


class StackNotFoundError(StackOrchestrationError):
    """Raised when CloudFormation no longer reports the submitted stack."""


class StackWaitTimeoutError(StackOrchestrationError):
    """Raised when a stack does not reach a terminal status in time.

    Examples
    --------
    >>> raise StackWaitTimeoutError("stack 'prod' still CREATE_IN_PROGRESS")
    """


TRANSPORT_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "AuthFailure",
        "ExpiredToken",
        "ExpiredTokenException",
        "InternalError",
        "InternalFailure",
        "InvalidClientTokenId",
        "RequestExpired",
        "RequestLimitExceeded",
        "RequestThrottled",
        "RequestTimeout",
        "ServiceUnavailable",
        "SignatureDoesNotMatch",
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "UnauthorizedOperation",
        "UnrecognizedClientException",
    }
)


def is_transport_error(exc: BaseException) -> bool:
    """Return whether *exc* is a provider transport failure.

    Transport failures (network, credentials, throttling, provider outages)
    may be retried by the caller. A ``ClientError`` whose code is not one of
    :data:`TRANSPORT_ERROR_CODES` and whose HTTP status is below 500 is a
    rejection of the request itself, such as ``AlreadyExistsException`` from
    ``CreateStack``, and is not a transport failure.

    Examples
    --------
    >>> is_transport_error(KeyPairNotFoundError("missing"))
    False
    >>> is_transport_error(ClientError({"Error": {"Code": "Throttling"}}, "DescribeStacks"))
    True
    >>> is_transport_error(
    ...     ClientError({"Error": {"Code": "AlreadyExistsException"}}, "CreateStack")
    ... )
    False
    """
    if isinstance(exc, BotoCoreError):
        return True
    if not isinstance(exc, ClientError):
        return False
    if exc.response.get("Error", {}).get("Code", "") in TRANSPORT_ERROR_CODES:
        return True
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
    return status >= 500


__all__ = [
    "ClusterConfigError",
    "DNSRecordConflictError",
    "HostedZoneNotFoundError",
    "InvalidNetworkFormatError",
    "KeyPairNotFoundError",
    "NetworkCIDRMismatchError",
    "NetworkNotFoundError",
    "PreflightError",
    "StackNotFoundError",
    "StackOrchestrationError",
    "StackWaitTimeoutError",
    "SubnetCIDROverlapError",
    "TRANSPORT_ERROR_CODES",
    "is_transport_error",
]
