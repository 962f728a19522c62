"""Unit tests for transport error classification."""

from __future__ import annotations

import pytest
from botocore.exceptions import EndpointConnectionError, NoCredentialsError

from kube_stack._preflight_errors import (
    DNSRecordConflictError,
    StackWaitTimeoutError,
    is_transport_error,
)
from kube_stack.tests._fakes import client_error


@pytest.mark.parametrize(
    "exc",
    [
        pytest.param(client_error("Throttling", "DescribeStacks"), id="throttling"),
        pytest.param(client_error("RequestLimitExceeded", "DescribeVpcs"), id="ec2-throttling"),
        pytest.param(client_error("ExpiredToken", "DescribeKeyPairs"), id="expired-token"),
        pytest.param(client_error("AuthFailure", "DescribeVpcs"), id="auth-failure"),
        pytest.param(
            client_error("SomethingOdd", "ListHostedZonesByName", status=503),
            id="server-error",
        ),
        pytest.param(
            EndpointConnectionError(endpoint_url="https://ec2.us-west-1.amazonaws.com"),
            id="connection",
        ),
        pytest.param(NoCredentialsError(), id="no-credentials"),
    ],
)
def test_transport_failures_are_retryable(exc: Exception) -> None:
    assert is_transport_error(exc), f"{exc!r} should be a transport failure"


@pytest.mark.parametrize(
    "exc",
    [
        pytest.param(client_error("AlreadyExistsException", "CreateStack"), id="name-collision"),
        pytest.param(client_error("ValidationError", "ValidateTemplate"), id="bad-template"),
        pytest.param(client_error("LimitExceededException", "CreateStack"), id="stack-quota"),
        pytest.param(
            client_error("InsufficientCapabilitiesException", "CreateStack"),
            id="capabilities",
        ),
        pytest.param(DNSRecordConflictError("exists"), id="domain-error"),
        pytest.param(StackWaitTimeoutError("slow"), id="stack-timeout"),
    ],
)
def test_rejections_are_not_transport_failures(exc: Exception) -> None:
    assert not is_transport_error(exc), f"{exc!r} must not be retried"
