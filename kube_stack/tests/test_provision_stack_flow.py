"""Unit tests for the provisioning flow."""

from __future__ import annotations

import pytest

from kube_stack._aws_clients import AWSClients
from kube_stack._cluster_config import ClusterConfig, cluster_config_from_yaml
from kube_stack._preflight import run_preflight
from kube_stack._preflight_errors import KeyPairNotFoundError, SubnetCIDROverlapError
from kube_stack._provision_stack_flow import provision_stack
from kube_stack.tests._fakes import (
    MINIMAL_CONFIG_YAML,
    FakeCloudFormation,
    FakeEC2,
    FakeRoute53,
    FakeVPC,
)

NETWORK_YAML = """
vpcCIDR: 10.5.0.0/16
vpcId: vpc-xxx1
instanceCIDR: 10.5.11.0/24
controllerIP: 10.5.11.10
hostedZone: staging.core-os.net
stackTags:
  Owner: ops
"""


@pytest.fixture
def config() -> ClusterConfig:
    return cluster_config_from_yaml(MINIMAL_CONFIG_YAML + NETWORK_YAML)


def _make_clients(**cloudformation_overrides: object) -> AWSClients:
    return AWSClients(
        ec2=FakeEC2(
            vpcs={"vpc-xxx1": FakeVPC("10.5.0.0/16", ["10.5.1.0/24", "10.5.2.0/24"])},
            key_pairs={"test-key-name"},
        ),
        route53=FakeRoute53(zones={"staging_id": "staging.core-os.net."}),
        cloudformation=FakeCloudFormation(**cloudformation_overrides),
    )


def _no_sleep(_seconds: float) -> None:
    return None


def test_run_preflight_checks_every_service(config: ClusterConfig) -> None:
    clients = _make_clients()

    run_preflight(config, clients)

    assert [name for name, _ in clients.ec2.calls] == [
        "describe_vpcs",
        "describe_subnets",
        "describe_key_pairs",
    ]
    assert [name for name, _ in clients.route53.calls] == [
        "list_hosted_zones_by_name",
        "list_resource_record_sets",
    ]


def test_run_preflight_stops_at_first_failure(config: ClusterConfig) -> None:
    clients = _make_clients()
    clients.ec2.key_pairs.clear()

    with pytest.raises(KeyPairNotFoundError):
        run_preflight(config, clients)
    assert clients.route53.calls == [], "DNS validation must not run after a failure"


def test_dry_run_skips_stack_creation(config: ClusterConfig) -> None:
    clients = _make_clients()

    result = provision_stack(config, clients, "{}", dry_run=True, sleep=_no_sleep)

    assert result.success
    assert result.stack_id is None
    assert clients.cloudformation.calls == []


def test_successful_provisioning(
    config: ClusterConfig,
    capsys: pytest.CaptureFixture[str],
) -> None:
    clients = _make_clients(statuses=["CREATE_IN_PROGRESS", "CREATE_COMPLETE"])

    result = provision_stack(config, clients, "{}", poll_interval=1, sleep=_no_sleep)

    assert result.success
    assert result.stack_id == "arn:aws:cloudformation:stack/test-cluster-name/1"
    assert result.status is not None
    assert result.status.status == "CREATE_COMPLETE"
    (request,) = clients.cloudformation.created()
    assert request["Tags"] == [{"Key": "Owner", "Value": "ops"}]
    assert "Preflight checks passed." in capsys.readouterr().out


def test_failed_provisioning_reports_root_causes(
    config: ClusterConfig,
    capsys: pytest.CaptureFixture[str],
) -> None:
    clients = _make_clients(
        statuses=["CREATE_IN_PROGRESS", "CREATE_FAILED"],
        status_reason="The following resource(s) failed to create: [Controller].",
        events=[
            {
                "ResourceStatus": "CREATE_FAILED",
                "ResourceType": "AWS::EC2::Instance",
                "LogicalResourceId": "Controller",
                "ResourceStatusReason": "Insufficient capacity.",
            },
            {
                "ResourceStatus": "CREATE_FAILED",
                "ResourceType": "AWS::EC2::EIP",
                "LogicalResourceId": "ControllerEIP",
                "ResourceStatusReason": "Resource creation cancelled",
            },
        ],
    )

    result = provision_stack(config, clients, "{}", sleep=_no_sleep)

    assert not result.success
    assert result.failure_messages == (
        "CREATE_FAILED AWS::EC2::Instance Controller Insufficient capacity.",
    )
    err = capsys.readouterr().err
    assert "error: stack creation failed: CREATE_FAILED" in err
    assert "Insufficient capacity." in err
    assert "ControllerEIP" not in err


def test_preflight_failure_prevents_stack_creation(config: ClusterConfig) -> None:
    clients = _make_clients()
    clients.ec2.vpcs["vpc-xxx1"].subnet_cidrs.append("10.5.11.128/25")

    with pytest.raises(SubnetCIDROverlapError):
        provision_stack(config, clients, "{}", sleep=_no_sleep)
    assert clients.cloudformation.calls == []
