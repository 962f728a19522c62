"""Unit tests for the provision_stack and validate_cluster entry points."""

from __future__ import annotations

from pathlib import Path

import pytest

from kube_stack import provision_stack as provision_cli
from kube_stack import validate_cluster as validate_cli
from kube_stack._aws_clients import AWSClients
from kube_stack.tests._fakes import (
    MINIMAL_CONFIG_YAML,
    FakeCloudFormation,
    FakeEC2,
    FakeRoute53,
    client_error,
)

ENV_KEYS = (
    "CLUSTER_CONFIG",
    "STACK_TEMPLATE",
    "AWS_PROFILE",
    "STACK_POLL_INTERVAL",
    "STACK_TIMEOUT",
    "DRY_RUN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cluster_files(tmp_path: Path) -> tuple[Path, Path]:
    config_path = tmp_path / "cluster.yaml"
    config_path.write_text(MINIMAL_CONFIG_YAML, encoding="utf-8")
    template_path = tmp_path / "stack.json"
    template_path.write_text('{"Resources": {}}', encoding="utf-8")
    return config_path, template_path


def _install_clients(
    monkeypatch: pytest.MonkeyPatch,
    module: object,
    clients: AWSClients,
) -> list[tuple[str, str | None]]:
    requested: list[tuple[str, str | None]] = []

    def fake_build(region: str, *, profile: str | None = None) -> AWSClients:
        requested.append((region, profile))
        return clients

    monkeypatch.setattr(module, "build_aws_clients", fake_build)
    return requested


def _make_clients(ec2: FakeEC2 | None = None) -> AWSClients:
    return AWSClients(
        ec2=ec2 or FakeEC2(key_pairs={"test-key-name"}),
        route53=FakeRoute53(),
        cloudformation=FakeCloudFormation(),
    )


def test_provision_main_creates_stack(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
) -> None:
    config_path, template_path = cluster_files
    clients = _make_clients()
    requested = _install_clients(monkeypatch, provision_cli, clients)

    exit_code = provision_cli.main(config=config_path, template=template_path, profile="ops")

    assert exit_code == 0
    assert requested == [("us-west-1", "ops")]
    (request,) = clients.cloudformation.created()
    assert request["TemplateBody"] == '{"Resources": {}}'


def test_provision_main_dry_run_from_env(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
) -> None:
    config_path, template_path = cluster_files
    monkeypatch.setenv("CLUSTER_CONFIG", str(config_path))
    monkeypatch.setenv("STACK_TEMPLATE", str(template_path))
    monkeypatch.setenv("DRY_RUN", "true")
    clients = _make_clients()
    _install_clients(monkeypatch, provision_cli, clients)

    assert provision_cli.main() == 0
    assert clients.cloudformation.calls == []


def test_provision_main_reports_preflight_failure(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_path, template_path = cluster_files
    _install_clients(monkeypatch, provision_cli, _make_clients(FakeEC2()))

    exit_code = provision_cli.main(config=config_path, template=template_path)

    assert exit_code == 1
    assert "error: key pair 'test-key-name' does not exist" in capsys.readouterr().err


def test_provision_main_reports_transport_failure(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    class _ThrottledEC2(FakeEC2):
        def describe_key_pairs(self, **kwargs: object) -> dict[str, object]:
            raise client_error("RequestLimitExceeded", "DescribeKeyPairs")

    config_path, template_path = cluster_files
    _install_clients(monkeypatch, provision_cli, _make_clients(_ThrottledEC2()))

    exit_code = provision_cli.main(config=config_path, template=template_path)

    assert exit_code == 2
    assert "error: AWS request failed" in capsys.readouterr().err


def test_provision_main_reports_stack_failure(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
) -> None:
    config_path, template_path = cluster_files
    clients = _make_clients()
    clients.cloudformation.statuses[:] = ["CREATE_FAILED"]
    _install_clients(monkeypatch, provision_cli, clients)

    assert provision_cli.main(config=config_path, template=template_path) == 1


def test_provision_main_requires_template(cluster_files: tuple[Path, Path]) -> None:
    config_path, _ = cluster_files
    with pytest.raises(SystemExit, match="STACK_TEMPLATE is required"):
        provision_cli.main(config=config_path)


def test_provision_main_reports_bad_config(
    tmp_path: Path,
    cluster_files: tuple[Path, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    _, template_path = cluster_files
    broken = tmp_path / "broken.yaml"
    broken.write_text(MINIMAL_CONFIG_YAML + "routeTableId: rtb-1\n", encoding="utf-8")

    assert provision_cli.main(config=broken, template=template_path) == 1
    assert "vpcId must be specified" in capsys.readouterr().err


def test_validate_main_checks_template(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_path, template_path = cluster_files
    clients = _make_clients()
    _install_clients(monkeypatch, validate_cli, clients)

    exit_code = validate_cli.main(config=config_path, template=template_path)

    assert exit_code == 0
    assert [name for name, _ in clients.cloudformation.calls] == ["validate_template"]
    out = capsys.readouterr().out
    assert "Stack template is valid: kube cluster" in out
    assert "Cluster configuration is valid." in out


def test_validate_main_without_template(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
) -> None:
    config_path, _ = cluster_files
    clients = _make_clients()
    _install_clients(monkeypatch, validate_cli, clients)

    assert validate_cli.main(config=config_path) == 0
    assert clients.cloudformation.calls == []


def test_provision_main_dry_run_flag_overrides_env(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
) -> None:
    config_path, template_path = cluster_files
    monkeypatch.setenv("DRY_RUN", "false")
    clients = _make_clients()
    _install_clients(monkeypatch, provision_cli, clients)

    assert provision_cli.main(config=config_path, template=template_path, dry_run=True) == 0
    assert clients.cloudformation.calls == []


def test_provision_main_reports_stack_name_collision(
    monkeypatch: pytest.MonkeyPatch,
    cluster_files: tuple[Path, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_path, template_path = cluster_files
    clients = _make_clients()
    clients.cloudformation.create_error = client_error("AlreadyExistsException", "CreateStack")
    _install_clients(monkeypatch, provision_cli, clients)

    exit_code = provision_cli.main(config=config_path, template=template_path)

    assert exit_code == 1, "a rejected submission must not be reported as retryable"
    err = capsys.readouterr().err
    assert "AlreadyExistsException" in err
    assert "AWS request failed" not in err
    assert len(clients.cloudformation.created()) == 1
