"""Resolve CLI and environment inputs for the cluster commands.

Every input is taken from the CLI parameter when given, then from its
environment variable, then from a default. Required inputs with no value
abort the command.
"""

from __future__ import annotations

import os
from collections import abc as cabc
from dataclasses import dataclass
from pathlib import Path

from kube_stack._stack_polling import DEFAULT_POLL_INTERVAL, DEFAULT_WAIT_TIMEOUT


@dataclass(frozen=True, slots=True)
class InputResolution:
    """Configuration for resolving an input from multiple sources."""

    env_key: str
    default: str | Path | None = None
    required: bool = False
    as_path: bool = False


def resolve_input(
    param_value: str | Path | None,
    resolution: InputResolution,
    env: cabc.Mapping[str, str] | None = None,
) -> str | Path | None:
    """Resolve input from parameter, environment variable, or default.

    Examples
    --------
    >>> resolve_input(None, InputResolution("CLUSTER_CONFIG", default="cluster.yaml"), env={})
    'cluster.yaml'
    """
    if param_value is not None:
        return param_value

    env_value = (env if env is not None else os.environ).get(resolution.env_key)
    if env_value is not None and env_value != "":
        return Path(env_value) if resolution.as_path else env_value

    if resolution.required:
        msg = f"{resolution.env_key} is required"
        raise SystemExit(msg)

    return resolution.default


def parse_bool(value: str | None, *, default: bool = True) -> bool:
    """Parse a boolean string value.

    Examples
    --------
    >>> parse_bool("yes")
    True
    >>> parse_bool(None, default=False)
    False
    """
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def parse_seconds(value: str | float | None, *, key: str, default: float) -> float:
    """Parse a positive number of seconds.

    Examples
    --------
    >>> parse_seconds("2.5", key="STACK_POLL_INTERVAL", default=3.0)
    2.5
    """
    if value is None:
        return default
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{key} must be a number of seconds, got: {value!r}"
        raise SystemExit(msg) from exc
    if seconds <= 0:
        msg = f"{key} must be positive, got: {value!r}"
        raise SystemExit(msg)
    return seconds


@dataclass(frozen=True, slots=True)
class ClusterInputs:
    """Resolved inputs shared by the cluster commands."""

    config_path: Path
    template_path: Path | None
    aws_profile: str | None
    poll_interval: float
    wait_timeout: float
    dry_run: bool


@dataclass(frozen=True, slots=True)
class RawClusterInputs:
    """Raw inputs from CLI or defaults."""

    config_path: Path | None = None
    template_path: Path | None = None
    aws_profile: str | None = None
    poll_interval: str | None = None
    wait_timeout: str | None = None
    dry_run: str | None = None


def _to_path(value: str | Path | None) -> Path | None:
    if value is None:
        return None
    return value if isinstance(value, Path) else Path(str(value))


def resolve_cluster_inputs(
    raw: RawClusterInputs,
    *,
    require_template: bool = False,
    env: cabc.Mapping[str, str] | None = None,
) -> ClusterInputs:
    """Resolve cluster command inputs from CLI and environment.

    Parameters
    ----------
    raw : RawClusterInputs
        Values supplied on the command line; ``None`` means unset.
    require_template : bool, optional
        Abort when no stack template path is available.
    env : Mapping[str, str] | None, optional
        Environment to consult instead of ``os.environ``.

    Returns
    -------
    ClusterInputs
        Normalized inputs.

    Examples
    --------
    >>> resolve_cluster_inputs(RawClusterInputs(config_path=Path("prod.yaml"))).config_path
    PosixPath('prod.yaml')
    """
    config_path = resolve_input(
        raw.config_path,
        InputResolution(
            env_key="CLUSTER_CONFIG",
            default=Path("cluster.yaml"),
            as_path=True,
        ),
        env=env,
    )
    template_path = resolve_input(
        raw.template_path,
        InputResolution(
            env_key="STACK_TEMPLATE",
            required=require_template,
            as_path=True,
        ),
        env=env,
    )
    aws_profile = resolve_input(
        raw.aws_profile, InputResolution(env_key="AWS_PROFILE"), env=env
    )
    poll_interval = resolve_input(
        raw.poll_interval,
        InputResolution(env_key="STACK_POLL_INTERVAL", default=str(DEFAULT_POLL_INTERVAL)),
        env=env,
    )
    wait_timeout = resolve_input(
        raw.wait_timeout,
        InputResolution(env_key="STACK_TIMEOUT", default=str(DEFAULT_WAIT_TIMEOUT)),
        env=env,
    )
    dry_run = resolve_input(
        raw.dry_run, InputResolution(env_key="DRY_RUN", default="false"), env=env
    )

    resolved_config = _to_path(config_path)
    assert resolved_config is not None, "CLUSTER_CONFIG always has a default"
    return ClusterInputs(
        config_path=resolved_config,
        template_path=_to_path(template_path),
        aws_profile=str(aws_profile) if aws_profile else None,
        poll_interval=parse_seconds(
            str(poll_interval),
            key="STACK_POLL_INTERVAL",
            default=DEFAULT_POLL_INTERVAL,
        ),
        wait_timeout=parse_seconds(
            str(wait_timeout),
            key="STACK_TIMEOUT",
            default=DEFAULT_WAIT_TIMEOUT,
        ),
        dry_run=parse_bool(str(dry_run) if dry_run else None, default=False),
    )


__all__ = [
    "ClusterInputs",
    "InputResolution",
    "RawClusterInputs",
    "parse_bool",
    "parse_seconds",
    "resolve_cluster_inputs",
    "resolve_input",
]
