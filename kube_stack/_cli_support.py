"""Shared plumbing for the cluster command-line entry points."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from kube_stack._preflight_errors import (
    ClusterConfigError,
    PreflightError,
    StackOrchestrationError,
    is_transport_error,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_TRANSPORT = 2

HANDLED_ERRORS = (PreflightError, StackOrchestrationError, ClientError, BotoCoreError)


def configure_logging(*, verbose: bool = False) -> None:
    """Send package logs to stderr; DEBUG when *verbose*, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_template(path: Path) -> str:
    """Return the rendered stack template stored at *path*."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read stack template {path}: {exc}"
        raise ClusterConfigError(msg) from exc


def report_error(exc: BaseException) -> int:
    """Print *exc* to stderr and return the matching exit status.

    Transport failures exit with ``2`` so wrappers can retry them. Preflight
    failures, stack failures and provider rejections (a stack name collision,
    an invalid template) exit with ``1`` and print the provider message
    unchanged.

    Examples
    --------
    >>> report_error(PreflightError("hosted zone example.com. does not exist"))
    1
    """
    if is_transport_error(exc):
        print(f"error: AWS request failed: {exc}", file=sys.stderr)
        return EXIT_TRANSPORT
    print(f"error: {exc}", file=sys.stderr)
    return EXIT_FAILURE


__all__ = [
    "EXIT_FAILURE",
    "EXIT_OK",
    "EXIT_TRANSPORT",
    "HANDLED_ERRORS",
    "configure_logging",
    "read_template",
    "report_error",
]
