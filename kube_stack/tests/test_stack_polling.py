"""Unit tests for stack status polling."""

from __future__ import annotations

import pytest

from kube_stack._preflight_errors import StackWaitTimeoutError
from kube_stack._stack_polling import wait_for_stack
from kube_stack.tests._fakes import FakeCloudFormation


def test_wait_for_stack_returns_first_terminal_status() -> None:
    cloudformation = FakeCloudFormation(
        statuses=["CREATE_IN_PROGRESS", "CREATE_IN_PROGRESS", "CREATE_COMPLETE"],
    )
    sleeps: list[float] = []

    status = wait_for_stack(
        cloudformation,
        "stack-1",
        interval=5,
        timeout=60,
        sleep=sleeps.append,
    )

    assert status.status == "CREATE_COMPLETE"
    assert sleeps == [5, 5], "expected one sleep between each poll"


def test_wait_for_stack_returns_failure_statuses() -> None:
    cloudformation = FakeCloudFormation(statuses=["CREATE_IN_PROGRESS", "ROLLBACK_COMPLETE"])

    status = wait_for_stack(cloudformation, "stack-1", interval=1, timeout=60, sleep=lambda _: None)

    assert status.is_failure


def test_wait_for_stack_times_out() -> None:
    cloudformation = FakeCloudFormation(statuses=["CREATE_IN_PROGRESS"])

    with pytest.raises(StackWaitTimeoutError, match="still CREATE_IN_PROGRESS"):
        wait_for_stack(
            cloudformation,
            "stack-1",
            interval=0.001,
            timeout=0.05,
            sleep=lambda _: None,
        )
