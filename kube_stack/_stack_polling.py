"""Poll a CloudFormation stack until it reaches a terminal status."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from kube_stack._aws_protocols import StackStatusAPI
from kube_stack._preflight_errors import StackWaitTimeoutError
from kube_stack._stack_models import StackStatus
from kube_stack._stack_orchestration import describe_stack_status

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_WAIT_TIMEOUT = 1800.0


class _StackPendingError(Exception):
    """Stack still in progress - retry."""

    def __init__(self, status: StackStatus) -> None:
        super().__init__(status.status)
        self.status = status


def wait_for_stack(
    status_api: StackStatusAPI,
    stack_handle: str,
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_WAIT_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
) -> StackStatus:
    """Poll *stack_handle* every *interval* seconds until it stops changing.

    Parameters
    ----------
    status_api : StackStatusAPI
        CloudFormation client.
    stack_handle : str
        Stack id or name returned by stack creation.
    interval : float, optional
        Seconds between polls.
    timeout : float, optional
        Overall deadline in seconds.
    sleep : Callable[[float], None], optional
        Sleep function, replaceable in tests.

    Returns
    -------
    StackStatus
        The first terminal status observed.

    Raises
    ------
    StackWaitTimeoutError
        If the stack is still in progress when *timeout* elapses.
    StackNotFoundError
        If CloudFormation stops reporting the stack.
    """

    @retry(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(_StackPendingError),
        sleep=sleep,
    )
    def _poll() -> StackStatus:
        status = describe_stack_status(status_api, stack_handle)
        if not status.is_terminal:
            logger.debug("Stack %s is %s", stack_handle, status.status)
            raise _StackPendingError(status)
        return status

    try:
        return _poll()
    except RetryError as exc:
        last = exc.last_attempt.exception()
        current = last.status.status if isinstance(last, _StackPendingError) else "unknown"
        msg = f"stack {stack_handle} still {current} after {timeout:g}s"
        raise StackWaitTimeoutError(msg) from exc


__all__ = ["DEFAULT_POLL_INTERVAL", "DEFAULT_WAIT_TIMEOUT", "wait_for_stack"]
