"""Wall-clock bounds for blocking language-model calls."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, TypeVar

from nametag.exceptions import TransientServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Shared across sessions; a call that overruns keeps its worker until the
# client gives up, so the pool is sized for a few stuck calls at once.
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="nametag-call")


def call_with_timeout(
    service: str,
    fn: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
) -> T:
    """Run ``fn(*args)`` and wait at most *timeout* seconds for it.

    With ``timeout=None`` the call runs inline on the current thread.

    Raises:
        TransientServiceError: If the call does not finish in time. The
            late result, if any, is discarded.
    """
    if timeout is None:
        return fn(*args)

    future = _executor.submit(fn, *args)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        future.cancel()
        logger.warning("%s call exceeded %.1fs; abandoning it", service, timeout)
        raise TransientServiceError(service, exc) from exc
