from __future__ import annotations

import asyncio
import os
from typing import Any, Callable

from portfolio.domain.errors import PersistenceError, PortfolioError, StoreTimeout

DEFAULT_TIMEOUT_SECONDS = 15.0


def content_timeout() -> float:
    return float(os.getenv("CONTENT_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))


async def call_store(func: Callable[..., Any], *args: Any, label: str, timeout: float | None = None) -> Any:
    """Run a blocking repository call in a worker thread with a timeout.

    Raises:
        StoreTimeout: If the call does not finish within ``timeout``; the
            worker thread keeps running, so a write may still land.
        PersistenceError: On any non-domain failure.
    """
    timeout = timeout if timeout is not None else content_timeout()
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout)
    except asyncio.TimeoutError as exc:
        raise StoreTimeout(f"{label} timed out after {timeout:g}s") from exc
    except PortfolioError:
        raise
    except Exception as exc:
        raise PersistenceError(f"{label} failed: {exc}") from exc
