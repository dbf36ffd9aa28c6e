"""
Run blocking repository calls from async discovery code.

SQLite access is synchronous, so each call runs in the default executor and
is bounded by a timeout. Independent calls can then be gathered.
"""

import asyncio
from typing import Callable, TypeVar

from ..errors import StoreTimeoutError

T = TypeVar("T")


async def run_store_call(
    func: Callable[[], T],
    timeout: float | None,
    source: str,
) -> T:
    """
    Await a blocking store call in the executor.

    Raises:
        StoreTimeoutError: If the call does not finish within timeout seconds.
    """
    loop = asyncio.get_event_loop()
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, func), timeout)
    except asyncio.TimeoutError as e:
        raise StoreTimeoutError(
            f"{source} query timed out after {timeout}s", source=source
        ) from e
