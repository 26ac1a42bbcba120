import asyncio
from typing import Callable, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking repository call in the default executor.

    The store driver is synchronous; asyncio callers go through here so the
    event loop is never blocked on network I/O.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
