import asyncio
import logging
from typing import Awaitable, TypeVar

from ..errors import DeadlineExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_deadline(awaitable: Awaitable[T], timeout_s: float, operation: str) -> T:
    """Await a store call, giving up after ``timeout_s`` seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.error(f"⏱️  {operation} exceeded its {timeout_s:g}s deadline")
        raise DeadlineExceeded(f"{operation} did not complete within {timeout_s:g}s")
