"""Cooperative cancellation for in-flight capture batches."""

import asyncio
from typing import Optional


class CaptureCancelled(Exception):
    """Raised at a suspension point once the caller has requested cancellation."""


def raise_if_cancelled(cancel: Optional[asyncio.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CaptureCancelled("Capture cancelled by caller.")


async def pause(seconds: float, cancel: Optional[asyncio.Event] = None) -> None:
    """Sleep for *seconds*, checking *cancel* before suspending."""
    raise_if_cancelled(cancel)
    if seconds > 0:
        await asyncio.sleep(seconds)
