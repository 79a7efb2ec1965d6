"""Bridge from the synchronous engine and ingester to async adapters."""

import asyncio
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

_thread_state = threading.local()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive an adapter coroutine to completion from synchronous code.

    Clip generation and metrics ingestion run in Celery worker threads and in
    the CLI, while media analysis and analytics adapters are async. Each
    thread keeps one open loop for its lifetime, so an adapter holding an
    httpx client keeps a live loop between calls of the same task.
    """
    loop = getattr(_thread_state, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _thread_state.loop = loop
    return loop.run_until_complete(coro)
