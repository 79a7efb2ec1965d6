"""Tests for the async bridge and logging setup."""

import asyncio
import logging
import threading

from clip_engine.logging import HANDLER_NAME, setup_logging
from clip_engine.utils import run_async


async def _current_loop() -> asyncio.AbstractEventLoop:
    return asyncio.get_running_loop()


def test_run_async_reuses_loop_within_a_thread() -> None:
    assert run_async(_current_loop()) is run_async(_current_loop())


def test_run_async_uses_separate_loop_per_thread() -> None:
    loops = {}

    def worker() -> None:
        loops["worker"] = run_async(_current_loop())

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()

    assert loops["worker"] is not run_async(_current_loop())


def test_setup_logging_replaces_its_own_handler() -> None:
    setup_logging(level="warning")
    setup_logging(level="warning")

    handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
    assert len(handlers) == 1
    assert logging.getLogger().level == logging.WARNING
