"""Utility helpers."""

from clip_engine.utils.async_utils import run_async

__all__ = ["run_async"]
