"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"
