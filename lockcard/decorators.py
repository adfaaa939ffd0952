"""Decorators for the lock card engine."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


def callback(func: Callable[..., Any]) -> Callable[..., Any]:
    """Annotation to mark method as safe to call from within the event loop."""
    setattr(func, "_lockcard_callback", True)
    return func
