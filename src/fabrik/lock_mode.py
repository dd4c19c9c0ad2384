from __future__ import annotations

import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any, Literal, TypeAlias


class LockMode(Enum):
    """Select how a ``SingletonHandle`` guards first construction.

    Handles also accept ``"auto"`` at configuration time: fabrik maps
    ``"auto"`` to async locks for coroutine factories and to thread locks for
    plain callables.
    """

    THREAD = "thread"
    """Guard construction with ``threading.Lock``. Requires a synchronous factory."""

    ASYNC = "async"
    """One ``aget`` caller constructs while the others await it; use ``aget`` first."""

    NONE = "none"
    """Disable locking. Only safe when a single caller ever triggers construction."""


LockModeSetting: TypeAlias = LockMode | Literal["auto"]


def resolve_lock_mode(lock_mode: LockModeSetting, factory: Callable[..., Any]) -> LockMode:
    """Map a configured lock mode to the concrete mode used for ``factory``."""
    if lock_mode != "auto":
        return LockMode(lock_mode)
    if inspect.iscoroutinefunction(factory):
        return LockMode.ASYNC
    return LockMode.THREAD
