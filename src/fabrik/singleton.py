"""Single shared instance with lazy, once-only construction."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import weakref
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast, overload

from fabrik.exceptions import AsyncFactoryInSyncContextError, InvalidRegistrationError
from fabrik.lock_mode import LockMode, LockModeSetting, resolve_lock_mode

if TYPE_CHECKING:
    from fabrik.settings import FabrikSettings

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SingletonState(Enum):
    """Lifecycle of the instance owned by a ``SingletonHandle``."""

    UNINITIALIZED = "uninitialized"
    """No instance exists; the next access constructs it."""

    INITIALIZING = "initializing"
    """The factory is running; concurrent callers wait for it."""

    READY = "ready"
    """The instance exists and every access returns it."""


class SingletonHandle(Generic[T]):
    """Expose exactly one lazily created instance.

    The first ``get``/``aget`` runs the factory; every caller, including those
    arriving while the factory runs, receives the same instance. A failing
    factory publishes nothing: the error reaches the caller and the next access
    tries again.

    Pass handles to the code that needs them instead of looking them up
    globally, so tests can hand in a fresh handle.

    Locking follows ``lock_mode``:

    - ``THREAD`` guards construction with ``threading.Lock``. Sync factories only.
    - ``ASYNC`` lets one ``aget`` caller construct while the others await a
      shared future, even from other event loops and threads. The first access
      must be ``await handle.aget()``.
    - ``NONE`` does not lock.
    - ``"auto"`` picks ``ASYNC`` for coroutine factories and ``THREAD`` otherwise.
    """

    _live_handles: ClassVar[weakref.WeakSet[SingletonHandle[Any]]] = weakref.WeakSet()
    _live_handles_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        factory: Callable[[], T] | Callable[[], Awaitable[T]],
        *,
        name: str | None = None,
        lock_mode: LockModeSetting = "auto",
    ) -> None:
        """Create a handle in the ``UNINITIALIZED`` state.

        Args:
            factory: Zero-argument callable or coroutine function creating the
                instance.
            name: Name used in logs and errors. Defaults to the factory's
                qualified name.
            lock_mode: Construction guard, see the class documentation.

        Raises:
            InvalidRegistrationError: If an async factory is combined with
                ``LockMode.THREAD``.

        """
        self._factory = factory
        self.name = name or getattr(factory, "__qualname__", repr(factory))
        self.is_async = inspect.iscoroutinefunction(factory)
        self.lock_mode = resolve_lock_mode(lock_mode, factory)
        if self.is_async and self.lock_mode is LockMode.THREAD:
            msg = f"Singleton '{self.name}' has an async factory and cannot use LockMode.THREAD."
            raise InvalidRegistrationError(msg)

        self._instance: T | None = None
        self._state = SingletonState.UNINITIALIZED
        self._thread_lock = threading.Lock()
        self._pending: Future[None] | None = None
        with SingletonHandle._live_handles_lock:
            SingletonHandle._live_handles.add(self)

    @classmethod
    def from_settings(
        cls,
        factory: Callable[[], T] | Callable[[], Awaitable[T]],
        settings: FabrikSettings,
        *,
        name: str | None = None,
    ) -> SingletonHandle[T]:
        """Create a handle whose lock mode comes from ``settings``."""
        return cls(factory, name=name, lock_mode=settings.lock_mode)

    @property
    def state(self) -> SingletonState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        """Return whether the instance has been constructed."""
        return self._state is SingletonState.READY

    def get(self) -> T:
        """Return the shared instance, constructing it on first access.

        Raises:
            AsyncFactoryInSyncContextError: If the instance must be constructed
                asynchronously and does not exist yet.

        """
        if self._state is SingletonState.READY:
            return cast("T", self._instance)
        if self.is_async or self.lock_mode is LockMode.ASYNC:
            raise AsyncFactoryInSyncContextError(self.name)
        if self.lock_mode is LockMode.NONE:
            return self._construct()

        with self._thread_lock:
            # Another thread may have finished construction while we waited.
            if self._state is SingletonState.READY:
                return cast("T", self._instance)
            return self._construct()

    async def aget(self) -> T:
        """Return the shared instance, awaiting construction on first access.

        Callers may run on different event loops and threads. Exactly one of
        them runs the factory; the others wait for it without blocking their
        loop, then receive the same instance. If the factory fails, the caller
        that ran it gets the error and one of the waiters tries again.
        """
        if self._state is SingletonState.READY:
            return cast("T", self._instance)
        if self.lock_mode is LockMode.THREAD:
            return self.get()
        if self.lock_mode is LockMode.NONE:
            return await self._aconstruct()

        while True:
            with self._thread_lock:
                if self._state is SingletonState.READY:
                    return cast("T", self._instance)
                pending = self._pending
                if pending is None:
                    pending = self._pending = Future()
                    self._state = SingletonState.INITIALIZING
                    break
            # shield keeps a cancelled waiter from cancelling the shared future.
            await asyncio.shield(asyncio.wrap_future(pending))

        try:
            return await self._aconstruct()
        finally:
            with self._thread_lock:
                if self._pending is pending:
                    self._pending = None
            pending.set_result(None)

    def reset(self) -> None:
        """Drop the instance so the next access constructs a new one.

        Meant for tests. References issued before the reset still point at the
        old instance, which is no longer the shared one: treat them as invalid.
        """
        with self._thread_lock:
            self._instance = None
            self._state = SingletonState.UNINITIALIZED
            self._pending = None
        logger.debug("Reset singleton '%s'", self.name)

    @classmethod
    def reset_all(cls) -> None:
        """Reset every live handle. See ``reset`` for the consequences."""
        with cls._live_handles_lock:
            handles = list(cls._live_handles)
        for handle in handles:
            handle.reset()

    def _construct(self) -> T:
        self._state = SingletonState.INITIALIZING
        try:
            instance = cast("Callable[[], T]", self._factory)()
        except BaseException:
            self._state = SingletonState.UNINITIALIZED
            raise
        return self._publish(instance)

    async def _aconstruct(self) -> T:
        self._state = SingletonState.INITIALIZING
        try:
            result = self._factory()
            if inspect.isawaitable(result):
                result = await result
        except BaseException:
            self._state = SingletonState.UNINITIALIZED
            raise
        return self._publish(cast("T", result))

    def _publish(self, instance: T) -> T:
        self._instance = instance
        self._state = SingletonState.READY
        logger.debug("Constructed singleton '%s'", self.name)
        return instance

    def __repr__(self) -> str:
        return f"SingletonHandle(name={self.name!r}, state={self._state.value})"


@overload
def singleton(factory: Callable[[], T], /) -> SingletonHandle[T]: ...


@overload
def singleton(
    *,
    name: str | None = None,
    lock_mode: LockModeSetting = "auto",
) -> Callable[[Callable[[], T]], SingletonHandle[T]]: ...


def singleton(
    factory: Callable[[], Any] | None = None,
    /,
    *,
    name: str | None = None,
    lock_mode: LockModeSetting = "auto",
) -> Any:
    """Wrap a zero-argument factory in a ``SingletonHandle``.

    Works bare (``@singleton``) or configured
    (``@singleton(lock_mode=LockMode.NONE)``).

    Examples:
        .. code-block:: python

            @singleton
            def settings() -> Settings:
                return Settings()


            assert settings.get() is settings.get()

    """
    if factory is not None:
        return SingletonHandle(factory, name=name, lock_mode=lock_mode)

    def decorator(func: Callable[[], Any]) -> SingletonHandle[Any]:
        return SingletonHandle(func, name=name, lock_mode=lock_mode)

    return decorator
