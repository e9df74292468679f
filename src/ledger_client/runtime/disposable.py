"""
Cooperative cancellation for asynchronous operations.

An ``AbortController`` owns an ``AbortSignal`` that callers hand to the SDK.
A ``Disposable`` binds to such a signal for the lifetime of one callback and
exposes a ``DisposableScope`` the callback polls at its suspension points:

    controller = AbortController()
    disposable = Disposable(controller.signal)

    async def load(scope):
        account = await rpc.get_account(address)
        scope.throw_if_canceled()
        return account

    await disposable.run(load)

Cancellation never interrupts in-flight I/O; it only stops the callback at
its next ``throw_if_canceled()`` call.
"""

from __future__ import annotations
import asyncio
import inspect
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, List, Optional, TypeVar, Union

from .errors import OperationCanceledError, OperationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CancelListener = Callable[[BaseException], Any]


def _normalize_reason(reason: Any) -> BaseException:
    if reason is None:
        return OperationCanceledError()
    if isinstance(reason, BaseException):
        return reason
    return OperationCanceledError(f"The operation was canceled: {reason}", reason=reason)


class AbortSignal:
    """A one-shot cancellation signal."""

    def __init__(self):
        self._aborted = False
        self._reason: Optional[BaseException] = None
        self._listeners: List[CancelListener] = []

    @classmethod
    def aborted_with(cls, reason: Any = None) -> AbortSignal:
        """Create a signal that is already aborted."""
        signal = cls()
        signal._abort(_normalize_reason(reason))
        return signal

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def add_listener(self, listener: CancelListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: CancelListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def listener_count(self) -> int:
        return len(self._listeners)

    def throw_if_aborted(self) -> None:
        if self._aborted:
            raise self._reason

    def _abort(self, reason: BaseException) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        for listener in list(self._listeners):
            listener(reason)


class AbortController:
    """Owner of an AbortSignal."""

    def __init__(self):
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """
        Abort the signal.

        Args:
            reason: Exception stored as the cancellation error. Defaults to
                OperationCanceledError; other values are wrapped in one.
        """
        self.signal._abort(_normalize_reason(reason))


@contextmanager
def linked_signal(
    signal: Optional[AbortSignal] = None,
    timeout: Optional[float] = None,
) -> Iterator[AbortSignal]:
    """
    Yield a signal aborted by the parent ``signal`` or after ``timeout`` seconds.

    The link to the parent and the timer are both removed when the block
    exits, however it exits. The timeout needs a running event loop.
    """
    if timeout is None:
        yield signal if signal is not None else AbortSignal()
        return

    controller = AbortController()
    forward = controller.abort

    if signal is not None:
        if signal.aborted:
            controller.abort(signal.reason)
        else:
            signal.add_listener(forward)

    loop = asyncio.get_running_loop()
    handle = loop.call_later(timeout, controller.abort, OperationTimeoutError(timeout))

    try:
        yield controller.signal
    finally:
        handle.cancel()
        if signal is not None:
            signal.remove_listener(forward)


class DisposableScope:
    """The cancellation view handed to a running callback."""

    def __init__(self, disposable: Disposable):
        self._disposable = disposable
        self.signal = disposable.signal

    def is_canceled(self) -> bool:
        return self._disposable.is_canceled()

    def get_cancelation_error(self) -> Optional[BaseException]:
        return self._disposable.get_cancelation_error()

    def throw_if_canceled(self) -> None:
        self._disposable.throw_if_canceled()

    def on_cancel(self, listener: CancelListener) -> DisposableScope:
        self._disposable.on_cancel(listener)
        return self


class Disposable:
    """
    Binds one callback run to an external abort signal.

    States: active, then either canceled (the signal fired) or settled (the
    callback returned or raised). Listeners are removed once the callback
    settles so long-lived signals shared by many runs do not accumulate them.
    """

    def __init__(self, signal: AbortSignal):
        self.signal = signal
        self._cancelation_error: Optional[BaseException] = signal.reason if signal.aborted else None
        self._cancel_listeners: List[CancelListener] = []
        self._closed = False
        signal.add_listener(self._handle_abort)

    async def run(
        self,
        callback: Callable[[DisposableScope], Union[T, Awaitable[T]]],
        then_close: bool = True,
    ) -> T:
        """
        Run a callback with this disposable's scope.

        Args:
            callback: Sync or async callable receiving a DisposableScope
            then_close: Close the disposable once the callback settles

        Returns:
            The callback's result
        """
        try:
            result = callback(self.get_scope())
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            if then_close:
                self.close()

    def get_scope(self) -> DisposableScope:
        return DisposableScope(self)

    def is_canceled(self) -> bool:
        return self._cancelation_error is not None

    def get_cancelation_error(self) -> Optional[BaseException]:
        return self._cancelation_error

    def throw_if_canceled(self) -> None:
        if self._cancelation_error is not None:
            raise self._cancelation_error

    def on_cancel(self, listener: CancelListener) -> Disposable:
        self._cancel_listeners.append(listener)
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.signal.remove_listener(self._handle_abort)
        self._cancel_listeners.clear()

    def _handle_abort(self, reason: BaseException) -> None:
        if self._closed:
            return
        self._cancelation_error = reason
        logger.debug(f"Disposable canceled: {reason!r}")
        for listener in list(self._cancel_listeners):
            listener(reason)


__all__ = [
    "AbortSignal",
    "AbortController",
    "linked_signal",
    "Disposable",
    "DisposableScope",
]
