"""
Deferred, re-runnable units of asynchronous work.

A Task wraps a callback so callers decide when, and under which cancellation
signal, it runs. Results and errors are cached until the task is reset or
forced to run again.
"""

from __future__ import annotations
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, Field

from .disposable import AbortSignal, Disposable, DisposableScope, linked_signal
from .errors import TaskIsAlreadyRunningError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskCallback = Callable[..., Union[T, Awaitable[T]]]


class TaskStatus(str, Enum):
    """Lifecycle of a task run."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    CANCELED = "canceled"


class TaskOptions(BaseModel):
    """Options for a single task run."""
    signal: Optional[AbortSignal] = Field(default=None, description="Cancellation signal for this run")
    timeout: Optional[float] = Field(default=None, gt=0, description="Cancel the run after this many seconds")
    force: bool = Field(default=False, description="Run again even if a result is cached")

    model_config = {"arbitrary_types_allowed": True}


class Task(Generic[T]):
    """
    A cold, cancellable computation.

    Example:
        ```python
        task = Task(lambda scope: fetch_everything(scope))
        task.on_success(lambda: print("done"))
        result = await task.run(TaskOptions(signal=controller.signal))
        ```
    """

    def __init__(
        self,
        callback: TaskCallback,
        children: Sequence[Task] = (),
        context: Optional[Dict[str, Any]] = None,
    ):
        self._callback = callback
        self._children: List[Task] = list(children)
        self._context: Dict[str, Any] = context or {}
        self._status = TaskStatus.PENDING
        self._result: Optional[T] = None
        self._error: Optional[BaseException] = None
        self._listeners: List[Callable[[TaskStatus], Any]] = []

    async def run(self, options: Optional[TaskOptions] = None, *inputs: Any) -> T:
        """
        Run the task, or return its cached outcome.

        Raises:
            TaskIsAlreadyRunningError: If a previous run has not completed
        """
        options = options or TaskOptions()

        if self.is_running():
            raise TaskIsAlreadyRunningError()

        if self.is_pending() or options.force:
            return await self._force_run(options, *inputs)

        if self.is_successful():
            return self._result

        raise self._error

    async def _force_run(self, options: TaskOptions, *inputs: Any) -> T:
        with linked_signal(options.signal, options.timeout) as signal:
            disposable = Disposable(signal)

            def _canceled(reason: BaseException) -> None:
                self._error = reason
                self._set_status(TaskStatus.CANCELED)

            disposable.on_cancel(_canceled)
            return await disposable.run(lambda scope: self._execute(scope, *inputs))

    async def _execute(self, scope: DisposableScope, *inputs: Any) -> T:
        try:
            self._set_status(TaskStatus.RUNNING)
            self._result = None
            self._error = None
            result = self._callback(scope, *inputs)
            if inspect.isawaitable(result):
                result = await result
            scope.throw_if_canceled()
            self._result = result
            self._set_status(TaskStatus.SUCCESSFUL)
            return result
        except BaseException as error:
            self._error = error
            self._result = None
            self._set_status(TaskStatus.CANCELED if scope.is_canceled() else TaskStatus.FAILED)
            raise

    def load_with(self, preloaded_result: T) -> Task[T]:
        self._set_status(TaskStatus.SUCCESSFUL)
        self._result = preloaded_result
        self._error = None
        return self

    def reset(self) -> Task[T]:
        self._set_status(TaskStatus.PENDING)
        self._result = None
        self._error = None
        return self

    def set_children(self, children: Sequence[Task]) -> Task[T]:
        self._children = list(children)
        return self

    def get_children(self) -> List[Task]:
        return list(self._children)

    def get_descendants(self) -> List[Task]:
        descendants: List[Task] = []
        for child in self._children:
            descendants.append(child)
            descendants.extend(child.get_descendants())
        return descendants

    def set_context(self, context: Dict[str, Any]) -> Task[T]:
        self._context = context
        return self

    def get_context(self) -> Dict[str, Any]:
        return self._context

    def get_status(self) -> TaskStatus:
        return self._status

    def get_result(self) -> Optional[T]:
        return self._result

    def get_error(self) -> Optional[BaseException]:
        return self._error

    def is_pending(self) -> bool:
        return self._status == TaskStatus.PENDING

    def is_running(self) -> bool:
        return self._status == TaskStatus.RUNNING

    def is_completed(self) -> bool:
        return self._status not in (TaskStatus.PENDING, TaskStatus.RUNNING)

    def is_successful(self) -> bool:
        return self._status == TaskStatus.SUCCESSFUL

    def is_failed(self) -> bool:
        return self._status == TaskStatus.FAILED

    def is_canceled(self) -> bool:
        return self._status == TaskStatus.CANCELED

    def on_status_change(self, callback: Callable[[TaskStatus], Any]) -> Task[T]:
        self._listeners.append(callback)
        return self

    def on_status_change_to(self, status: TaskStatus, callback: Callable[[], Any]) -> Task[T]:
        return self.on_status_change(lambda new_status: callback() if new_status == status else None)

    def on_success(self, callback: Callable[[], Any]) -> Task[T]:
        return self.on_status_change_to(TaskStatus.SUCCESSFUL, callback)

    def on_failure(self, callback: Callable[[], Any]) -> Task[T]:
        return self.on_status_change_to(TaskStatus.FAILED, callback)

    def on_cancel(self, callback: Callable[[], Any]) -> Task[T]:
        return self.on_status_change_to(TaskStatus.CANCELED, callback)

    def _set_status(self, status: TaskStatus) -> None:
        if self._status == status:
            return
        logger.debug(f"Task status {self._status.value} -> {status.value}")
        self._status = status
        for listener in list(self._listeners):
            listener(status)


__all__ = ["Task", "TaskStatus", "TaskOptions", "TaskCallback"]
