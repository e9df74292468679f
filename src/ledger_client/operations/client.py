"""
Operation registry and dispatcher.

Each client owns one ``OperationClient``. Plugins register handlers while
they are installed; callers then dispatch operations through ``execute`` or
defer them with ``get_task``.
"""

from __future__ import annotations
import inspect
import logging
from typing import Any, Dict, Optional, Union, TYPE_CHECKING

from ..rpc.types import ConfirmOptions
from ..runtime.disposable import Disposable, DisposableScope, linked_signal
from ..runtime.errors import HandlerMissingError
from ..runtime.task import Task
from .operation import Operation, OperationConstructor, OperationHandler, OperationOptions, OperationScope

if TYPE_CHECKING:
    from ..client import LedgerClient

logger = logging.getLogger(__name__)


class OperationClient:
    """
    Maps operation keys to handlers.

    A key has at most one handler. Registering a key again replaces its
    handler, which is how plugins override each other.

    Example:
        ```python
        client.operations().register(transfer_sol_operation, transfer_sol_handler)
        output = await client.operations().execute(transfer_sol_operation(input))
        ```
    """

    def __init__(self, client: "LedgerClient"):
        self._client = client
        self._handlers: Dict[str, OperationHandler] = {}

    def register(
        self,
        operation: Union[str, OperationConstructor],
        handler: OperationHandler,
    ) -> OperationClient:
        """
        Register the handler for an operation key.

        Args:
            operation: Operation key or the constructor returned by ``use_operation``
            handler: Sync or async ``(operation, client, scope)`` callable
        """
        key = operation if isinstance(operation, str) else operation.key
        if key in self._handlers:
            logger.debug(f"Replacing handler for operation {key}")
        else:
            logger.debug(f"Registered handler for operation {key}")
        self._handlers[key] = handler
        return self

    def get(self, operation: Operation) -> OperationHandler:
        """
        Find the handler for an operation.

        Raises:
            HandlerMissingError: If no handler is registered for its key
        """
        handler = self._handlers.get(operation.key)
        if handler is None:
            raise HandlerMissingError(operation.key)
        return handler

    def has(self, operation: Union[str, OperationConstructor, Operation]) -> bool:
        key = operation if isinstance(operation, str) else operation.key
        return key in self._handlers

    async def execute(self, operation: Operation, options: Optional[OperationOptions] = None) -> Any:
        """
        Run an operation's handler.

        The handler runs under a scope bound to ``options.signal`` and
        ``options.timeout``. Its result or error is returned or raised
        unchanged; nothing is retried.

        Raises:
            HandlerMissingError: If no handler is registered for the key
            OperationCanceledError: If the run is canceled and the handler stops on it
        """
        handler = self.get(operation)
        options = options or OperationOptions()
        logger.debug(f"Executing operation {operation.key}")

        with linked_signal(options.signal, options.timeout) as signal:
            disposable = Disposable(signal)
            return await disposable.run(lambda scope: self._handle(handler, operation, scope, options))

    def get_task(self, operation: Operation, options: Optional[OperationOptions] = None) -> Task:
        """
        Defer an operation.

        The handler is resolved now and reused by every run of the returned
        task. Cancellation comes from the ``TaskOptions`` given to ``run``.

        Raises:
            HandlerMissingError: If no handler is registered for the key
        """
        handler = self.get(operation)
        options = options or OperationOptions()

        async def callback(scope: DisposableScope) -> Any:
            return await self._handle(handler, operation, scope, options)

        return Task(callback, context={"operation": operation.key})

    async def _handle(
        self,
        handler: OperationHandler,
        operation: Operation,
        scope: DisposableScope,
        options: OperationOptions,
    ) -> Any:
        result = handler(operation, self._client, self._make_scope(scope, options))
        if inspect.isawaitable(result):
            result = await result
        scope.throw_if_canceled()
        return result

    def _make_scope(self, scope: DisposableScope, options: OperationOptions) -> OperationScope:
        confirm_options = options.confirm_options
        if confirm_options is None:
            confirm_options = ConfirmOptions(commitment=options.commitment)

        return OperationScope(
            scope,
            payer=options.payer or self._client.rpc().get_default_fee_payer(),
            commitment=options.commitment,
            confirm_options=confirm_options,
            programs=options.programs,
        )


__all__ = ["OperationClient"]
