"""
Tests for the operation registry and dispatcher.
"""

import asyncio

import pytest

from helpers import FakeConnection, make_signer
from ledger_client import LedgerClient
from ledger_client.operations.operation import Operation, OperationOptions, OperationScope, use_operation
from ledger_client.programs.program import Program
from ledger_client.rpc.types import ConfirmOptions
from ledger_client.runtime.disposable import AbortController
from ledger_client.runtime.errors import HandlerMissingError, OperationCanceledError, OperationTimeoutError
from ledger_client.runtime.task import Task, TaskOptions

echo_operation = use_operation("EchoOperation")


class TestOperationValues:
    """Test operation constructors"""

    def test_constructor_builds_operations(self):
        operation = echo_operation({"value": 1})
        assert operation == Operation("EchoOperation", {"value": 1})
        assert echo_operation.key == "EchoOperation"

    def test_input_defaults_to_none(self):
        assert echo_operation().input is None


class TestRegistry:
    """Test registration and lookup"""

    @pytest.mark.asyncio
    async def test_last_registration_wins(self, bare_client):
        """Test re-registering a key replaces its handler"""
        calls = []
        operations = bare_client.operations()
        operations.register(echo_operation, lambda op, client, scope: calls.append("first"))
        operations.register("EchoOperation", lambda op, client, scope: calls.append("second") or "second")

        result = await operations.execute(echo_operation())

        assert result == "second"
        assert calls == ["second"]

    @pytest.mark.asyncio
    async def test_missing_handler(self, bare_client):
        with pytest.raises(HandlerMissingError) as exc_info:
            await bare_client.operations().execute(Operation("UnknownOperation"))
        assert exc_info.value.key == "UnknownOperation"

    def test_has(self, bare_client):
        operations = bare_client.operations()
        assert not operations.has(echo_operation)
        operations.register(echo_operation, lambda op, client, scope: None)
        assert operations.has(echo_operation)
        assert operations.has("EchoOperation")
        assert operations.has(echo_operation())

    def test_registries_are_per_client(self):
        first = LedgerClient(FakeConnection())
        second = LedgerClient(FakeConnection())
        first.operations().register(echo_operation, lambda op, client, scope: None)
        assert not second.operations().has(echo_operation)


class TestExecute:
    """Test handler invocation"""

    @pytest.mark.asyncio
    async def test_handler_receives_operation_client_and_scope(self, bare_client):
        received = {}

        async def handler(operation, client, scope):
            received.update(operation=operation, client=client, scope=scope)
            return operation.input * 2

        bare_client.operations().register(echo_operation, handler)
        operation = echo_operation(21)

        assert await bare_client.operations().execute(operation) == 42
        assert received["operation"] is operation
        assert received["client"] is bare_client
        assert isinstance(received["scope"], OperationScope)

    @pytest.mark.asyncio
    async def test_payer_defaults_to_identity(self, bare_client, payer):
        bare_client.set_identity(payer)
        bare_client.operations().register(echo_operation, lambda op, client, scope: scope.payer)

        assert await bare_client.operations().execute(echo_operation()) is payer

        other = make_signer("explicit")
        assert await bare_client.operations().execute(echo_operation(), OperationOptions(payer=other)) is other

    @pytest.mark.asyncio
    async def test_scope_options(self, bare_client):
        override = Program("Override", make_signer("program").public_key)
        bare_client.operations().register(echo_operation, lambda op, client, scope: scope)

        scope = await bare_client.operations().execute(
            echo_operation(), OperationOptions(commitment="finalized", programs=[override])
        )

        assert scope.commitment == "finalized"
        assert scope.confirm_options.commitment == "finalized"
        assert scope.programs == [override]

    @pytest.mark.asyncio
    async def test_explicit_confirm_options(self, bare_client):
        confirm_options = ConfirmOptions(skip_preflight=True)
        bare_client.operations().register(echo_operation, lambda op, client, scope: scope.confirm_options)

        result = await bare_client.operations().execute(
            echo_operation(), OperationOptions(confirmOptions=confirm_options)
        )

        assert result.skip_preflight is True

    @pytest.mark.asyncio
    async def test_handler_errors_propagate_unchanged(self, bare_client):
        error = LookupError("not found")

        async def handler(operation, client, scope):
            raise error

        bare_client.operations().register(echo_operation, handler)
        with pytest.raises(LookupError) as exc_info:
            await bare_client.operations().execute(echo_operation())
        assert exc_info.value is error


class TestCancellation:
    """Test cooperative cancellation of operations"""

    @pytest.mark.asyncio
    async def test_abort_during_io_raises_reason_and_skips_side_effect(self, bare_client):
        """Test a signal fired while the handler awaits I/O"""
        controller = AbortController()
        started = asyncio.Event()
        release = asyncio.Event()
        side_effects = []

        async def handler(operation, client, scope):
            started.set()
            await release.wait()
            scope.throw_if_canceled()
            side_effects.append("written")
            return "done"

        bare_client.operations().register("SlowOperation", handler)
        run = asyncio.ensure_future(
            bare_client.operations().execute(Operation("SlowOperation"), OperationOptions(signal=controller.signal))
        )
        await started.wait()
        reason = RuntimeError("stop")
        controller.abort(reason)
        release.set()

        with pytest.raises(RuntimeError) as exc_info:
            await run
        assert exc_info.value is reason
        assert side_effects == []
        assert controller.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_handler_ignoring_signal_still_fails(self, bare_client):
        """Test the result is discarded when the signal fired during the run"""
        controller = AbortController()

        async def handler(operation, client, scope):
            controller.abort()
            return "late result"

        bare_client.operations().register(echo_operation, handler)
        with pytest.raises(OperationCanceledError):
            await bare_client.operations().execute(echo_operation(), OperationOptions(signal=controller.signal))

    @pytest.mark.asyncio
    async def test_timeout(self, bare_client):
        async def handler(operation, client, scope):
            await asyncio.sleep(0.05)
            scope.throw_if_canceled()

        bare_client.operations().register(echo_operation, handler)
        with pytest.raises(OperationTimeoutError):
            await bare_client.operations().execute(echo_operation(), OperationOptions(timeout=0.01))


class TestGetTask:
    """Test deferred operations"""

    @pytest.mark.asyncio
    async def test_handler_resolved_when_task_is_created(self, bare_client):
        operations = bare_client.operations()
        operations.register(echo_operation, lambda op, client, scope: "first")

        task = operations.get_task(echo_operation())
        operations.register(echo_operation, lambda op, client, scope: "second")

        assert isinstance(task, Task)
        assert task.get_context() == {"operation": "EchoOperation"}
        assert await task.run() == "first"

    @pytest.mark.asyncio
    async def test_task_runs_lazily(self, bare_client):
        calls = []
        bare_client.operations().register(echo_operation, lambda op, client, scope: calls.append(op.input))

        task = bare_client.operations().get_task(echo_operation("x"))
        assert calls == []

        await task.run()
        await task.run(TaskOptions(force=True))
        assert calls == ["x", "x"]

    @pytest.mark.asyncio
    async def test_task_cancellation(self, bare_client):
        controller = AbortController()
        controller.abort()
        bare_client.operations().register(echo_operation, lambda op, client, scope: "value")
        task = bare_client.operations().get_task(echo_operation())

        with pytest.raises(OperationCanceledError):
            await task.run(TaskOptions(signal=controller.signal))
        assert task.is_canceled()

    def test_missing_handler(self, bare_client):
        with pytest.raises(HandlerMissingError):
            bare_client.operations().get_task(Operation("UnknownOperation"))
