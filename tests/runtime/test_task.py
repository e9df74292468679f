"""
Tests for deferred tasks.
"""

import asyncio

import pytest

from ledger_client.runtime.disposable import AbortController
from ledger_client.runtime.errors import OperationCanceledError, OperationTimeoutError, TaskIsAlreadyRunningError
from ledger_client.runtime.task import Task, TaskOptions, TaskStatus


class TestTaskRun:
    """Test running and caching"""

    @pytest.mark.asyncio
    async def test_result_is_cached(self):
        """Test a successful run is not repeated"""
        calls = []

        def callback(scope):
            calls.append(1)
            return "value"

        task = Task(callback)
        assert task.is_pending()

        assert await task.run() == "value"
        assert await task.run() == "value"

        assert calls == [1]
        assert task.is_successful()
        assert task.get_result() == "value"

    @pytest.mark.asyncio
    async def test_force_runs_again(self):
        """Test force reruns a completed task"""
        counter = {"n": 0}

        async def callback(scope):
            counter["n"] += 1
            return counter["n"]

        task = Task(callback)
        assert await task.run() == 1
        assert await task.run(TaskOptions(force=True)) == 2

    @pytest.mark.asyncio
    async def test_inputs_are_passed(self):
        """Test extra run arguments reach the callback"""
        task = Task(lambda scope, a, b: a + b)
        assert await task.run(None, 2, 3) == 5

    @pytest.mark.asyncio
    async def test_failure_is_cached(self):
        """Test a failed run re-raises the cached error"""
        error = ValueError("bad")

        def callback(scope):
            raise error

        task = Task(callback)
        with pytest.raises(ValueError):
            await task.run()
        assert task.is_failed()
        assert task.get_error() is error

        with pytest.raises(ValueError) as exc_info:
            await task.run()
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_already_running(self):
        """Test a second run while running is rejected"""
        release = asyncio.Event()

        async def callback(scope):
            await release.wait()
            return 1

        task = Task(callback)
        first = asyncio.ensure_future(task.run())
        await asyncio.sleep(0)
        assert task.is_running()

        with pytest.raises(TaskIsAlreadyRunningError):
            await task.run()

        release.set()
        assert await first == 1


class TestTaskCancellation:
    """Test cancellation of task runs"""

    @pytest.mark.asyncio
    async def test_aborted_signal(self):
        """Test a run under an aborted signal ends canceled"""
        controller = AbortController()
        controller.abort()
        task = Task(lambda scope: "ignored")

        with pytest.raises(OperationCanceledError):
            await task.run(TaskOptions(signal=controller.signal))

        assert task.is_canceled()
        assert task.is_completed()

    @pytest.mark.asyncio
    async def test_abort_during_run(self):
        """Test an abort during the run stops the callback at its next check"""
        controller = AbortController()
        side_effects = []

        async def callback(scope):
            controller.abort(RuntimeError("stop"))
            await asyncio.sleep(0)
            scope.throw_if_canceled()
            side_effects.append("written")

        task = Task(callback)
        with pytest.raises(RuntimeError, match="stop"):
            await task.run(TaskOptions(signal=controller.signal))

        assert task.get_status() == TaskStatus.CANCELED
        assert side_effects == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test the run timeout cancels the task"""

        async def callback(scope):
            await asyncio.sleep(0.05)
            scope.throw_if_canceled()

        task = Task(callback)
        with pytest.raises(OperationTimeoutError):
            await task.run(TaskOptions(timeout=0.01))
        assert task.is_canceled()


class TestTaskState:
    """Test status listeners and state helpers"""

    @pytest.mark.asyncio
    async def test_status_listeners(self):
        """Test listeners see each status transition"""
        statuses = []
        successes = []
        task = Task(lambda scope: None)
        task.on_status_change(statuses.append).on_success(lambda: successes.append(True))

        await task.run()

        assert statuses == [TaskStatus.RUNNING, TaskStatus.SUCCESSFUL]
        assert successes == [True]

    @pytest.mark.asyncio
    async def test_load_with_and_reset(self):
        """Test preloading a result and resetting it"""
        task = Task(lambda scope: "fresh").load_with("preloaded")
        assert await task.run() == "preloaded"

        task.reset()
        assert task.is_pending()
        assert await task.run() == "fresh"

    def test_children_and_context(self):
        """Test descendants are collected depth first"""
        leaf = Task(lambda scope: None)
        child = Task(lambda scope: None, children=[leaf])
        root = Task(lambda scope: None, children=[child], context={"name": "root"})

        assert root.get_children() == [child]
        assert root.get_descendants() == [child, leaf]
        assert root.get_context() == {"name": "root"}
