"""
Tests for abort signals, linked signals and disposables.
"""

import asyncio

import pytest

from ledger_client.runtime.disposable import AbortController, AbortSignal, Disposable, linked_signal
from ledger_client.runtime.errors import OperationCanceledError, OperationTimeoutError


class TestAbortController:
    """Test abort signal behavior"""

    def test_abort_without_reason(self):
        """Test aborting with the default reason"""
        controller = AbortController()
        assert not controller.signal.aborted

        controller.abort()

        assert controller.signal.aborted
        assert isinstance(controller.signal.reason, OperationCanceledError)

    def test_abort_keeps_exception_reason(self):
        """Test an exception reason is stored as is"""
        controller = AbortController()
        reason = RuntimeError("user left")
        controller.abort(reason)
        assert controller.signal.reason is reason

    def test_abort_wraps_plain_reason(self):
        """Test a non-exception reason is wrapped"""
        controller = AbortController()
        controller.abort("navigated away")
        assert isinstance(controller.signal.reason, OperationCanceledError)
        assert controller.signal.reason.reason == "navigated away"

    def test_abort_is_one_shot(self):
        """Test only the first abort counts"""
        controller = AbortController()
        seen = []
        controller.signal.add_listener(seen.append)
        first = RuntimeError("first")

        controller.abort(first)
        controller.abort(RuntimeError("second"))

        assert controller.signal.reason is first
        assert seen == [first]

    def test_throw_if_aborted(self):
        """Test throw_if_aborted raises the stored reason"""
        signal = AbortSignal.aborted_with(ValueError("stop"))
        with pytest.raises(ValueError, match="stop"):
            signal.throw_if_aborted()


class TestDisposable:
    """Test binding callbacks to signals"""

    @pytest.mark.asyncio
    async def test_run_returns_result_and_removes_listener(self):
        """Test the signal listener is removed once the callback settles"""
        controller = AbortController()
        disposable = Disposable(controller.signal)
        assert controller.signal.listener_count() == 1

        result = await disposable.run(lambda scope: 42)

        assert result == 42
        assert controller.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_run_removes_listener_on_error(self):
        """Test the listener is removed when the callback raises"""
        controller = AbortController()
        disposable = Disposable(controller.signal)

        async def failing(scope):
            raise KeyError("boom")

        with pytest.raises(KeyError):
            await disposable.run(failing)
        assert controller.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_many_runs_on_long_lived_signal(self):
        """Test listeners do not accumulate on a shared signal"""
        controller = AbortController()
        for i in range(25):
            assert await Disposable(controller.signal).run(lambda scope, i=i: i) == i
        assert controller.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_abort_after_settle_is_ignored(self):
        """Test a settled scope stays settled when its signal aborts later"""
        controller = AbortController()
        disposable = Disposable(controller.signal)
        scopes = []

        await disposable.run(lambda scope: scopes.append(scope))
        controller.abort()

        assert not disposable.is_canceled()
        assert disposable.get_cancelation_error() is None
        disposable.throw_if_canceled()
        assert not scopes[0].is_canceled()
        scopes[0].throw_if_canceled()

    @pytest.mark.asyncio
    async def test_already_aborted_signal(self):
        """Test a disposable bound to an aborted signal starts canceled"""
        reason = RuntimeError("too late")
        disposable = Disposable(AbortSignal.aborted_with(reason))

        def callback(scope):
            assert scope.is_canceled()
            assert scope.get_cancelation_error() is reason
            scope.throw_if_canceled()

        with pytest.raises(RuntimeError) as exc_info:
            await disposable.run(callback)
        assert exc_info.value is reason

    @pytest.mark.asyncio
    async def test_cancel_listeners_receive_reason(self):
        """Test on_cancel listeners are called with the cancellation error"""
        controller = AbortController()
        disposable = Disposable(controller.signal)
        seen = []

        async def callback(scope):
            scope.on_cancel(seen.append)
            controller.abort("stop")
            return scope.get_cancelation_error()

        error = await disposable.run(callback)

        assert isinstance(error, OperationCanceledError)
        assert seen == [error]

    @pytest.mark.asyncio
    async def test_cancel_during_io_skips_side_effect(self):
        """Test a signal fired during awaited I/O stops the callback at its next check"""
        controller = AbortController()
        started = asyncio.Event()
        release = asyncio.Event()
        side_effects = []

        async def callback(scope):
            started.set()
            await release.wait()
            scope.throw_if_canceled()
            side_effects.append("written")

        run = asyncio.ensure_future(Disposable(controller.signal).run(callback))
        await started.wait()
        reason = RuntimeError("abandoned")
        controller.abort(reason)
        release.set()

        with pytest.raises(RuntimeError) as exc_info:
            await run
        assert exc_info.value is reason
        assert side_effects == []


class TestLinkedSignal:
    """Test signals derived from a parent and a timeout"""

    def test_without_timeout_returns_parent(self):
        """Test no wrapper signal is created without a timeout"""
        parent = AbortController()
        with linked_signal(parent.signal) as signal:
            assert signal is parent.signal

    def test_without_anything_returns_fresh_signal(self):
        """Test a fresh signal when neither parent nor timeout is given"""
        with linked_signal() as signal:
            assert isinstance(signal, AbortSignal)
            assert not signal.aborted

    @pytest.mark.asyncio
    async def test_timeout_aborts(self):
        """Test the timeout aborts the linked signal"""
        with linked_signal(timeout=0.01) as signal:
            await asyncio.sleep(0.05)
            assert signal.aborted
            assert isinstance(signal.reason, OperationTimeoutError)

    @pytest.mark.asyncio
    async def test_parent_abort_forwards_and_unlinks(self):
        """Test the parent abort is forwarded and the link removed on exit"""
        parent = AbortController()
        reason = RuntimeError("parent")
        with linked_signal(parent.signal, timeout=10) as signal:
            assert parent.signal.listener_count() == 1
            parent.abort(reason)
            assert signal.reason is reason
        assert parent.signal.listener_count() == 0

    @pytest.mark.asyncio
    async def test_aborted_parent(self):
        """Test an already aborted parent aborts the linked signal immediately"""
        parent = AbortSignal.aborted_with(RuntimeError("done"))
        with linked_signal(parent, timeout=10) as signal:
            assert signal.aborted
            assert signal.reason is parent.reason
