"""Tests for remoterest.cancellation — the per-invocation token."""

import logging
import threading

import pytest

from remoterest.cancellation import CancellationToken, TokenState
from remoterest.errors import RequestCanceled


class TestStates:
    def test_starts_pending(self) -> None:
        token = CancellationToken()
        assert token.state is TokenState.PENDING
        assert not token.cancelled
        assert not token.settled
        assert token.reason is None

    def test_cancel(self) -> None:
        token = CancellationToken()
        assert token.cancel("bye") is True
        assert token.cancelled
        assert token.reason == "bye"

    def test_second_cancel_is_noop(self) -> None:
        token = CancellationToken()
        token.cancel("first")
        assert token.cancel("second") is False
        assert token.reason == "first"

    def test_settle(self) -> None:
        token = CancellationToken()
        assert token.settle() is True
        assert token.settled
        assert token.settle() is True

    def test_cancel_after_settle_is_noop(self) -> None:
        token = CancellationToken()
        token.settle()
        assert token.cancel("late") is False
        assert token.state is TokenState.SETTLED

    def test_settle_after_cancel_reports_failure(self) -> None:
        token = CancellationToken()
        token.cancel()
        assert token.settle() is False
        assert token.cancelled


class TestCallbacks:
    def test_run_on_cancel(self) -> None:
        token = CancellationToken()
        reasons: list = []
        token.on_cancel(reasons.append)
        token.cancel("gone")
        assert reasons == ["gone"]

    def test_run_immediately_when_already_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel("gone")
        reasons: list = []
        token.on_cancel(reasons.append)
        assert reasons == ["gone"]

    def test_never_run_after_settle(self) -> None:
        token = CancellationToken()
        reasons: list = []
        token.on_cancel(reasons.append)
        token.settle()
        token.cancel("late")
        token.on_cancel(reasons.append)
        assert reasons == []

    def test_failing_callback_is_logged_and_others_still_run(self, caplog) -> None:
        token = CancellationToken()
        reasons: list = []

        def broken(reason):
            raise RuntimeError("callback bug")

        token.on_cancel(broken)
        token.on_cancel(reasons.append)
        with caplog.at_level(logging.ERROR, logger="remoterest.rest"):
            assert token.cancel("gone") is True
        assert reasons == ["gone"]
        assert "Cancellation callback failed" in caplog.text


class TestRaiseIfCancelled:
    def test_pending_does_not_raise(self) -> None:
        CancellationToken().raise_if_cancelled()

    def test_cancelled_raises(self) -> None:
        token = CancellationToken()
        token.cancel("client disconnected")
        with pytest.raises(RequestCanceled, match="client disconnected"):
            token.raise_if_cancelled()


class TestConcurrency:
    def test_exactly_one_cancel_wins(self) -> None:
        token = CancellationToken()
        results: list[bool] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            won = token.cancel("race")
            with lock:
                results.append(won)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1

    def test_settle_and_cancel_race_has_one_outcome(self) -> None:
        for _ in range(50):
            token = CancellationToken()
            barrier = threading.Barrier(2)
            outcomes: dict[str, bool] = {}

            def settle() -> None:
                barrier.wait()
                outcomes["settle"] = token.settle()

            def cancel() -> None:
                barrier.wait()
                outcomes["cancel"] = token.cancel("race")

            threads = [threading.Thread(target=settle), threading.Thread(target=cancel)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            assert outcomes["settle"] != outcomes["cancel"]
