"""
Tests for the isolated worker process and its message protocol.
"""

import os
import signal
import sys
import time

import pytest

from simorder.config import OrderingConfig
from simorder.core.types import OrderRequest
from simorder.engine.errors import CancelledError, NoUsableHashesError, OrderingError, error_from_kind
from simorder.engine.worker import OrderingWorker

TIMEOUT = 60.0


@pytest.fixture
def worker():
    with OrderingWorker(OrderingConfig(progress_interval=1)) as handle:
        yield handle


class TestOrderingWorker:
    """Test request/response handling across the process boundary."""

    def test_runs_example(self, worker, example_items, example_hashes):
        request = OrderRequest(strategy="mst", items=example_items, hashes=example_hashes)
        events = []
        keys = worker.run(request, on_progress=events.append, timeout=TIMEOUT)

        assert keys == ["A", "B", "C", "D"]
        assert [e.message for e in events][:2] == [
            "Building VP-Tree index...",
            "Building similarity graph with VP-Tree...",
        ]

    def test_error_is_rebuilt_on_host(self, worker):
        request = OrderRequest(strategy="vptree", items=["a", "b"], hashes={"a": "01"})
        with pytest.raises(NoUsableHashesError) as exc_info:
            worker.run(request, timeout=TIMEOUT)
        assert exc_info.value.kind == "NoUsableHashes"

    def test_unknown_strategy_message(self, worker, example_items, example_hashes):
        worker.post({
            "type": "start_sort",
            "data": {"strategy": "bubble", "items": example_items, "hashes": example_hashes},
        })
        messages = list(worker.events(timeout=TIMEOUT))
        assert messages[-1]["type"] == "error"
        assert messages[-1]["errorKind"] == "UnknownStrategy"

    def test_abort_cancels_running_request(self, worker, hash_factory):
        keys, hashes = hash_factory(3000, bits=64, seed=1)
        worker.submit(OrderRequest(strategy="mst", items=keys, hashes=hashes))
        worker.abort()

        messages = list(worker.events(timeout=TIMEOUT))
        assert messages[-1] == {
            "type": "error",
            "errorKind": "Cancelled",
            "message": "Sorting cancelled by user",
        }

    def test_posted_abort_message(self, worker, hash_factory):
        keys, hashes = hash_factory(3000, bits=64, seed=2)
        worker.post({"type": "start_sort", "data": {"strategy": "vptree", "items": keys, "hashes": hashes}})
        worker.post({"type": "abort"})

        terminal = list(worker.events(timeout=TIMEOUT))[-1]
        assert terminal["errorKind"] == "Cancelled"

    def test_worker_is_reusable_after_cancel(self, worker, hash_factory, example_items, example_hashes):
        keys, hashes = hash_factory(3000, bits=64, seed=3)
        worker.submit(OrderRequest(strategy="mst", items=keys, hashes=hashes))
        worker.abort()
        assert list(worker.events(timeout=TIMEOUT))[-1]["errorKind"] == "Cancelled"

        # the next submission clears the flag
        request = OrderRequest(strategy="simple", items=example_items, hashes=example_hashes)
        assert worker.run(request, timeout=TIMEOUT) == ["A", "B", "C", "D"]

    def test_unknown_message_types_are_ignored(self, worker, example_items, example_hashes):
        worker.post({"type": "ping"})
        request = OrderRequest(strategy="vptree", items=example_items, hashes=example_hashes)
        assert worker.run(request, timeout=TIMEOUT) == ["A", "B", "C", "D"]

    def test_events_time_out_when_idle(self, worker):
        with pytest.raises(TimeoutError):
            next(worker.events(timeout=0.2))


class TestWorkerLifecycle:
    """Test start and shutdown."""

    def test_close_stops_process(self):
        handle = OrderingWorker()
        assert not handle.is_alive
        handle.start()
        assert handle.is_alive
        handle.close()
        assert not handle.is_alive

    def test_close_without_start_is_noop(self):
        OrderingWorker().close()

    def test_run_starts_lazily(self, example_items, example_hashes):
        handle = OrderingWorker()
        try:
            request = OrderRequest(strategy="mst", items=example_items, hashes=example_hashes)
            assert handle.run(request, timeout=TIMEOUT) == ["A", "B", "C", "D"]
        finally:
            handle.close()

    def test_failures_are_ordering_errors(self):
        with OrderingWorker() as handle:
            request = OrderRequest(strategy="simple", items=["a", "a"], hashes={"a": "1"})
            with pytest.raises(OrderingError) as exc_info:
                handle.run(request, timeout=TIMEOUT)
        assert exc_info.value.kind == "InvalidRequest"


@pytest.mark.skipif(not hasattr(signal, "SIGINT") or sys.platform == "win32", reason="POSIX signals")
class TestInterrupts:
    """Test that a terminal Ctrl-C leaves cancellation to the host."""

    def test_sigint_does_not_kill_worker(self, worker, hash_factory):
        keys, hashes = hash_factory(20000, bits=64, seed=5)
        worker.submit(OrderRequest(strategy="simple", items=keys, hashes=hashes))

        # the first placement event means the worker loop is running the request
        events = worker.events(timeout=TIMEOUT)
        assert next(events)["type"] == "progress"

        os.kill(worker._process.pid, signal.SIGINT)
        time.sleep(0.2)
        assert worker.is_alive

        worker.abort()
        terminal = list(events)[-1]
        assert terminal["type"] == "error"
        assert terminal["errorKind"] == "Cancelled"
        assert isinstance(error_from_kind(terminal["errorKind"], terminal["message"]), CancelledError)
