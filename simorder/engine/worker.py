"""
Isolated worker process for the ordering engine.

The host and the engine share no memory: requests, progress notifications
and terminal responses cross a pair of ``multiprocessing`` queues as plain
dicts, and cancellation is a ``multiprocessing.Event`` the host can set at
any time. The engine polls that event at its checkpoints.

Message types
-------------
host -> worker : ``start_sort`` (with ``data``), ``shutdown``
worker -> host : ``progress``, ``complete``, ``error``

``abort`` posted through ``OrderingWorker.post`` sets the event directly;
it never waits behind a running request in the inbox.
"""

import multiprocessing as mp
import queue
import signal
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional

from ..config import OrderingConfig
from ..core.types import OrderFailure, OrderRequest, ProgressEvent
from ..utils.logging_setup import get_logger
from .errors import OrderingError, error_from_kind
from .shell import order_items

logger = get_logger(__name__)

TERMINAL_TYPES = ("complete", "error")


def _serve(inbox, outbox, cancel_event, config_data: Dict[str, Any]) -> None:
    """Worker loop: one request at a time until ``shutdown``."""
    # Ctrl-C reaches the whole process group; the host cancels through the event
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    config = OrderingConfig.from_dict(config_data)

    def emit_progress(event: ProgressEvent) -> None:
        outbox.put(event.to_message())

    while True:
        message = inbox.get()
        kind = message.get("type")

        if kind == "shutdown":
            break

        if kind != "start_sort":
            logger.warning(f"Ignoring unknown message type: {kind!r}")
            continue

        try:
            request = OrderRequest.from_message(message.get("data") or {})
            response = order_items(request, cancel=cancel_event, progress=emit_progress, config=config)
        except OrderingError as e:
            response = OrderFailure(error_kind=e.kind, message=e.message)
        except Exception as e:
            # the host is waiting for a terminal message; report instead of dying
            logger.exception("Ordering worker crashed on request")
            response = OrderFailure(error_kind="InternalError", message=str(e))

        outbox.put(response.to_message())


class OrderingWorker:
    """
    Host-side handle on an ordering worker process.

    Usage::

        with OrderingWorker() as worker:
            keys = worker.run(request, on_progress=print)
    """

    def __init__(self, config: Optional[OrderingConfig] = None, start_method: Optional[str] = None):
        """
        Initialize the worker handle (the process starts on ``start``).

        Args:
            config: tuning knobs shipped to the worker process
            start_method: multiprocessing start method; platform default if None
        """
        self.config = config or OrderingConfig()
        ctx = mp.get_context(start_method)
        self._inbox = ctx.Queue()
        self._outbox = ctx.Queue()
        self._cancel = ctx.Event()
        self._process = ctx.Process(
            target=_serve,
            args=(self._inbox, self._outbox, self._cancel, self.config.to_dict()),
            name="simorder-worker",
            daemon=True,
        )
        self._started = False

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    @property
    def is_alive(self) -> bool:
        return self._started and self._process.is_alive()

    def start(self) -> None:
        if not self._started:
            self._process.start()
            self._started = True
            logger.debug(f"Started ordering worker pid={self._process.pid}")

    def close(self, timeout: float = 5.0) -> None:
        """Ask the worker to stop; terminate it if it does not."""
        if not self._started:
            return
        if self._process.is_alive():
            # a running request only stops at a checkpoint
            self._cancel.set()
            self._inbox.put({"type": "shutdown"})
            self._process.join(timeout)
            if self._process.is_alive():
                logger.warning("Ordering worker did not stop; terminating")
                self._process.terminate()
                self._process.join(timeout)
        self._started = False

    def post(self, message: Dict[str, Any]) -> None:
        """Send a raw protocol message to the worker."""
        if message.get("type") == "abort":
            self.abort()
            return
        if message.get("type") == "start_sort":
            self._cancel.clear()
        self._inbox.put(message)

    def submit(self, request: OrderRequest) -> None:
        """Queue ``request``; the cancellation flag is cleared first."""
        self.start()
        self.post({"type": "start_sort", "data": request.to_message()})

    def abort(self) -> None:
        """Fire-and-forget cancellation of the running request."""
        self._cancel.set()

    def events(self, timeout: Optional[float] = None) -> Iterator[Dict[str, Any]]:
        """
        Yield worker messages up to and including the terminal one.

        Raises:
            TimeoutError: no message arrived within ``timeout`` seconds
        """
        while True:
            try:
                message = self._outbox.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(f"No message from ordering worker within {timeout}s") from None
            yield message
            if message.get("type") in TERMINAL_TYPES:
                return

    def run(
        self,
        request: OrderRequest,
        on_progress: Optional[Callable[[ProgressEvent], None]] = None,
        timeout: Optional[float] = None,
    ) -> List[Hashable]:
        """
        Submit ``request`` and block until it finishes.

        Returns:
            The ordered item keys.

        Raises:
            OrderingError: the typed failure reported by the worker
            TimeoutError: the worker went silent for ``timeout`` seconds
        """
        self.submit(request)
        for message in self.events(timeout):
            kind = message.get("type")
            if kind == "progress":
                if on_progress is not None:
                    on_progress(ProgressEvent(message["message"], message["current"], message["total"]))
            elif kind == "complete":
                return list(message["orderedKeys"])
            elif kind == "error":
                raise error_from_kind(message["errorKind"], message["message"])
        raise OrderingError("Ordering worker stopped without a result")
