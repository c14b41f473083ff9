"""
Results consumer that drains the delivery channel on the consumer context.
"""

import logging
import queue
import threading
from typing import Any, Callable, Dict, Optional

_STOP = object()


class ResultsConsumer:
    """
    Routes every outcome on the channel to the handler registered for its
    message type. Handlers run on the thread that drains the channel and are
    the only place where consumer state changes.
    """

    def __init__(self, channel: queue.Queue):
        self.channel = channel
        self.handlers: Dict[int, Callable[[Any], None]] = {}
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    def register_handler(self, what: int, handler: Callable[[Any], None]):
        self.handlers[what] = handler

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """
        Takes one outcome off the channel and handles it.

        Returns:
            False if nothing arrived within `timeout` or a stop was requested,
            True otherwise.
        """
        try:
            outcome = self.channel.get(timeout=timeout)
        except queue.Empty:
            return False
        if outcome is _STOP:
            return False

        handler = self.handlers.get(outcome.what)
        if handler is None:
            logging.warning(
                "action: handle_outcome | result: unknown_type | what: %d", outcome.what
            )
            return True

        logging.debug(
            "action: handle_outcome | what: %d | type: %s",
            outcome.what,
            type(outcome).__name__,
        )
        handler(outcome)
        return True

    def start(self):
        """Drains the channel on a dedicated thread until `stop()`."""
        self._thread = threading.Thread(target=self._run, name="results-consumer", daemon=True)
        self._thread.start()
        logging.info("action: results_consumer_start | result: success")

    def _run(self):
        while not self._stopping.is_set():
            try:
                self.process_next()
            except Exception:
                logging.exception("action: handle_outcome | result: fail")

    def stop(self, timeout: Optional[float] = None):
        self._stopping.set()
        self.channel.put(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
        logging.info("action: results_consumer_stop | result: success")
