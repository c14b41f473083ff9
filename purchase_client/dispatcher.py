"""
Outcome messages and the dispatcher that hands them to the consumer context.
"""

import logging
import queue
from dataclasses import dataclass
from typing import Optional, Tuple

from protocol.constants import MessageTypes
from protocol.entities import Item, PurchaseRecord


@dataclass(frozen=True)
class ItemsReady:
    items: Tuple[Item, ...]
    what: int = MessageTypes.PRODUCT_CATEGORY


@dataclass(frozen=True)
class PurchaseReady:
    purchase: PurchaseRecord
    what: int = MessageTypes.PURCHASE


@dataclass(frozen=True)
class ErrorOutcome:
    """A recoverable failure; the message is meant for the end user."""

    message: str
    what: int = MessageTypes.ERROR


@dataclass(frozen=True)
class ConnectionErrorOutcome:
    message: str
    what: int = MessageTypes.CONNECTION_ERROR


class ResultDispatcher:
    """
    Posts outcomes to the single-consumer delivery channel.

    Workers only ever call `dispatch`; everything that happens to shared
    state afterwards is up to whoever drains `channel`.
    """

    def __init__(self, channel: Optional[queue.Queue] = None):
        self.channel = channel if channel is not None else queue.Queue()

    def dispatch(self, outcome) -> None:
        logging.debug(
            "action: dispatch_outcome | what: %d | type: %s",
            outcome.what,
            type(outcome).__name__,
        )
        self.channel.put(outcome)
