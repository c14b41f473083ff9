"""
Request worker: one thread per user-triggered request.

A worker opens its own session, runs the request matching its kind (or the
fallback chain), closes the session, and dispatches exactly one outcome. No
handle to the thread is kept, there is no cancellation, and nothing stops two
workers from running at the same time; their outcomes may arrive in either
order.
"""

import logging
import socket
import threading

from protocol.constants import (
    DecodeError,
    MessageTypes,
    RequestKinds,
    RequestTimeout,
    TransportError,
    UnexpectedShape,
)
from protocol.session import Connector, Session

from .dispatcher import (
    ConnectionErrorOutcome,
    ErrorOutcome,
    ItemsReady,
    PurchaseReady,
    ResultDispatcher,
)
from .fallback import FallbackChain, synthesize_purchase
from .request_codecs import CategoryLookup, CustomerPurchasesByStore, LastPurchaseLookup

log = logging.getLogger("purchase-worker")

TIMEOUT_MESSAGE = "Connection timed out. Please try again."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"

SUPPORTED_KINDS = (
    RequestKinds.PRODUCT_CATEGORY,
    RequestKinds.CLIENT,
    RequestKinds.LAST_PURCHASE,
    RequestKinds.CUSTOMER_PURCHASES_BY_STORE,
)


class RequestWorker(threading.Thread):
    def __init__(
        self,
        dispatcher: ResultDispatcher,
        host: str,
        port: int,
        kind: str,
        param: str,
        connector: Connector = socket.create_connection,
    ):
        super().__init__(name=f"request-{kind}", daemon=True)
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.kind = kind
        self.param = param
        self.connector = connector
        self._handlers = {
            RequestKinds.PRODUCT_CATEGORY: self._product_category,
            RequestKinds.CLIENT: self._purchase_info,
            RequestKinds.LAST_PURCHASE: self._last_purchase,
            RequestKinds.CUSTOMER_PURCHASES_BY_STORE: self._purchases_by_store,
        }

    def run(self):
        log.info(
            "action: request_start | kind: %s | param: %s | peer: %s:%s",
            self.kind,
            self.param,
            self.host,
            self.port,
        )
        outcome = self.execute()
        self.dispatcher.dispatch(outcome)
        log.info(
            "action: request_done | kind: %s | outcome: %s",
            self.kind,
            type(outcome).__name__,
        )

    def execute(self):
        """
        Runs the request to completion and returns its single outcome. The
        session, if one was opened, is closed before this returns.
        """
        handler = self._handlers.get(self.kind)
        if handler is None:
            log.warning("action: request_start | result: unsupported_kind | kind: %s", self.kind)
            return ErrorOutcome(f"Error: unsupported request kind '{self.kind}'")

        try:
            return handler()
        except RequestTimeout as e:
            log.error("action: request | kind: %s | result: timeout | error: %s", self.kind, e)
            return ErrorOutcome(TIMEOUT_MESSAGE)
        except DecodeError as e:
            log.error("action: request | kind: %s | result: decode_fail | error: %s", self.kind, e)
            return ErrorOutcome(f"Data format error: {e}")
        except UnexpectedShape as e:
            log.error(
                "action: request | kind: %s | result: unexpected_shape | expected: %s | got: %s",
                e.kind or self.kind,
                e.expected,
                e.got,
            )
            return ErrorOutcome(UNEXPECTED_RESPONSE_MESSAGE)
        except TransportError as e:
            log.error("action: request | kind: %s | result: connection_fail | error: %s", self.kind, e)
            return ConnectionErrorOutcome(f"Network error: {e}")
        except ValueError as e:
            log.error("action: request | kind: %s | result: bad_param | error: %s", self.kind, e)
            return ErrorOutcome(f"Error: {e}")
        except Exception as e:
            log.exception("action: request | kind: %s | result: fail", self.kind)
            return ErrorOutcome(f"Error: {e}")

    def _open_session(self, request) -> Session:
        return request.open_session(self.host, self.port, self.connector)

    def _product_category(self):
        request = CategoryLookup(self.param)
        with self._open_session(request) as session:
            items = request.exchange(session)
        return ItemsReady(tuple(items), MessageTypes.PRODUCT_CATEGORY)

    def _last_purchase(self):
        request = LastPurchaseLookup(self.param)
        with self._open_session(request) as session:
            purchase = request.exchange(session)
        if purchase is None:
            purchase = synthesize_purchase(self.param)
        return PurchaseReady(purchase)

    def _purchases_by_store(self):
        request = CustomerPurchasesByStore.from_param(self.param)
        with self._open_session(request) as session:
            items = request.exchange(session)
        return ItemsReady(tuple(items), MessageTypes.CUSTOMER_PURCHASES)

    def _purchase_info(self):
        chain = FallbackChain(self.host, self.port, self.connector)
        return PurchaseReady(chain.run(self.param))


def launch_request(
    dispatcher: ResultDispatcher,
    host: str,
    port: int,
    kind: str,
    param: str,
    connector: Connector = socket.create_connection,
) -> RequestWorker:
    """Starts a worker for one request. Callers are free to drop the handle."""
    worker = RequestWorker(dispatcher, host, port, kind, param, connector)
    worker.start()
    return worker
