"""
Defines the core constants, custom exceptions, and request kinds for the
purchase client protocol.

This includes the wire tags of every request kind, their fixed read timeouts,
the message type codes delivered to the consumer, and the exception hierarchy
raised by sessions and decoders.
"""

from typing import Optional


class ProtocolError(Exception):
    """
    Base exception for everything that can go wrong during one request/response
    exchange with the server.

    Attributes:
        kind (str, optional): The request kind (wire tag) in which the error
                              occurred, aiding in debugging.
    """

    def __init__(self, message, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class TransportError(ProtocolError):
    """Connection refused, reset, or any other I/O failure on the stream."""


class EndOfStream(TransportError):
    """The server closed the stream before a complete value arrived."""


class RequestTimeout(ProtocolError):
    """No reply arrived within the session's read timeout."""


class DecodeError(ProtocolError):
    """The reply could not be reconstructed into any known wire type."""


class UnexpectedShape(ProtocolError):
    """
    The reply decoded fine but its type does not match what the request kind
    expects.
    """

    def __init__(self, expected: str, value, kind: Optional[str] = None):
        got = type(value).__name__
        super().__init__(f"expected {expected}, got {got}", kind)
        self.expected = expected
        self.got = got


class RequestKinds:
    """
    Wire tags sent as the first value of every request. The server dispatches
    on this string.
    """
    # Sales per store for one product category.
    PRODUCT_CATEGORY = "productCategory"

    # Generic purchase info; resolved through the fallback chain.
    CLIENT = "client"

    # Last confirmed purchase of one customer (by email).
    LAST_PURCHASE = "fetchLastUserPurchase"

    # Item counts bought by one customer at one store.
    CUSTOMER_PURCHASES_BY_STORE = "customerPurchasesByStore"

    # Legacy "fetch items by store" request, first stage of the fallback chain.
    FETCH_PRODUCTS = "fetchProducts"


# Read timeouts in seconds. These are per-kind constants and are never taken
# from configuration or from the caller.
PRIMARY_READ_TIMEOUT_S = 30
LEGACY_READ_TIMEOUT_S = 15

READ_TIMEOUTS = {
    RequestKinds.PRODUCT_CATEGORY: PRIMARY_READ_TIMEOUT_S,
    RequestKinds.LAST_PURCHASE: PRIMARY_READ_TIMEOUT_S,
    RequestKinds.CUSTOMER_PURCHASES_BY_STORE: LEGACY_READ_TIMEOUT_S,
    RequestKinds.FETCH_PRODUCTS: LEGACY_READ_TIMEOUT_S,
    RequestKinds.CLIENT: LEGACY_READ_TIMEOUT_S,
}


class MessageTypes:
    """
    Codes tagging every outcome handed to the consumer context.
    """
    # A request failed in a recoverable way (timeout, bad data, bad shape).
    ERROR = 0

    # Items for a category lookup, trailing "Total Sales" included.
    PRODUCT_CATEGORY = 1

    # A single purchase record, remote or synthesized.
    PURCHASE = 2

    # The server could not be reached or the stream broke.
    CONNECTION_ERROR = 3

    # Items bought by one customer at one store.
    CUSTOMER_PURCHASES = 4


# Separator between customer and store in the purchases-by-store parameter.
CUSTOMER_STORE_SEPARATOR = ";"
