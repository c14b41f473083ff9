"""
Request encoders and response decoders, one class per request kind.

Every request writes its kind tag followed by its parameters as separate wire
values, then reads exactly one reply value and checks its shape against what
the kind expects. A reply of the wrong shape raises `UnexpectedShape`; it is
never coerced.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from protocol.constants import (
    CUSTOMER_STORE_SEPARATOR,
    READ_TIMEOUTS,
    ProtocolError,
    RequestKinds,
    UnexpectedShape,
)
from protocol.entities import Item, PurchaseRecord, SearchQuery, StoreRecord
from protocol.session import Connector, Session

TOTAL_SALES_NAME = "Total Sales"


def expect_count_mapping(value: Any, kind: str) -> Dict[str, int]:
    """Checks that a reply is a mapping of name to non-negative integer count."""
    if not isinstance(value, dict):
        raise UnexpectedShape("mapping of name to count", value, kind)
    for name, count in value.items():
        if not isinstance(name, str) or isinstance(count, bool) or not isinstance(count, int):
            raise UnexpectedShape("mapping of name to count", value, kind)
        if count < 0:
            raise UnexpectedShape("mapping of name to non-negative count", value, kind)
    return value


def expect_list_of(value: Any, entity: type, kind: str) -> List[Any]:
    """Checks that a reply is a list whose elements are all `entity` instances."""
    expected = f"list of {entity.__name__}"
    if not isinstance(value, list):
        raise UnexpectedShape(expected, value, kind)
    for element in value:
        if not isinstance(element, entity):
            raise UnexpectedShape(expected, value, kind)
    return value


class Request:
    """
    Base class of all requests. Subclasses set `kind`, list their outbound
    parameters in `params()` and interpret the reply in `decode()`.
    """

    kind: str = ""

    @property
    def read_timeout(self) -> int:
        return READ_TIMEOUTS[self.kind]

    def params(self) -> Tuple[Any, ...]:
        return ()

    def open_session(self, host: str, port: int, connector: Connector) -> Session:
        """Opens a session with the read timeout of this kind."""
        try:
            return Session.open(host, port, self.read_timeout, connector)
        except ProtocolError as e:
            e.kind = e.kind or self.kind
            raise

    def write_to(self, session: Session) -> None:
        session.send_value(self.kind)
        for value in self.params():
            session.send_value(value)
        logging.debug(
            "action: request_sent | kind: %s | params: %d", self.kind, len(self.params())
        )

    def decode(self, value: Any):
        raise NotImplementedError

    def exchange(self, session: Session):
        """Writes the request, reads one reply and decodes it."""
        try:
            self.write_to(session)
            reply = session.receive_value()
        except ProtocolError as e:
            e.kind = e.kind or self.kind
            raise
        logging.debug(
            "action: reply_received | kind: %s | type: %s",
            self.kind,
            type(reply).__name__,
        )
        return self.decode(reply)


class CategoryLookup(Request):
    """Sales per store for one category, plus a trailing total line."""

    kind = RequestKinds.PRODUCT_CATEGORY

    def __init__(self, category: str):
        self.category = category

    def params(self) -> Tuple[Any, ...]:
        return (self.category,)

    def decode(self, value: Any) -> List[Item]:
        sales_by_store = expect_count_mapping(value, self.kind)
        items = [
            Item(store_name, self.category, count, 0.0)
            for store_name, count in sales_by_store.items()
        ]
        total = sum(sales_by_store.values())
        items.append(Item(TOTAL_SALES_NAME, "", total, 0.0))
        logging.info(
            "action: category_lookup | result: success | category: %s | stores: %d | total: %d",
            self.category,
            len(sales_by_store),
            total,
        )
        return items


class LastPurchaseLookup(Request):
    """Last confirmed purchase of one customer; `None` means there is none."""

    kind = RequestKinds.LAST_PURCHASE

    def __init__(self, contact: str):
        self.contact = contact

    def params(self) -> Tuple[Any, ...]:
        return (self.contact,)

    def decode(self, value: Any) -> Optional[PurchaseRecord]:
        if value is None:
            logging.info(
                "action: last_purchase | result: empty | contact: %s", self.contact
            )
            return None
        if not isinstance(value, PurchaseRecord):
            raise UnexpectedShape("PurchaseRecord or empty marker", value, self.kind)
        return value


class CustomerPurchasesByStore(Request):
    """Item counts bought by one customer at one store."""

    kind = RequestKinds.CUSTOMER_PURCHASES_BY_STORE

    def __init__(self, customer_name: str, store_name: str):
        self.customer_name = customer_name
        self.store_name = store_name

    @classmethod
    def from_param(cls, param: str) -> "CustomerPurchasesByStore":
        """
        Parses the combined `customer;store` parameter.

        Raises:
            ValueError: If the separator is missing.
        """
        parts = (param or "").split(CUSTOMER_STORE_SEPARATOR)
        if len(parts) < 2:
            raise ValueError(
                f"expected 'customer{CUSTOMER_STORE_SEPARATOR}store', got {param!r}"
            )
        return cls(parts[0], parts[1])

    def params(self) -> Tuple[Any, ...]:
        return (self.customer_name, self.store_name)

    def decode(self, value: Any) -> List[Item]:
        purchases = expect_count_mapping(value, self.kind)
        return [Item(name, "", count, 0.0) for name, count in purchases.items()]


class LegacyProductFetch(Request):
    """Legacy "fetch items by store" request."""

    kind = RequestKinds.FETCH_PRODUCTS

    def __init__(self, param: str):
        self.param = param

    def params(self) -> Tuple[Any, ...]:
        return (self.param,)

    def decode(self, value: Any) -> List[Item]:
        return expect_list_of(value, Item, self.kind)


class AggregatedSearch(Request):
    """Category/geo search; the reply items of every store are flattened."""

    kind = RequestKinds.CLIENT

    def __init__(self, query: SearchQuery):
        self.query = query

    def params(self) -> Tuple[Any, ...]:
        return (self.query,)

    def decode(self, value: Any) -> List[Item]:
        stores: List[StoreRecord] = expect_list_of(value, StoreRecord, self.kind)
        items: List[Item] = []
        for store in stores:
            if store.has_items():
                items.extend(store.items)
            else:
                logging.debug("action: aggregated_search | store: %s | items: 0", store.store_name)
        return items
