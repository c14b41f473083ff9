"""
Defines the data classes exchanged with the server as wire values.

These classes act as Data Transfer Objects (DTOs). The server reconstructs
them from the same object graph the client writes, so their module path and
field names are part of the wire format.
"""

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Set, Tuple


# Thessaloniki city centre, used when the search has no client position.
DEFAULT_LATITUDE = 40.6401
DEFAULT_LONGITUDE = 22.9444
DEFAULT_RADIUS_KM = 10.0


class Visibility(enum.Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass
class Item:
    """A product line: what was sold or is on offer, how many, and at what price."""

    name: str
    category: str
    quantity: int
    price: float
    visibility: Visibility = Visibility.VISIBLE

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"price must be non-negative, got {self.price}")
        if self.quantity < 0:
            raise ValueError(f"quantity must be non-negative, got {self.quantity}")

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class PurchaseRecord:
    """
    One purchase of one customer.

    `customer_contact` holds whichever request parameter produced the record:
    an email on the last-purchase path, a store name or category on the
    generic purchase-info path.
    """

    customer_name: str
    customer_contact: str
    items: Tuple[Item, ...]
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def total_price(self) -> float:
        return sum(item.price * item.quantity for item in self.items)


@dataclass
class StoreRecord:
    """A store as the server describes it. The client never builds these."""

    store_name: str
    items: List[Item]
    latitude: float
    longitude: float
    star_rating: float
    price_category: str

    def has_items(self) -> bool:
        return bool(self.items)


@dataclass
class SearchQuery:
    """Outbound envelope of the aggregated category/geo search."""

    request_id: str
    categories: Set[str]
    latitude: float = DEFAULT_LATITUDE
    longitude: float = DEFAULT_LONGITUDE
    min_stars: float = 0.0
    price_category: str = ""
    radius_km: float = DEFAULT_RADIUS_KM

    @classmethod
    def for_category(cls, category: str) -> "SearchQuery":
        """Builds a fresh query for one category around the default position."""
        return cls(
            request_id=f"client-{int(time.time() * 1000)}",
            categories={category},
        )
