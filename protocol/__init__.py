# Protocol package for the purchase client wire format and connection sessions

from .constants import (
    ProtocolError, TransportError, EndOfStream, RequestTimeout, DecodeError,
    UnexpectedShape, RequestKinds, MessageTypes, READ_TIMEOUTS,
)
from .entities import Item, Visibility, PurchaseRecord, StoreRecord, SearchQuery
from .session import Session
from .wire import read_value, write_value, encode_value, decode_value

__all__ = [
    # Constants and exceptions
    'ProtocolError', 'TransportError', 'EndOfStream', 'RequestTimeout',
    'DecodeError', 'UnexpectedShape', 'RequestKinds', 'MessageTypes',
    'READ_TIMEOUTS',

    # Data entities
    'Item', 'Visibility', 'PurchaseRecord', 'StoreRecord', 'SearchQuery',

    # Connection handling
    'Session',

    # Wire codec
    'read_value', 'write_value', 'encode_value', 'decode_value',
]
