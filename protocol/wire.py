"""
Provides the object-graph codec used on the wire.

The protocol is a sequence of discrete values with no framing or type tag of
its own: each value is written as one pickle and the reader decodes exactly
one pickle at a time. Decoding goes through a restricted unpickler that only
reconstructs plain containers, scalars and the entities in
`protocol.entities`; anything else is a decode failure.
"""

import io
import pickle
from typing import Any, BinaryIO

from .constants import DecodeError
from .entities import Item, PurchaseRecord, SearchQuery, StoreRecord, Visibility

WIRE_PICKLE_PROTOCOL = 4

_ALLOWED_GLOBALS = {
    ("builtins", "dict"),
    ("builtins", "list"),
    ("builtins", "set"),
    ("builtins", "frozenset"),
    ("builtins", "tuple"),
    ("builtins", "str"),
    ("builtins", "int"),
    ("builtins", "float"),
    ("builtins", "bool"),
    ("datetime", "datetime"),
}

_WIRE_TYPES = {
    cls.__name__: cls
    for cls in (Item, PurchaseRecord, StoreRecord, SearchQuery, Visibility)
}


class WireUnpickler(pickle.Unpickler):
    """Unpickler that refuses every global outside the known wire types."""

    def find_class(self, module: str, name: str):
        if module == Item.__module__ and name in _WIRE_TYPES:
            return _WIRE_TYPES[name]
        if (module, name) in _ALLOWED_GLOBALS:
            return super().find_class(module, name)
        raise pickle.UnpicklingError(f"{module}.{name} is not a known wire type")


def write_value(writer: BinaryIO, value: Any) -> None:
    """Writes one value and flushes so the peer can decode it on its own."""
    pickle.dump(value, writer, protocol=WIRE_PICKLE_PROTOCOL)
    writer.flush()


def read_value(reader: BinaryIO) -> Any:
    """
    Reads exactly one value from the stream.

    Raises:
        EOFError: If the stream is at its end before the value starts.
        DecodeError: If the bytes are not a value of a known wire type, or if
            rebuilding the value fails for any reason.
        OSError: On any failure of the underlying stream, timeouts included.
    """
    try:
        return WireUnpickler(reader).load()
    except (EOFError, OSError):
        raise
    except Exception as e:
        raise DecodeError(f"cannot decode reply: {e}") from e


def encode_value(value: Any) -> bytes:
    buf = io.BytesIO()
    write_value(buf, value)
    return buf.getvalue()


def decode_value(raw: bytes) -> Any:
    """Decodes a single value from raw bytes, the counterpart of `encode_value`."""
    return read_value(io.BytesIO(raw))
