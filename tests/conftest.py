import io
import pickle
import socket
import threading

import pytest

from protocol.constants import RequestKinds
from protocol.wire import encode_value, read_value, write_value

# Number of parameter values that follow each kind tag on the wire.
PARAM_COUNTS = {
    RequestKinds.PRODUCT_CATEGORY: 1,
    RequestKinds.LAST_PURCHASE: 1,
    RequestKinds.CUSTOMER_PURCHASES_BY_STORE: 2,
    RequestKinds.FETCH_PRODUCTS: 1,
    RequestKinds.CLIENT: 1,
}

# Returned by a responder to make the server hang up without replying.
HANG_UP = object()


class _OverflowingFloat:
    def __reduce__(self):
        return (float, (10**400,))


# Uses only allowed globals, but rebuilding it raises OverflowError.
OVERFLOWING_FLOAT_REPLY = pickle.dumps(_OverflowingFloat(), protocol=4)


# ---------- fakes ----------
class RaisingReader:
    def __init__(self, exc):
        self.exc = exc
        self.closed = False

    def read(self, *args):
        raise self.exc

    readline = read

    def close(self):
        self.closed = True


class FakeWriter:
    def __init__(self, exc=None):
        self.exc = exc
        self.data = bytearray()
        self.writes_since_flush = 0
        self.flushes = 0
        self.closed = False

    def write(self, b):
        if self.exc is not None:
            raise self.exc
        self.data += b
        self.writes_since_flush += 1
        return len(b)

    def flush(self):
        self.flushes += 1
        self.writes_since_flush = 0

    def close(self):
        self.closed = True


class FakeSocket:
    """Socket stand-in with a scripted reply stream and recorded writes."""

    def __init__(self, replies=(), reply_bytes=None, read_error=None, write_error=None):
        if reply_bytes is None:
            reply_bytes = b"".join(encode_value(v) for v in replies)
        self.reply_bytes = reply_bytes
        self.read_error = read_error
        self.writer = FakeWriter(write_error)
        self.reader = None
        self.timeout = None
        self.close_calls = 0

    def settimeout(self, t):
        self.timeout = t

    def makefile(self, mode):
        if "w" in mode:
            return self.writer
        if self.read_error is not None:
            self.reader = RaisingReader(self.read_error)
        else:
            self.reader = io.BytesIO(self.reply_bytes)
        return self.reader

    def close(self):
        self.close_calls += 1

    def sent_values(self):
        stream = io.BytesIO(bytes(self.writer.data))
        values = []
        while True:
            try:
                values.append(read_value(stream))
            except EOFError:
                return values


class FakeConnector:
    """
    Hands out the given sockets in order, one per connection attempt. An
    exception in the list is raised instead of connecting.
    """

    def __init__(self, *sockets):
        self._sockets = list(sockets)
        self.addresses = []

    def __call__(self, address):
        self.addresses.append(address)
        nxt = self._sockets.pop(0)
        if isinstance(nxt, BaseException):
            raise nxt
        return nxt

    @property
    def attempts(self):
        return len(self.addresses)


class LoopbackServer:
    """
    Minimal threaded TCP server speaking the wire codec. Each connection reads
    a kind tag and its parameters, asks `responder(kind, params)` for the reply
    and writes it back.
    """

    def __init__(self, responder):
        self.responder = responder
        self.requests = []
        self._lock = threading.Lock()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(16)
        self.host, self.port = self._sock.getsockname()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def _accept_loop(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except OSError:
                return
            threading.Thread(target=self._serve, args=(conn,), daemon=True).start()

    def _serve(self, conn):
        with conn:
            reader = conn.makefile("rb")
            writer = conn.makefile("wb")
            try:
                kind = read_value(reader)
                params = tuple(read_value(reader) for _ in range(PARAM_COUNTS[kind]))
                with self._lock:
                    self.requests.append((kind, params))
                reply = self.responder(kind, params)
                if reply is not HANG_UP:
                    write_value(writer, reply)
            finally:
                reader.close()
                writer.close()

    def close(self):
        self._stop.set()
        self._sock.close()


@pytest.fixture
def loopback_server():
    servers = []

    def start(responder):
        srv = LoopbackServer(responder)
        servers.append(srv)
        return srv

    yield start
    for srv in servers:
        srv.close()
