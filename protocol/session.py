"""
Provides the single-use connection session that carries one request/response
exchange with the server.
"""

import logging
import socket
from typing import Any, Callable, Tuple

from .constants import EndOfStream, RequestTimeout, TransportError
from .wire import read_value, write_value

Connector = Callable[[Tuple[str, int]], socket.socket]


class Session:
    """
    Owns one stream connection for the lifetime of a single request.

    Sessions are never reused. `close()` is idempotent and runs on every exit
    path when the session is used as a context manager.
    """

    def __init__(self, sock: socket.socket, read_timeout: float, peer: str = ""):
        self._sock = sock
        self._peer = peer
        self._closed = False
        self._writer = None
        self._reader = None
        try:
            sock.settimeout(read_timeout)
            self._writer = sock.makefile("wb")
            self._reader = sock.makefile("rb")
        except OSError as e:
            self.close()
            raise TransportError(f"cannot set up streams: {e}") from e

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        read_timeout: float,
        connector: Connector = socket.create_connection,
    ) -> "Session":
        """
        Connects to the server and returns a ready session.

        The connect itself uses the platform default timeout; `read_timeout`
        bounds every send and receive after that.

        Raises:
            TransportError: If the connection cannot be established.
        """
        peer = f"{host}:{port}"
        logging.debug("action: session_open | result: in_progress | peer: %s", peer)
        try:
            sock = connector((host, port))
        except OSError as e:
            logging.error("action: session_open | result: fail | peer: %s | error: %s", peer, e)
            raise TransportError(str(e)) from e
        logging.debug(
            "action: session_open | result: success | peer: %s | read_timeout: %s",
            peer,
            read_timeout,
        )
        return cls(sock, read_timeout, peer)

    @property
    def closed(self) -> bool:
        return self._closed

    def send_value(self, value: Any) -> None:
        """Writes one value and flushes it before returning."""
        if self._closed:
            raise TransportError("session is closed")
        try:
            write_value(self._writer, value)
        except TimeoutError as e:
            raise RequestTimeout("timed out while sending") from e
        except OSError as e:
            raise TransportError(str(e)) from e

    def receive_value(self) -> Any:
        """
        Reads exactly one value from the server.

        Raises:
            RequestTimeout: If nothing arrives within the read timeout.
            EndOfStream: If the server closed the stream first.
            DecodeError: If the reply is not a known wire type.
            TransportError: On any other stream failure.
        """
        if self._closed:
            raise TransportError("session is closed")
        try:
            return read_value(self._reader)
        except TimeoutError as e:
            raise RequestTimeout("timed out waiting for a reply") from e
        except EOFError as e:
            raise EndOfStream("server closed the connection") from e
        except OSError as e:
            raise TransportError(str(e)) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for stream in (self._writer, self._reader, self._sock):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as exc:
                logging.warning(
                    "action: session_close | result: fail | peer: %s | error: %s",
                    self._peer,
                    exc,
                )
        logging.debug("action: session_close | result: success | peer: %s", self._peer)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
