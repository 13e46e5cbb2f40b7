"""Canned payloads and doubles shared by the test modules."""

from __future__ import annotations

import socket
import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

import respx

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 200_000
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 20_000
ICO_BYTES = b"\x00\x00\x01\x00" + b"\x00" * 300


class StubBrowser:
    """Records calls and returns canned HTML / PNG bytes."""

    def __init__(self, html: Optional[str] = None, png: Optional[bytes] = None) -> None:
        self.html = html
        self.png = png
        self.rendered: List[str] = []
        self.screenshots: List[str] = []

    def render(self, url: str) -> Optional[str]:
        self.rendered.append(url)
        return self.html

    def screenshot(self, url: str) -> Optional[bytes]:
        self.screenshots.append(url)
        return self.png


def fallback_404(router: respx.Router) -> None:
    """Answer every request not matched by an earlier route with 404."""
    router.route().respond(404)


@contextmanager
def trickle_server(head: bytes, drip: bytes, interval: float) -> Iterator[str]:
    """Local HTTP server that sends *head* at once, then *drip* one byte at a time.

    Each byte arrives well inside any per-read timeout, so only a wall-clock
    bound on the whole request can cut the response off.  Yields the base URL.
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    listener.bind(("127.0.0.1", 0))
    listener.listen(5)
    listener.settimeout(0.1)
    port = listener.getsockname()[1]
    stop = threading.Event()

    def serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                try:
                    conn.recv(65536)
                    conn.sendall(head)
                    for byte in drip:
                        if stop.is_set():
                            break
                        conn.sendall(bytes([byte]))
                        time.sleep(interval)
                except OSError:
                    # client hung up
                    pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{port}/"
    finally:
        stop.set()
        thread.join(timeout=5)
        listener.close()
