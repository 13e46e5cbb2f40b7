"""Direct HTTP fetcher for pages and sub-resources (favicons, images, oEmbed).

``httpx`` timeouts apply to each socket operation, so on their own they do not
stop a server that trickles bytes.  Every call therefore also runs under a
:class:`_Deadline` that shuts the request's sockets down once *timeout* has
elapsed, which bounds connect, headers and body together.

Failures are returned as :class:`FetchFailure` values rather than raised.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Mapping, Optional

import httpx

from backend.scraper.models import (
    FailureReason,
    FetchedResource,
    FetchFailure,
    FetchOutcome,
)

logger = logging.getLogger(__name__)

_PAGE_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)
IMAGE_HEADERS = {
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
}

# httpcore trace events that hand over a freshly opened network stream.
_CONNECT_EVENTS = (
    "connection.connect_tcp.complete",
    "connection.connect_unix_socket.complete",
)


def browser_headers(user_agent: str) -> dict[str, str]:
    """Return the header set a desktop Chrome sends on a top-level navigation."""
    return {
        "User-Agent": user_agent,
        "Accept": _PAGE_ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Upgrade-Insecure-Requests": "1",
    }


def new_client(user_agent: str) -> httpx.Client:
    """Create the per-extraction HTTP client (redirects followed).

    Connections are not kept alive, so every request opens its own socket
    and that socket is visible to the request's deadline.
    """
    return httpx.Client(
        headers=browser_headers(user_agent),
        follow_redirects=True,
        limits=httpx.Limits(max_keepalive_connections=0),
    )


class _Deadline:
    """Wall-clock bound for a single request, redirects included."""

    def __init__(self, timeout: float) -> None:
        self.expired = False
        self._sockets: list[socket.socket] = []
        self._lock = threading.Lock()
        self._timer = threading.Timer(timeout, self._expire)
        self._timer.daemon = True

    def __enter__(self) -> "_Deadline":
        self._timer.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._timer.cancel()

    def trace(self, event_name: str, info: Mapping[str, Any]) -> None:
        """``trace`` request extension: remember each socket the request opens."""
        if event_name not in _CONNECT_EVENTS:
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            if self.expired:
                _shutdown(sock)
            else:
                self._sockets.append(sock)

    def _expire(self) -> None:
        with self._lock:
            self.expired = True
            for sock in self._sockets:
                _shutdown(sock)


def _shutdown(sock: socket.socket) -> None:
    # shutdown() wakes a recv() blocked in another thread; close() does not.
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass


def _timed_out(url: str, timeout: float) -> FetchFailure:
    logger.debug("GET %s -> no complete response within %.1fs", url, timeout)
    return FetchFailure(
        url=url,
        reason=FailureReason.TIMEOUT,
        detail=f"no complete response within {timeout}s",
    )


def fetch(
    client: httpx.Client,
    url: str,
    timeout: float,
    headers: Optional[Mapping[str, str]] = None,
) -> FetchOutcome:
    """GET *url* and return the full body, or a :class:`FetchFailure`.

    Args:
        client: Client carrying the default browser headers.
        url: Absolute URL to fetch.
        timeout: Hard bound in seconds for the whole request.
        headers: Extra headers merged over the client defaults.

    Returns:
        :class:`FetchedResource` for any 2xx response.  A non-2xx response
        yields ``FailureReason.NON_2XX`` with the status code kept, so callers
        can tell a 403 block from other errors.
    """
    with _Deadline(timeout) as deadline:
        try:
            with client.stream(
                "GET",
                url,
                headers=headers,
                timeout=httpx.Timeout(timeout),
                extensions={"trace": deadline.trace},
            ) as response:
                if not response.is_success:
                    logger.debug("GET %s -> HTTP %d", url, response.status_code)
                    return FetchFailure(
                        url=url,
                        reason=FailureReason.NON_2XX,
                        status_code=response.status_code,
                        detail=response.reason_phrase,
                    )

                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    if deadline.expired:
                        return _timed_out(url, timeout)
                    chunks.append(chunk)
                # A close-delimited body simply ends when the socket is shut down.
                if deadline.expired:
                    return _timed_out(url, timeout)

                return FetchedResource(
                    url=str(response.url),
                    status_code=response.status_code,
                    content=b"".join(chunks),
                    content_type=response.headers.get("content-type", ""),
                    encoding=response.charset_encoding,
                )
        except httpx.TimeoutException as exc:
            logger.debug("GET %s -> timeout (%s)", url, type(exc).__name__)
            return FetchFailure(
                url=url, reason=FailureReason.TIMEOUT, detail=type(exc).__name__
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            if deadline.expired:
                return _timed_out(url, timeout)
            logger.debug("GET %s -> %s: %s", url, type(exc).__name__, exc)
            return FetchFailure(
                url=url, reason=FailureReason.NETWORK_ERROR, detail=str(exc)
            )
