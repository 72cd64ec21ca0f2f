from __future__ import annotations

"""Fetch workers and the queue they share.

Each worker takes one target at a time, requests it over HTTPS and reports the
subject common name of the leaf certificate the server presented. Every
per-target failure is absorbed here as a `None` result so the loop keeps going.
"""

import queue
import re
import ssl
import threading
import time
from typing import Any, Callable, NamedTuple, Optional

import httpx
import OpenSSL

from . import logger

HTTPS_PREFIX = "https://"
_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*://")

_CLOSED = object()

# Outcomes that mean "no certificate for this target" rather than a bug.
_SKIP_ERRORS = (
    httpx.HTTPError,
    httpx.InvalidURL,
    httpx.StreamError,
    ssl.SSLError,
    OSError,
    ValueError,
)


class QueueClosed(Exception):
    """Raised when putting a target into a queue that was already closed."""


class WorkQueue:
    """Single-producer/multi-consumer target queue with explicit closure.

    Once `close()` is called no new targets are accepted; consumers keep
    receiving pending targets and then `None` forever after.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, target: str) -> None:
        if self._closed.is_set():
            raise QueueClosed("work queue is closed")
        self._queue.put(target)

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(_CLOSED)

    def get(self) -> Optional[str]:
        item = self._queue.get()
        if item is _CLOSED:
            # The marker is always last; pass it on to the next consumer.
            self._queue.put(_CLOSED)
            return None
        return item


class FetchResult(NamedTuple):
    url: str
    common_name: str

    def render(self, show_urls: bool = False) -> str:
        if show_urls:
            return f"{self.url} {self.common_name}"
        return self.common_name


def normalize_target(target: str) -> str:
    """Turn a raw target into a request URL.

    Only targets that do not start with a scheme get `https://` prepended. A
    target that already names another scheme (e.g. `http://`) is left as-is and
    will yield no certificate.
    """
    if _SCHEME_RE.match(target):
        return target
    return HTTPS_PREFIX + target


def _peer_certificate(response: httpx.Response) -> Optional[bytes]:
    stream = response.extensions.get("network_stream")
    if stream is None:
        return None
    ssl_object = stream.get_extra_info("ssl_object")
    if ssl_object is None:
        return None
    return ssl_object.getpeercert(True) or None


def common_name_from_der(der: bytes) -> Optional[str]:
    x509 = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_ASN1, der)
    return x509.get_subject().commonName or None


def _check_deadline(response: httpx.Response, started: float, deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() - started > deadline:
        raise httpx.ReadTimeout("overall request deadline exceeded", request=response.request)


def _drain(response: httpx.Response, started: float, deadline: Optional[float]) -> None:
    for _ in response.iter_bytes():
        _check_deadline(response, started, deadline)


def fetch_common_name(client: httpx.Client, target: str, deadline: Optional[float] = None) -> Optional[FetchResult]:
    """Fetch one target and return its certificate common name, or None to skip.

    The deadline is checked once the response headers arrive and again while
    the body is drained. A body that breaks off after the certificate was read
    does not discard the certificate.
    """
    url = normalize_target(target)
    started = time.monotonic()
    der: Optional[bytes] = None
    try:
        with client.stream("GET", url) as response:
            _check_deadline(response, started, deadline)
            der = _peer_certificate(response)
            _drain(response, started, deadline)
    except _SKIP_ERRORS as exc:
        if der is None:
            logger.debug("Skipping %s: %s: %s", url, exc.__class__.__name__, exc)
            return None
        logger.debug("Body of %s not fully read: %s: %s", url, exc.__class__.__name__, exc)
    if not der:
        logger.debug("Skipping %s: no peer certificate", url)
        return None
    try:
        common_name = common_name_from_der(der)
    except OpenSSL.crypto.Error as exc:
        logger.debug("Skipping %s: unreadable certificate: %s", url, exc)
        return None
    if not common_name:
        logger.debug("Skipping %s: no certificate common name", url)
        return None
    return FetchResult(url, common_name)


class FetchWorker(threading.Thread):
    """Consume targets until the queue is closed and drained."""

    def __init__(
        self,
        index: int,
        work: WorkQueue,
        client: httpx.Client,
        sink: Callable[[FetchResult], None],
        deadline: Optional[float] = None,
    ):
        super().__init__(name=f"certharvest-worker-{index}", daemon=True)
        self.work = work
        self.client = client
        self.sink = sink
        self.deadline = deadline
        self.processed = 0
        self.emitted = 0

    def run(self) -> None:
        while True:
            target = self.work.get()
            if target is None:
                return
            try:
                result = fetch_common_name(self.client, target, self.deadline)
                if result is not None:
                    self.sink(result)
                    self.emitted += 1
            except Exception as exc:
                # Leaving the loop early would stall the producer on a full queue.
                logger.warning("%s failed on %r: %s: %s", self.name, target, exc.__class__.__name__, exc)
            finally:
                self.processed += 1
