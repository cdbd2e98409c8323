import logging
import socket
import threading

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

from src.webhook_client.errors import RetryableWebhookError

logger = logging.getLogger(__name__)

DELIVERY_METHOD = "POST"
DISCOVERY_METHOD = "OPTIONS"

_DRAIN_CHUNK_SIZE = 8192

_local = threading.local()


class Deadline:
    """Bounds a whole exchange: connect, send, response headers and body drain.

    The requests ``timeout`` only limits each socket operation, so an endpoint
    that trickles bytes can hold a call open forever. While a Deadline is
    active, every socket the current thread connects or takes from the pool is
    watched; when the deadline fires they are shut down, which unblocks any
    read in progress.
    """

    def __init__(self, seconds: float):
        self.seconds = seconds
        self._lock = threading.Lock()
        self._sockets = set()
        self._expired = False
        self._finished = False
        self._timer = threading.Timer(seconds, self._expire)
        self._timer.daemon = True

    @property
    def expired(self) -> bool:
        with self._lock:
            return self._expired

    def watch(self, sock) -> None:
        with self._lock:
            if self._finished:
                return
            if self._expired:
                _abort(sock)
                return
            self._sockets.add(sock)

    def unwatch(self, sock) -> None:
        with self._lock:
            self._sockets.discard(sock)

    def _expire(self) -> None:
        # Shut down under the lock: once __exit__ holds it, no socket can be touched.
        with self._lock:
            if self._finished:
                return
            self._expired = True
            for sock in self._sockets:
                _abort(sock)

    def __enter__(self):
        _local.deadline = self
        self._timer.start()
        return self

    def __exit__(self, *exc_info):
        with self._lock:
            self._finished = True
            self._sockets.clear()
        self._timer.cancel()
        _local.deadline = None


def _abort(sock) -> None:
    try:
        # Plain socket shutdown; SSLSocket.shutdown drops the SSL object under a concurrent read.
        socket.socket.shutdown(sock, socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("socket already closed at deadline: %s", e)


def _watch(sock) -> None:
    deadline = getattr(_local, "deadline", None)
    if deadline is not None and sock is not None:
        deadline.watch(sock)


def _unwatch(sock) -> None:
    deadline = getattr(_local, "deadline", None)
    if deadline is not None and sock is not None:
        deadline.unwatch(sock)


class _WatchedConnectionMixin:
    def connect(self):
        super().connect()
        _watch(self.sock)


class _WatchedHTTPConnection(_WatchedConnectionMixin, HTTPConnection):
    pass


class _WatchedHTTPSConnection(_WatchedConnectionMixin, HTTPSConnection):
    pass


class _WatchedPoolMixin:
    def _get_conn(self, timeout=None):
        conn = super()._get_conn(timeout=timeout)
        _watch(conn.sock)
        return conn

    def _put_conn(self, conn):
        # A pooled keep-alive socket may be handed to another thread next.
        if conn is not None:
            _unwatch(conn.sock)
        super()._put_conn(conn)


class _WatchedHTTPConnectionPool(_WatchedPoolMixin, HTTPConnectionPool):
    ConnectionCls = _WatchedHTTPConnection


class _WatchedHTTPSConnectionPool(_WatchedPoolMixin, HTTPSConnectionPool):
    ConnectionCls = _WatchedHTTPSConnection


class DeadlineAdapter(HTTPAdapter):
    """HTTPAdapter whose connections can be aborted by an active Deadline."""

    def init_poolmanager(self, *args, **kwargs):
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": _WatchedHTTPConnectionPool,
            "https": _WatchedHTTPSConnectionPool,
        }


def mount_adapter(session: requests.Session, pool_maxsize: int) -> DeadlineAdapter:
    adapter = DeadlineAdapter(pool_maxsize=pool_maxsize)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return adapter


def _deadline_exceeded(seconds: float, cause: BaseException | None = None) -> RetryableWebhookError:
    error = requests.exceptions.Timeout(f"deadline of {seconds}s exceeded")
    error.__cause__ = cause
    return RetryableWebhookError(f"failed to connect: timeout: {error}", cause=error)


def prepare_request(client, method: str, body: bytes | None = None, headers: dict | None = None):
    """Build a prepared request carrying the client's shared headers plus ``headers``."""
    merged = client.headers
    if headers:
        merged.update(headers)

    try:
        return client.session.prepare_request(
            requests.Request(method, client.config.url, headers=merged, data=body)
        )
    except (requests.RequestException, ValueError) as e:
        raise RetryableWebhookError("failed to create request", cause=e) from e


def exchange(client, prepared: requests.PreparedRequest, timeout: float | None = None) -> requests.Response:
    """Send a prepared request and drain its response within one deadline.

    ``timeout`` is the call's deadline in seconds; it defaults to the client's
    configured ``timeout_seconds``. The returned response is already closed;
    its status line and headers stay readable. Every transport failure,
    including an expired deadline, is raised as a retryable error.
    """
    if timeout is None:
        timeout = client.config.timeout_seconds

    with Deadline(timeout) as deadline:
        try:
            response = client.session.send(
                prepared,
                timeout=timeout,
                allow_redirects=False,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            raise RetryableWebhookError(f"failed to connect: timeout: {e}", cause=e) from e
        except requests.exceptions.RequestException as e:
            if deadline.expired:
                raise _deadline_exceeded(timeout, e)
            raise RetryableWebhookError(f"failed to connect: {e}", cause=e) from e
        except (UnicodeError, ValueError) as e:
            # http.client rejects header values it cannot put on the wire.
            if deadline.expired:
                raise _deadline_exceeded(timeout, e)
            raise RetryableWebhookError("failed to create request", cause=e) from e

        discard_body(response)

    if deadline.expired:
        # A shut down socket can end the header block early and look like a full response.
        raise _deadline_exceeded(timeout)
    return response


def discard_body(response: requests.Response) -> None:
    """Drain and close the response. Drain failures are logged, never raised."""
    try:
        for _ in response.iter_content(chunk_size=_DRAIN_CHUNK_SIZE):
            pass
    except (requests.exceptions.RequestException, urllib3.exceptions.HTTPError, OSError):
        logger.exception("failed to consume body from %s", response.url)
    finally:
        response.close()
