"""Client for submitting auction requests to the auctioneer."""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, wait
from collections.abc import Sequence
from types import TracebackType
from typing import Any, Protocol

import httpx

from auctioneer_client._internal.http import (
    DEFAULT_TIMEOUT,
    create_http_client,
    create_tls_context,
)
from auctioneer_client.context import BACKGROUND, CallContext
from auctioneer_client.exceptions import (
    CanceledError,
    ConfigError,
    ServiceError,
    TransportError,
)
from auctioneer_client.models import LRPStartRequest, TaskStartRequest, encode_batch
from auctioneer_client.routes import RequestGenerator, RouteName
from auctioneer_client.tracing import RequestFunc, to_http_request

DEFAULT_TIMEOUT_MS = int(DEFAULT_TIMEOUT * 1000)

# Recomputed per attempt by the transport
_HOP_HEADERS = frozenset({"host", "content-length"})

# How often a cancellable send checks its cancel event
CANCEL_POLL_INTERVAL = 0.05


class Client(Protocol):
    """Operations offered by every auctioneer client, real or fake."""

    def request_lrp_auctions(
        self,
        lrp_starts: Sequence[LRPStartRequest],
        ctx: CallContext | None = None,
    ) -> None: ...

    def request_task_auctions(
        self,
        tasks: Sequence[TaskStartRequest],
        ctx: CallContext | None = None,
    ) -> None: ...


class AuctioneerClient:
    """Submits task and LRP auction batches to the auctioneer.

    Requests always go out on the primary transport first. When TLS is not
    required and a fallback transport is configured, a connection-level
    failure is retried once over plain HTTP. HTTP-level errors are never
    retried.

    Every httpx transport error counts as a connection failure, read timeouts
    and write errors included. Those can happen after the auctioneer already
    received the batch, so the plain-HTTP retry may submit it a second time.

    The client holds no per-call state and can be shared between threads.
    Use `AuctioneerClient.secure()` or `AuctioneerClient.insecure()` to build
    one, or `AuctioneerClient.from_env()` to configure it from the environment.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.Client,
        fallback_transport: httpx.Client | None = None,
        require_tls: bool = False,
        trace_request: RequestFunc | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the auctioneer, e.g. ``https://auctioneer:9016``.
            transport: Transport every request is attempted on first.
            fallback_transport: Plain-HTTP transport for the one-shot retry.
            require_tls: If True, never fall back to plain HTTP.
            trace_request: Injects trace context into outbound requests.
                Defaults to OpenTelemetry propagation.
            logger: Logger for session events. Defaults to this module's logger.
        """
        self._url = base_url
        self._http_client = transport
        self._insecure_http_client = fallback_transport
        self._require_tls = require_tls
        self._trace_request = trace_request or to_http_request()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._request_generator = RequestGenerator(base_url)
        self._executor = ThreadPoolExecutor(thread_name_prefix="auctioneer-send")

    @classmethod
    def insecure(
        cls,
        base_url: str,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        trace_request: RequestFunc | None = None,
        logger: logging.Logger | None = None,
    ) -> "AuctioneerClient":
        """Create a client with a single plain-HTTP transport and no fallback."""
        return cls(
            base_url,
            transport=create_http_client(timeout=timeout_ms / 1000),
            trace_request=trace_request,
            logger=logger,
        )

    @classmethod
    def secure(
        cls,
        base_url: str,
        ca_file: str,
        cert_file: str,
        key_file: str,
        require_tls: bool,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        trace_request: RequestFunc | None = None,
        logger: logging.Logger | None = None,
    ) -> "AuctioneerClient":
        """Create a mutual-TLS client.

        Args:
            base_url: Base URL of the auctioneer.
            ca_file: PEM bundle used to verify the auctioneer's certificate.
            cert_file: PEM client certificate.
            key_file: PEM key for ``cert_file``.
            require_tls: If False, a plain-HTTP fallback transport is built.
            timeout_ms: Per-attempt timeout in milliseconds.
            trace_request: Injects trace context into outbound requests.
            logger: Logger for session events.

        Returns:
            A configured AuctioneerClient.

        Raises:
            ConfigError: If the TLS material or transport cannot be loaded.
        """
        timeout = timeout_ms / 1000
        tls_context = create_tls_context(ca_file, cert_file, key_file)
        http_client = create_http_client(timeout=timeout, verify=tls_context)
        insecure_http_client = None
        if not require_tls:
            try:
                insecure_http_client = create_http_client(timeout=timeout)
            except ConfigError:
                http_client.close()
                raise

        return cls(
            base_url,
            transport=http_client,
            fallback_transport=insecure_http_client,
            require_tls=require_tls,
            trace_request=trace_request,
            logger=logger,
        )

    @classmethod
    def from_env(cls) -> "AuctioneerClient":
        """Create a client from environment variables.

        Required environment variables:
            AUCTIONEER_URL: Base URL of the auctioneer.

        Optional environment variables:
            AUCTIONEER_CA_CERT_FILE: CA bundle path.
            AUCTIONEER_CLIENT_CERT_FILE: Client certificate path.
            AUCTIONEER_CLIENT_KEY_FILE: Client key path.
            AUCTIONEER_REQUIRE_TLS: Set to "1" or "true" to forbid HTTP fallback.
            AUCTIONEER_TIMEOUT_MS: Per-attempt timeout in milliseconds.

        Returns:
            A secure client if all three TLS paths are set, an insecure one
            if none is.

        Raises:
            ConfigError: If the URL is missing, only some TLS paths are set,
                or the TLS material is invalid.
            ValueError: If AUCTIONEER_TIMEOUT_MS is not an integer.
        """
        url = os.environ.get("AUCTIONEER_URL")
        if not url:
            raise ConfigError("AUCTIONEER_URL is not set")

        ca_file = os.environ.get("AUCTIONEER_CA_CERT_FILE")
        cert_file = os.environ.get("AUCTIONEER_CLIENT_CERT_FILE")
        key_file = os.environ.get("AUCTIONEER_CLIENT_KEY_FILE")

        require_tls = os.environ.get("AUCTIONEER_REQUIRE_TLS", "").lower() in ("1", "true")
        timeout_ms = int(os.environ.get("AUCTIONEER_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)))

        tls_files = [ca_file, cert_file, key_file]
        if all(tls_files):
            return cls.secure(
                url,
                ca_file,  # type: ignore[arg-type]
                cert_file,  # type: ignore[arg-type]
                key_file,  # type: ignore[arg-type]
                require_tls,
                timeout_ms=timeout_ms,
            )
        if any(tls_files):
            raise ConfigError(
                "AUCTIONEER_CA_CERT_FILE, AUCTIONEER_CLIENT_CERT_FILE and "
                "AUCTIONEER_CLIENT_KEY_FILE must be set together"
            )
        if require_tls:
            raise ConfigError("AUCTIONEER_REQUIRE_TLS is set but no TLS material was given")
        return cls.insecure(url, timeout_ms=timeout_ms)

    @property
    def url(self) -> str:
        return self._url

    @property
    def require_tls(self) -> bool:
        return self._require_tls

    @property
    def has_fallback(self) -> bool:
        """Check if a plain-HTTP retry can ever happen."""
        return not self._require_tls and self._insecure_http_client is not None

    def close(self) -> None:
        """Close the underlying transports."""
        self._http_client.close()
        if self._insecure_http_client is not None:
            self._insecure_http_client.close()
        self._executor.shutdown(wait=False)

    def __enter__(self) -> "AuctioneerClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # =========================================================================
    # Operations
    # =========================================================================

    def request_lrp_auctions(
        self,
        lrp_starts: Sequence[LRPStartRequest],
        ctx: CallContext | None = None,
    ) -> None:
        """Ask the auctioneer to place instances of long-running processes.

        Args:
            lrp_starts: LRP start requests, sent as a JSON array in order.
            ctx: Deadline, cancellation and trace context for the call.

        Raises:
            EncodingError: If the batch cannot be serialized.
            TransportError: If the auctioneer could not be reached.
            CanceledError: If ``ctx`` was cancelled or expired.
            ServiceError: If the auctioneer did not answer 202 Accepted.
        """
        self._submit("request-lrp-auctions", RouteName.CREATE_LRP_AUCTIONS, lrp_starts, ctx)

    def request_task_auctions(
        self,
        tasks: Sequence[TaskStartRequest],
        ctx: CallContext | None = None,
    ) -> None:
        """Ask the auctioneer to place one-shot tasks.

        Args:
            tasks: Task start requests, sent as a JSON array in order.
            ctx: Deadline, cancellation and trace context for the call.

        Raises:
            EncodingError: If the batch cannot be serialized.
            TransportError: If the auctioneer could not be reached.
            CanceledError: If ``ctx`` was cancelled or expired.
            ServiceError: If the auctioneer did not answer 202 Accepted.
        """
        self._submit("request-task-auctions", RouteName.CREATE_TASK_AUCTIONS, tasks, ctx)

    def _submit(
        self,
        session: str,
        route: RouteName | str,
        batch: Sequence[Any],
        ctx: CallContext | None,
    ) -> None:
        ctx = ctx or BACKGROUND
        log = logging.LoggerAdapter(self._logger, {"session": session})

        payload = encode_batch(batch)
        request = self._request_generator.create_request(route, content=payload)

        request = self._trace_request(request, ctx.trace_context)
        request.headers["Content-Type"] = "application/json"

        response = self._do_request(log, request, ctx)
        if response.status_code != httpx.codes.ACCEPTED:
            log.debug("request-failed: status %d", response.status_code)
            raise ServiceError(response.status_code, response.reason_phrase)

        log.debug("request-accepted: %d requests", len(batch))

    # =========================================================================
    # Transport Selection
    # =========================================================================

    def _do_request(
        self,
        log: logging.LoggerAdapter,
        request: httpx.Request,
        ctx: CallContext,
    ) -> httpx.Response:
        """Send on the primary transport, falling back to plain HTTP once."""
        try:
            return self._send(self._http_client, request, request.url, ctx)
        except httpx.TransportError as e:
            if ctx.done or not self.has_fallback:
                raise _transport_error(e, request.url, ctx) from e
            # Fall back to HTTP and try again since TLS is not required
            log.error("retrying-on-http: %s", e)

        insecure_url = request.url.copy_with(scheme="http")
        try:
            return self._send(
                self._insecure_http_client,  # type: ignore[arg-type]
                request,
                insecure_url,
                ctx,
            )
        except httpx.TransportError as e:
            raise _transport_error(e, insecure_url, ctx) from e

    def _send(
        self,
        client: httpx.Client,
        request: httpx.Request,
        url: httpx.URL,
        ctx: CallContext,
    ) -> httpx.Response:
        ctx.check()
        headers = {k: v for k, v in request.headers.items() if k.lower() not in _HOP_HEADERS}
        attempt = client.build_request(
            request.method,
            url,
            content=request.content,
            headers=headers,
            timeout=_attempt_timeout(client, ctx),
        )
        if ctx.cancel_event is None:
            response = client.send(attempt)
        else:
            response = self._send_cancellable(client, attempt, ctx)

        if ctx.cancelled:
            response.close()
            raise CanceledError("context canceled", url=str(url))
        return response

    def _send_cancellable(
        self,
        client: httpx.Client,
        attempt: httpx.Request,
        ctx: CallContext,
    ) -> httpx.Response:
        """Send on a worker thread so a cancel event ends the wait promptly.

        The abandoned request keeps its worker until the transport timeout;
        its response, if any, is closed when it arrives.
        """
        future = self._executor.submit(client.send, attempt)
        while True:
            done, _ = wait([future], timeout=CANCEL_POLL_INTERVAL)
            if done:
                return future.result()
            if ctx.cancelled:
                future.add_done_callback(_close_abandoned)
                raise CanceledError("context canceled", url=str(attempt.url))


def _attempt_timeout(client: httpx.Client, ctx: CallContext) -> Any:
    """Cap the client's timeouts at the context's remaining time."""
    remaining = ctx.remaining()
    if remaining is None:
        return httpx.USE_CLIENT_DEFAULT

    def cap(value: float | None) -> float:
        return remaining if value is None else min(value, remaining)

    default = client.timeout
    return httpx.Timeout(
        connect=cap(default.connect),
        read=cap(default.read),
        write=cap(default.write),
        pool=cap(default.pool),
    )


def _close_abandoned(future: Future) -> None:
    if future.exception() is None:
        future.result().close()


def _transport_error(
    error: httpx.TransportError, url: httpx.URL, ctx: CallContext
) -> TransportError:
    if ctx.cancelled:
        return CanceledError("context canceled", cause=error, url=str(url))
    if ctx.expired:
        return CanceledError("context deadline exceeded", cause=error, url=str(url))
    return TransportError(f"request to {url} failed: {error}", cause=error, url=str(url))


def get_auctioneer_client() -> AuctioneerClient:
    """Get an auctioneer client configured from environment variables.

    Returns:
        A configured AuctioneerClient instance.
    """
    return AuctioneerClient.from_env()
