"""Distributed tracing propagation for outbound auctioneer requests.

The client never starts spans of its own. It copies the caller's active
span into the request headers so the auctioneer can continue the trace.
"""

from collections.abc import Callable

import httpx
from opentelemetry import propagate
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import TextMapPropagator

RequestFunc = Callable[[httpx.Request, Context | None], httpx.Request]


def to_http_request(propagator: TextMapPropagator | None = None) -> RequestFunc:
    """Build a function that injects trace context into a request.

    Args:
        propagator: Propagator to inject with. Defaults to the globally
            configured one (W3C trace context unless overridden).

    Returns:
        A function taking a request and an optional context, returning the
        same request with propagation headers set. With no active span,
        nothing is injected.
    """

    def trace_request(request: httpx.Request, context: Context | None = None) -> httpx.Request:
        carrier: dict[str, str] = {}
        if propagator is None:
            propagate.inject(carrier, context=context)
        else:
            propagator.inject(carrier, context=context)
        request.headers.update(carrier)
        return request

    return trace_request


def no_trace(request: httpx.Request, context: Context | None = None) -> httpx.Request:
    """RequestFunc that leaves the request untouched."""
    return request
