"""Auctioneer client for Python.

Submits task and LRP auction batches to an auctioneer over HTTP, with
optional mutual TLS and OpenTelemetry trace propagation.

Public API:
    AuctioneerClient - Auction request dispatcher
    CallContext - Per-call deadline, cancellation and trace context
    TaskStartRequest, LRPStartRequest - Request models

Testing:
    auctioneer_client.testing.FakeAuctioneerClient - Recording test double
"""

from auctioneer_client._version import __version__
from auctioneer_client.client import AuctioneerClient, Client, get_auctioneer_client
from auctioneer_client.context import CallContext
from auctioneer_client.exceptions import (
    AuctioneerError,
    CanceledError,
    ConfigError,
    EncodingError,
    RoutingError,
    ServiceError,
    TransportError,
)
from auctioneer_client.models import (
    LRPStartRequest,
    TaskStartRequest,
    new_lrp_start_request,
    new_task_start_request,
)

__all__ = [
    "__version__",
    "AuctioneerClient",
    "Client",
    "get_auctioneer_client",
    "CallContext",
    "AuctioneerError",
    "CanceledError",
    "ConfigError",
    "EncodingError",
    "RoutingError",
    "ServiceError",
    "TransportError",
    "LRPStartRequest",
    "TaskStartRequest",
    "new_lrp_start_request",
    "new_task_start_request",
]
