"""In-memory auctioneer client for tests of calling code."""

import json
import threading
from collections.abc import Sequence
from typing import Any

from auctioneer_client.context import CallContext
from auctioneer_client.models import LRPStartRequest, TaskStartRequest, encode_batch


class FakeAuctioneerClient:
    """Records submitted batches instead of sending them.

    Batches go through the same encoder as the real client, so encoding
    errors surface the same way. Set `lrp_auctions_error` or
    `task_auctions_error` to make the next calls raise.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.lrp_auction_calls: list[list[dict[str, Any]]] = []
        self.task_auction_calls: list[list[dict[str, Any]]] = []
        self.lrp_auctions_error: Exception | None = None
        self.task_auctions_error: Exception | None = None

    def request_lrp_auctions(
        self,
        lrp_starts: Sequence[LRPStartRequest],
        ctx: CallContext | None = None,
    ) -> None:
        self._record(self.lrp_auction_calls, lrp_starts, ctx, self.lrp_auctions_error)

    def request_task_auctions(
        self,
        tasks: Sequence[TaskStartRequest],
        ctx: CallContext | None = None,
    ) -> None:
        self._record(self.task_auction_calls, tasks, ctx, self.task_auctions_error)

    def _record(
        self,
        calls: list[list[dict[str, Any]]],
        batch: Sequence[Any],
        ctx: CallContext | None,
        error: Exception | None,
    ) -> None:
        if ctx is not None:
            ctx.check()
        decoded = json.loads(encode_batch(batch))
        with self._lock:
            calls.append(decoded)
        if error is not None:
            raise error

    @property
    def lrp_auctions_call_count(self) -> int:
        with self._lock:
            return len(self.lrp_auction_calls)

    @property
    def task_auctions_call_count(self) -> int:
        with self._lock:
            return len(self.task_auction_calls)
