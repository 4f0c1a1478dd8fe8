"""Per-call cancellation, deadline and trace context."""

import threading
import time
from dataclasses import dataclass

from opentelemetry.context import Context

from auctioneer_client.exceptions import CanceledError


@dataclass(frozen=True)
class CallContext:
    """Carries a deadline, a cancellation signal and a trace context for one call.

    Attributes:
        deadline: Absolute expiry on the ``time.monotonic()`` clock, or None.
        cancel_event: Event that, once set, cancels the call.
        trace_context: OpenTelemetry context whose span is propagated
            outbound. None means the current context.
    """

    deadline: float | None = None
    cancel_event: threading.Event | None = None
    trace_context: Context | None = None

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        *,
        cancel_event: threading.Event | None = None,
        trace_context: Context | None = None,
    ) -> "CallContext":
        """Create a context that expires ``seconds`` from now."""
        return cls(
            deadline=time.monotonic() + seconds,
            cancel_event=cancel_event,
            trace_context=trace_context,
        )

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        """True once the call must not start any further attempt."""
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline, None if there is no deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def check(self) -> None:
        """Raise CanceledError if the context is cancelled or expired."""
        if self.cancelled:
            raise CanceledError("context canceled")
        if self.expired:
            raise CanceledError("context deadline exceeded")


BACKGROUND = CallContext()
