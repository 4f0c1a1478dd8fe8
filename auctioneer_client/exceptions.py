"""Public exceptions for the auctioneer client."""


class AuctioneerError(Exception):
    """Base exception for all auctioneer client errors."""


class ConfigError(AuctioneerError):
    """Configuration error (bad TLS material, missing env vars, bad transport)."""


class EncodingError(AuctioneerError):
    """A request batch could not be serialized to JSON."""


class RoutingError(AuctioneerError):
    """A route name could not be resolved into a request."""

    def __init__(self, message: str, route: str | None = None) -> None:
        super().__init__(message)
        self.route = route


class TransportError(AuctioneerError):
    """Connection-level failure talking to the auctioneer."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.url = url


class CanceledError(TransportError):
    """The call was cancelled or its deadline expired."""


class ServiceError(AuctioneerError):
    """The auctioneer answered with a status other than 202 Accepted."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"http error: status code {status_code} ({reason})")
        self.status_code = status_code
        self.reason = reason
