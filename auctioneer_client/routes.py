"""Route table for the auctioneer HTTP API."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import httpx

from auctioneer_client.exceptions import RoutingError


class RouteName(str, Enum):
    """Logical operations exposed by the auctioneer."""

    CREATE_TASK_AUCTIONS = "CreateTaskAuctions"
    CREATE_LRP_AUCTIONS = "CreateLRPAuctions"


@dataclass(frozen=True)
class Route:
    """HTTP method and path template for one operation.

    Path templates use ``{name}`` placeholders filled from request params.
    """

    method: str
    path: str


ROUTES: Mapping[RouteName, Route] = {
    RouteName.CREATE_TASK_AUCTIONS: Route(method="POST", path="/v1/task_auctions"),
    RouteName.CREATE_LRP_AUCTIONS: Route(method="POST", path="/v1/lrp_auctions"),
}


class RequestGenerator:
    """Builds requests for named routes against a base URL."""

    def __init__(self, base_url: str, routes: Mapping[RouteName, Route] = ROUTES) -> None:
        self._base_url = base_url.rstrip("/")
        self._routes = routes

    def create_request(
        self,
        name: RouteName | str,
        params: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Request:
        """Resolve a route into a request.

        Args:
            name: Route to resolve.
            params: Values for the path template placeholders.
            content: Request body.

        Returns:
            An unsent httpx.Request.

        Raises:
            RoutingError: If the route is unknown or a path parameter is missing.
        """
        try:
            route_name = RouteName(name)
        except ValueError:
            raise RoutingError(f"no route exists with name {name}", route=str(name)) from None

        route = self._routes.get(route_name)
        if route is None:
            raise RoutingError(
                f"no route exists with name {route_name.value}", route=route_name.value
            )

        try:
            path = route.path.format(**(params or {}))
        except (KeyError, IndexError) as e:
            raise RoutingError(
                f"missing parameter {e} for route {route_name.value}", route=route_name.value
            ) from e

        return httpx.Request(route.method, f"{self._base_url}{path}", content=content)
