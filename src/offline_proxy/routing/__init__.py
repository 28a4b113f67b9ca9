"""Request classification."""

from .route_policy import RouteDecision, RoutePolicy, hostname_matches

__all__ = ["RouteDecision", "RoutePolicy", "hostname_matches"]
