"""
Route Policy

Decides, per request, whether the proxy intercepts it and with which strategy.

DECISION TABLE:
---------------
1. method != GET                                   -> ignored
2. cross-origin AND host not in allow-list         -> ignored
3. host in live-API domains                        -> network-first (runtime generation)
4. everything else                                 -> cache-first  (static generation)

DOMAIN MATCHING:
----------------
A configured domain ``d`` matches a hostname ``h`` when
``h == d or h.endswith("." + d)``. Subdomains match; unrelated hosts that
merely contain the text do not (``evil-server.com`` does not match
``server``). A leading dot in a configured domain is ignored.

The policy is a pure function of the request and two frozen domain sets.

Ignored requests are forwarded only to the origin or an allow-listed host
unless relaying to unlisted hosts is enabled.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from src.core.config.constants import RouteKind, Stage
from src.core.config.settings import Settings
from src.core.exceptions import ConfigurationError
from src.core.logging.logger import get_logger, log_stage
from src.offline_proxy.models.http import ProxyRequest, origin_of

logger = get_logger(__name__)


@dataclass(frozen=True)
class RouteDecision:
    """Transient classification of one request. Never persisted."""

    kind: RouteKind
    generation: str | None = None

    @property
    def intercepted(self) -> bool:
        return self.kind is not RouteKind.IGNORED


IGNORED = RouteDecision(kind=RouteKind.IGNORED)


def normalize_domain(domain: str) -> str:
    return domain.strip().lower().lstrip(".").rstrip(".")


def hostname_matches(hostname: str, domain: str) -> bool:
    """Suffix match of a hostname against one configured domain."""
    hostname = hostname.lower().rstrip(".")
    domain = normalize_domain(domain)
    if not domain:
        return False
    return hostname == domain or hostname.endswith("." + domain)


class RoutePolicy:
    """
    Request classifier.

    Args:
        origin: The service's own origin (``scheme://host[:port]``)
        allowed_hosts: Cross-origin domains eligible for interception
        api_hosts: Domains served network-first; must be a subset of allowed_hosts
        static_generation: Target of cache-first decisions
        runtime_generation: Target of network-first decisions
        relay_unlisted_hosts: Whether ignored requests may reach hosts outside
            the origin and the allow-list

    Raises:
        ConfigurationError: If an API domain is missing from the allow-list
    """

    def __init__(
        self,
        origin: str,
        allowed_hosts: Iterable[str],
        api_hosts: Iterable[str],
        static_generation: str,
        runtime_generation: str,
        relay_unlisted_hosts: bool = False,
    ):
        self.origin = origin_of(origin)
        self.allowed_hosts = frozenset(d for d in map(normalize_domain, allowed_hosts) if d)
        self.api_hosts = frozenset(d for d in map(normalize_domain, api_hosts) if d)
        self.static_generation = static_generation
        self.runtime_generation = runtime_generation
        self.relay_unlisted_hosts = relay_unlisted_hosts

        missing = sorted(self.api_hosts - self.allowed_hosts)
        if missing:
            raise ConfigurationError(
                "Live API hosts must also be in the allow-list",
                details={"missing_from_allow_list": missing},
            ).with_suggestion("Add them to ALLOWED_EXTERNAL_HOSTS")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RoutePolicy":
        return cls(
            origin=settings.routing.PROXY_ORIGIN,
            allowed_hosts=settings.routing.ALLOWED_EXTERNAL_HOSTS,
            api_hosts=settings.routing.LIVE_API_HOSTS,
            static_generation=settings.cache.static_generation,
            runtime_generation=settings.cache.runtime_generation,
            relay_unlisted_hosts=settings.routing.RELAY_UNLISTED_HOSTS,
        )

    def is_allowed_host(self, hostname: str) -> bool:
        return any(hostname_matches(hostname, d) for d in self.allowed_hosts)

    def is_api_host(self, hostname: str) -> bool:
        return any(hostname_matches(hostname, d) for d in self.api_hosts)

    def may_relay(self, request: ProxyRequest) -> bool:
        """True when an ignored request may be forwarded to its target host."""
        if self.relay_unlisted_hosts or request.origin == self.origin:
            return True
        return self.is_allowed_host(request.hostname)

    def classify(self, request: ProxyRequest) -> RouteDecision:
        """Classify a request. Has no side effects beyond a debug log line."""
        hostname = request.hostname

        if request.method != "GET":
            decision = IGNORED
        elif request.origin != self.origin and not self.is_allowed_host(hostname):
            decision = IGNORED
        elif self.is_api_host(hostname):
            decision = RouteDecision(RouteKind.NETWORK_FIRST, self.runtime_generation)
        else:
            decision = RouteDecision(RouteKind.CACHE_FIRST, self.static_generation)

        log_stage(
            logger, Stage.ROUTE_CLASSIFICATION, "Request classified", level="debug",
            method=request.method, url=request.url, route=decision.kind.value,
        )
        return decision
