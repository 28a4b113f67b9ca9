"""
Offline Proxy Service

Entry point for one inbound request: classify it with the RoutePolicy, then
either pass it straight to the network (ignored routes, never cached) or run
the strategy the decision names. Ignored requests to hosts outside the origin
and the allow-list are refused unless the policy relays them.
"""

from src.core.config.constants import ResponseSource, RouteKind, Stage
from src.core.exceptions import UpstreamNotAllowedError
from src.core.interfaces.network import Fetcher
from src.core.logging.logger import get_logger, log_stage
from src.infrastructure.monitoring.metrics_collector import MetricsCollector
from src.offline_proxy.models.http import ProxyRequest, ServedResponse
from src.offline_proxy.routing.route_policy import RoutePolicy
from src.offline_proxy.services.strategy_engine import StrategyEngine

logger = get_logger(__name__)


class OfflineProxyService:
    """
    RoutePolicy -> StrategyEngine orchestration.

    Args:
        policy: Request classifier
        engine: Strategy engine
        fetcher: Fetcher used for ignored requests
        metrics: Optional metrics collector
    """

    def __init__(
        self,
        policy: RoutePolicy,
        engine: StrategyEngine,
        fetcher: Fetcher,
        metrics: MetricsCollector | None = None,
    ):
        self.policy = policy
        self.engine = engine
        self.fetcher = fetcher
        self.metrics = metrics

    async def handle(self, request: ProxyRequest) -> ServedResponse:
        """
        Serve one request.

        Raises:
            TransportError: The network failed and no stored copy applies
            UpstreamNotAllowedError: Ignored request to a host the proxy does not relay to
        """
        decision = self.policy.classify(request)

        if not decision.intercepted:
            if not self.policy.may_relay(request):
                raise UpstreamNotAllowedError(
                    f"Host '{request.hostname}' is not reachable through this proxy",
                    details={"method": request.method}, url=request.url,
                ).with_suggestion("Add the host to ALLOWED_EXTERNAL_HOSTS or enable RELAY_UNLISTED_HOSTS")
            snapshot = await self.fetcher.fetch(request)
            if self.metrics:
                self.metrics.record_strategy_result(RouteKind.IGNORED.value, ResponseSource.NETWORK.value)
            return ServedResponse(snapshot=snapshot, source=ResponseSource.NETWORK, route=RouteKind.IGNORED)

        served = await self.engine.execute(request, decision)
        log_stage(
            logger, Stage.ROUTE_CLASSIFICATION, "Request served",
            method=request.method,
            url=request.url,
            route=served.route.value,
            source=served.source.value,
            status_code=served.status_code,
        )
        return served
