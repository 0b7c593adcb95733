"""Ad request orchestration and the delivery engine."""

from soron_ads.delivery.engine import DeliveryEngine, resolve_api_key
from soron_ads.delivery.orchestrator import RequestOrchestrator, build_payload, select_ad

__all__ = ["DeliveryEngine", "RequestOrchestrator", "build_payload", "resolve_api_key", "select_ad"]
