# billing_gateway/core/deps.py
from functools import lru_cache
from fastapi import Depends, HTTPException, Request
from billing_gateway.core.event_log import EventLog
from billing_gateway.core.settings import settings
from billing_gateway.engine.registry import ProviderRegistry, build_default_registry
from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.errors import RevstackError


@lru_cache(maxsize=1)
def _registry_singleton() -> ProviderRegistry:
    return build_default_registry(settings.enabled_providers, settings.PROVIDER_ENTRY_POINT_GROUP)


@lru_cache(maxsize=1)
def _event_log_singleton() -> EventLog:
    return EventLog(capacity=settings.WEBHOOK_DEDUPE_CAPACITY)


def get_registry() -> ProviderRegistry:
    # FastAPI will call this each request, but we return the cached singleton
    return _registry_singleton()


def get_event_log() -> EventLog:
    return _event_log_singleton()


def get_provider(slug: str, registry: ProviderRegistry = Depends(get_registry)) -> BaseProvider:
    try:
        return registry.get(slug)
    except RevstackError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())


def get_context(request: Request) -> ProviderContext:
    """Request-scoped context; provider config is attached by the route that needs it."""
    state = request.state
    return ProviderContext(
        trace_id=getattr(state, "trace_id", None) or ProviderContext().trace_id,
        idempotency_key=getattr(state, "idempotency_key", None),
        is_test_mode=settings.ENV != "production",
    )
