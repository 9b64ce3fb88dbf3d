# billing_gateway/api/health.py
from __future__ import annotations
from fastapi import APIRouter, Depends

from billing_gateway.core.deps import get_registry
from billing_gateway.engine.registry import ProviderRegistry
from billing_gateway.schemas.api_models import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health(registry: ProviderRegistry = Depends(get_registry)):
    return HealthResponse(status="ok", providers=registry.list_registered())
