# billing_gateway/api/providers.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from billing_gateway.core.deps import get_context, get_provider, get_registry
from billing_gateway.core.security import require_admin
from billing_gateway.engine.registry import ProviderRegistry
from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.models import InstallInput, UninstallInput
from billing_gateway.schemas.api_models import (
    InstallRequest,
    InstallResponse,
    UninstallRequest,
    UninstallResponse,
)

router = APIRouter(prefix="/providers", tags=["Providers"])


@router.get("")
def list_providers(registry: ProviderRegistry = Depends(get_registry)) -> List[Dict[str, Any]]:
    return [m.to_public() for m in registry.build_catalog()]


@router.get("/{slug}")
def get_provider_manifest(slug: str, registry: ProviderRegistry = Depends(get_registry)) -> Dict[str, Any]:
    manifest = registry.get_manifest(slug)
    if manifest is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider '{slug}'")
    return manifest.to_public()


@router.post("/{slug}/install", response_model=InstallResponse)
async def install_provider(
    slug: str,
    body: InstallRequest,
    provider: BaseProvider = Depends(get_provider),
    ctx: ProviderContext = Depends(get_context),
    _claims: Dict[str, Any] = Depends(require_admin),
):
    """
    Validate config + credentials, then try to register webhooks.
    Webhook registration failure does not fail the install.
    """
    res = await provider.on_install(ctx, InstallInput(config=body.config, webhook_url=body.webhookUrl))
    return InstallResponse(provider=slug, success=res.data.success, data=res.data.data)


@router.post("/{slug}/uninstall", response_model=UninstallResponse)
async def uninstall_provider(
    slug: str,
    body: UninstallRequest,
    provider: BaseProvider = Depends(get_provider),
    ctx: ProviderContext = Depends(get_context),
    _claims: Dict[str, Any] = Depends(require_admin),
):
    res = await provider.on_uninstall(ctx, UninstallInput(config=body.config, data=body.data))
    return UninstallResponse(provider=slug, success=bool(res.data))
