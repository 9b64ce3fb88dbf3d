# billing_gateway/engine/factory.py
from __future__ import annotations

from billing_gateway.engine.registry import ProviderRegistry
from billing_gateway.payments.base import BaseProvider


class ProviderFactory:
    """Fresh provider instances by slug. Use ProviderRegistry.get for the shared one."""

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    def create(self, slug: str) -> BaseProvider:
        return self.registry.load(slug).provider_class()
