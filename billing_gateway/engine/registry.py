# billing_gateway/engine/registry.py
from __future__ import annotations
import importlib
import threading
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

import structlog

from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.errors import ProviderLoadError, ProviderNotRegisteredError, RevstackError
from billing_gateway.payments.manifest import ProviderManifest

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProviderModule:
    manifest: ProviderManifest
    provider_class: Type[BaseProvider]


ProviderLoader = Callable[[], ProviderModule]


def module_for(provider_class: Type[BaseProvider]) -> ProviderModule:
    return ProviderModule(manifest=provider_class.manifest, provider_class=provider_class)


def _import_loader(path: str) -> ProviderLoader:
    """'pkg.module:ClassName' -> loader that imports on first call."""
    module_name, _, class_name = path.partition(":")

    def _load() -> ProviderModule:
        module = importlib.import_module(module_name)
        return module_for(getattr(module, class_name))

    return _load


# slug -> import path; imported lazily so an unused vendor SDK is never loaded
BUILTIN_PROVIDERS: Dict[str, str] = {
    "stripe": "billing_gateway.payments.stripe_provider:StripeProvider",
    "fake": "billing_gateway.payments.fake_provider:FakeProvider",
}


def _coerce(obj: Any) -> ProviderModule:
    # entry points may expose a ProviderModule, a provider class, or a loader
    if isinstance(obj, ProviderModule):
        return obj
    if isinstance(obj, type) and issubclass(obj, BaseProvider):
        return module_for(obj)
    if callable(obj):
        return _coerce(obj())
    raise TypeError(f"Unsupported provider entry point object: {obj!r}")


class ProviderRegistry:
    """
    slug -> lazily loaded provider implementation.

    A loader runs on first use and its result is cached. A failing loader is
    reported (ProviderLoadError / a logged warning) and retried on the next use.
    """

    def __init__(self):
        self._loaders: Dict[str, ProviderLoader] = {}
        self._modules: Dict[str, ProviderModule] = {}
        self._instances: Dict[str, BaseProvider] = {}
        self._lock = threading.RLock()

    # ---------- registration ----------

    def register(self, slug: str, loader: ProviderLoader, *, replace: bool = False) -> None:
        with self._lock:
            if slug in self._loaders and not replace:
                raise ValueError(f"Provider '{slug}' is already registered")
            self._loaders[slug] = loader
            self._modules.pop(slug, None)
            self._instances.pop(slug, None)
        log.debug("provider_registered", provider=slug)

    def register_class(self, provider_class: Type[BaseProvider], *, replace: bool = False) -> None:
        module = module_for(provider_class)
        self.register(module.manifest.slug, lambda: module, replace=replace)

    def unregister(self, slug: str) -> None:
        with self._lock:
            self._loaders.pop(slug, None)
            self._modules.pop(slug, None)
            self._instances.pop(slug, None)

    def is_registered(self, slug: str) -> bool:
        return slug in self._loaders

    def list_registered(self) -> List[str]:
        return sorted(self._loaders)

    # ---------- loading ----------

    def load(self, slug: str) -> ProviderModule:
        cached = self._modules.get(slug)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._modules.get(slug)
            if cached is not None:
                return cached
            loader = self._loaders.get(slug)
            if loader is None:
                raise ProviderNotRegisteredError(slug, self.list_registered())
            try:
                module = _coerce(loader())
            except Exception as e:
                log.warning("provider_load_failed", provider=slug, error=str(e))
                raise ProviderLoadError(slug, e) from e
            if module.manifest.slug != slug:
                raise ProviderLoadError(
                    slug, ValueError(f"manifest slug '{module.manifest.slug}' does not match '{slug}'")
                )
            self._modules[slug] = module
            log.info("provider_loaded", provider=slug, version=module.manifest.version)
            return module

    def get(self, slug: str) -> BaseProvider:
        """Shared instance, created on first use."""
        inst = self._instances.get(slug)
        if inst is not None:
            return inst
        module = self.load(slug)
        with self._lock:
            inst = self._instances.get(slug)
            if inst is None:
                inst = module.provider_class()
                self._instances[slug] = inst
            return inst

    def get_manifest(self, slug: str) -> Optional[ProviderManifest]:
        try:
            return self.load(slug).manifest
        except RevstackError as e:
            log.warning("provider_manifest_unavailable", provider=slug, error=e.message)
            return None

    def build_catalog(self, *, include_hidden: bool = False) -> List[ProviderManifest]:
        catalog: List[ProviderManifest] = []
        for slug in self.list_registered():
            manifest = self.get_manifest(slug)
            if manifest is None:
                continue
            if manifest.hidden and not include_hidden:
                continue
            catalog.append(manifest)
        return catalog

    # ---------- discovery ----------

    def register_builtins(self, enabled: Optional[Iterable[str]] = None) -> None:
        wanted = set(enabled) if enabled is not None else set(BUILTIN_PROVIDERS)
        for slug, path in BUILTIN_PROVIDERS.items():
            if slug in wanted:
                self.register(slug, _import_loader(path), replace=True)

    def discover_entry_points(self, group: str) -> List[str]:
        """Register third-party providers published under `group`; returns the new slugs."""
        found: List[str] = []
        for ep in entry_points(group=group):
            if self.is_registered(ep.name):
                log.warning("provider_entry_point_shadowed", provider=ep.name, target=ep.value)
                continue
            self.register(ep.name, lambda ep=ep: _coerce(ep.load()))
            found.append(ep.name)
        if found:
            log.info("provider_entry_points_discovered", group=group, providers=found)
        return found


def build_default_registry(enabled: Iterable[str], entry_point_group: Optional[str] = None) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register_builtins(enabled)
    if entry_point_group:
        registry.discover_entry_points(entry_point_group)
    return registry
