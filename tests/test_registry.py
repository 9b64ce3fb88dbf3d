import pytest

from billing_gateway.engine.factory import ProviderFactory
from billing_gateway.engine.registry import (
    BUILTIN_PROVIDERS,
    ProviderModule,
    ProviderRegistry,
    build_default_registry,
    module_for,
)
from billing_gateway.payments.errors import (
    ProviderLoadError,
    ProviderNotRegisteredError,
    RevstackErrorCode,
)
from billing_gateway.payments.fake_provider import FAKE_MANIFEST, FakeProvider
from billing_gateway.payments.stripe_provider import StripeProvider


class CountingLoader:
    def __init__(self, provider_class, fail_times=0):
        self.provider_class = provider_class
        self.calls = 0
        self.fail_times = fail_times

    def __call__(self):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise ImportError("vendor sdk missing")
        return module_for(self.provider_class)


@pytest.fixture
def registry():
    return ProviderRegistry()


def test_loader_runs_lazily_and_once(registry):
    loader = CountingLoader(FakeProvider)
    registry.register("fake", loader)
    assert loader.calls == 0

    first = registry.load("fake")
    second = registry.load("fake")
    assert loader.calls == 1
    assert first is second
    assert isinstance(first, ProviderModule)
    assert first.manifest.slug == "fake"


def test_unknown_slug_lists_available_sorted(registry):
    registry.register_class(StripeProvider)
    registry.register_class(FakeProvider)
    with pytest.raises(ProviderNotRegisteredError) as exc:
        registry.load("paypal")
    assert exc.value.code == RevstackErrorCode.MisconfiguredProvider
    assert "fake, stripe" in exc.value.message


def test_failing_loader_is_retried(registry):
    loader = CountingLoader(FakeProvider, fail_times=1)
    registry.register("fake", loader)
    with pytest.raises(ProviderLoadError):
        registry.load("fake")
    assert registry.load("fake").provider_class is FakeProvider
    assert loader.calls == 2


def test_slug_mismatch_is_a_load_error(registry):
    registry.register("not-fake", lambda: module_for(FakeProvider))
    with pytest.raises(ProviderLoadError):
        registry.load("not-fake")


def test_duplicate_registration_needs_replace(registry):
    registry.register_class(FakeProvider)
    with pytest.raises(ValueError):
        registry.register_class(FakeProvider)
    registry.register_class(FakeProvider, replace=True)
    assert registry.list_registered() == ["fake"]


def test_get_returns_shared_instance(registry):
    registry.register_class(FakeProvider)
    assert registry.get("fake") is registry.get("fake")


def test_factory_returns_fresh_instances(registry):
    registry.register_class(FakeProvider)
    factory = ProviderFactory(registry)
    a = factory.create("fake")
    b = factory.create("fake")
    assert isinstance(a, FakeProvider)
    assert a is not b


def test_unregister(registry):
    registry.register_class(FakeProvider)
    registry.unregister("fake")
    assert not registry.is_registered("fake")
    assert registry.get_manifest("fake") is None


def test_catalog_skips_broken_and_hidden(registry):
    registry.register_class(StripeProvider)
    registry.register_class(FakeProvider)
    registry.register("broken", CountingLoader(FakeProvider, fail_times=99))

    public = registry.build_catalog()
    assert [m.slug for m in public] == ["stripe"]

    everything = registry.build_catalog(include_hidden=True)
    assert [m.slug for m in everything] == ["fake", "stripe"]


def test_manifest_lookup_for_broken_provider_is_none(registry):
    registry.register("broken", CountingLoader(FakeProvider, fail_times=99))
    assert registry.get_manifest("broken") is None


def test_builtins_are_import_paths_until_used():
    registry = build_default_registry(["fake"])
    assert registry.list_registered() == ["fake"]
    assert registry.get_manifest("fake") == FAKE_MANIFEST
    assert set(BUILTIN_PROVIDERS) == {"stripe", "fake"}


def test_builtins_default_to_all():
    registry = ProviderRegistry()
    registry.register_builtins()
    assert registry.list_registered() == ["fake", "stripe"]


def test_entry_point_group_without_members_adds_nothing(registry):
    registry.register_class(FakeProvider)
    assert registry.discover_entry_points("billing_gateway.providers.none") == []
    assert registry.list_registered() == ["fake"]
