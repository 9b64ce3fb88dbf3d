# billing_gateway/payments/context.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional
from uuid import uuid4


@dataclass(frozen=True)
class ProviderContext:
    """
    Request-scoped call context. Built per call, passed by value, never stored.

    `config` holds the installed provider config (api keys etc.);
    `idempotency_key` is forwarded verbatim to the vendor on mutating calls.
    """
    config: Mapping[str, Any] = field(default_factory=dict)
    trace_id: str = field(default_factory=lambda: uuid4().hex)
    idempotency_key: Optional[str] = None
    is_test_mode: bool = False

    def __post_init__(self):
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    def with_config(self, config: Mapping[str, Any]) -> "ProviderContext":
        return replace(self, config=config)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)
