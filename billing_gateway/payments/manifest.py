# billing_gateway/payments/manifest.py
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    # camelCase on the wire (config UI), snake_case in Python
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------- Capabilities ----------

class CheckoutCapability(_Frozen):
    supported: bool = False
    strategy: Literal["redirect", "native_sdk", "sdui"] = "redirect"


class PaymentFeatures(_Frozen):
    refunds: bool = False
    partial_refunds: bool = False
    capture: bool = False
    disputes: bool = False


class PaymentsCapability(_Frozen):
    supported: bool = False
    features: PaymentFeatures = PaymentFeatures()


class SubscriptionFeatures(_Frozen):
    pause: bool = False
    resume: bool = False
    cancellation: bool = False
    proration: bool = False


class SubscriptionsCapability(_Frozen):
    supported: bool = False
    mode: Literal["native", "virtual"] = "native"
    features: SubscriptionFeatures = SubscriptionFeatures()


class CustomerFeatures(_Frozen):
    create: bool = False
    update: bool = False
    delete: bool = False


class CustomersCapability(_Frozen):
    supported: bool = False
    features: CustomerFeatures = CustomerFeatures()


class WebhooksCapability(_Frozen):
    supported: bool = False
    verification: Literal["signature", "secret", "none"] = "none"


class CatalogCapability(_Frozen):
    supported: bool = False
    strategy: Literal["inline", "synced"] = "inline"


class ProviderCapabilities(_Frozen):
    checkout: CheckoutCapability = CheckoutCapability()
    payments: PaymentsCapability = PaymentsCapability()
    subscriptions: SubscriptionsCapability = SubscriptionsCapability()
    customers: CustomersCapability = CustomersCapability()
    webhooks: WebhooksCapability = WebhooksCapability()
    catalog: CatalogCapability = CatalogCapability()


# ---------- Config / data schema ----------

class ConfigField(_Frozen):
    label: str
    type: Literal["text", "password", "switch", "select", "number", "json"] = "text"
    required: bool = False
    secure: bool = False
    description: Optional[str] = None
    options: Optional[List[Dict[str, str]]] = None   # [{label, value}] for select
    pattern: Optional[str] = None
    error_message: Optional[str] = None


class DataField(_Frozen):
    secure: bool = False
    description: Optional[str] = None


# ---------- Manifest ----------

class ProviderManifest(_Frozen):
    slug: str = Field(..., min_length=1)
    name: str
    category: Literal["card", "bank", "wallet", "crypto", "cash", "bnpl", "marketplace"]
    version: str
    description: str = ""
    author: str = ""
    documentation_url: Optional[str] = None
    support_url: Optional[str] = None
    regions: List[str] = Field(default_factory=lambda: ["*"])
    currencies: List[str] = Field(default_factory=lambda: ["*"])
    sandbox_available: bool = False
    capabilities: ProviderCapabilities = ProviderCapabilities()
    config_schema: Dict[str, ConfigField] = Field(default_factory=dict)
    data_schema: Dict[str, DataField] = Field(default_factory=dict)
    status: Literal["stable", "beta", "deprecated", "experimental"] = "beta"
    hidden: bool = False
    dependencies: Dict[str, str] = Field(default_factory=dict)

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
