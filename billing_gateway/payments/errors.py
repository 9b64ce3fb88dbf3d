# billing_gateway/payments/errors.py
from __future__ import annotations
from enum import Enum
from typing import Optional


class RevstackErrorCode(str, Enum):
    # --- generic ---
    UnknownError = "unknown_error"
    InternalError = "internal_error"
    NotImplemented = "not_implemented"
    Timeout = "timeout"
    ProviderUnavailable = "provider_unavailable"
    RateLimitExceeded = "rate_limit_exceeded"

    # --- auth / config ---
    InvalidCredentials = "invalid_credentials"
    Unauthorized = "unauthorized"
    MisconfiguredProvider = "misconfigured_provider"

    # --- input ---
    InvalidInput = "invalid_input"
    MissingRequiredField = "missing_required_field"
    InvalidAmount = "invalid_amount"
    InvalidCurrency = "invalid_currency"
    InvalidEmail = "invalid_email"
    InvalidState = "invalid_state"

    # --- resources ---
    ResourceNotFound = "resource_not_found"
    ResourceAlreadyExists = "resource_already_exists"
    IdempotencyKeyConflict = "idempotency_key_conflict"

    # --- payments ---
    PaymentFailed = "payment_failed"
    CardDeclined = "card_declined"
    InsufficientFunds = "insufficient_funds"
    ExpiredCard = "expired_card"
    IncorrectCvc = "incorrect_cvc"
    AuthenticationRequired = "authentication_required"
    PaymentMethodNotSupported = "payment_method_not_supported"
    DuplicateTransaction = "duplicate_transaction"
    LimitExceeded = "limit_exceeded"
    FraudDetected = "fraud_detected"
    AccountSuspended = "account_suspended"

    # --- subscriptions ---
    SubscriptionNotFound = "subscription_not_found"
    SubscriptionAlreadyActive = "subscription_already_active"
    SubscriptionCancelled = "subscription_cancelled"
    PlanNotFound = "plan_not_found"

    # --- refunds / disputes ---
    RefundFailed = "refund_failed"
    RefundAlreadyProcessed = "refund_already_processed"
    RefundWindowExpired = "refund_window_expired"
    DisputeLost = "dispute_lost"

    # --- provider / webhooks ---
    ProviderRejected = "provider_rejected"
    WebhookSignatureVerificationFailed = "webhook_signature_verification_failed"


_HTTP_STATUS: dict[RevstackErrorCode, int] = {
    RevstackErrorCode.InvalidInput: 400,
    RevstackErrorCode.MissingRequiredField: 400,
    RevstackErrorCode.InvalidAmount: 400,
    RevstackErrorCode.InvalidCurrency: 400,
    RevstackErrorCode.InvalidEmail: 400,
    RevstackErrorCode.InvalidState: 400,
    RevstackErrorCode.CardDeclined: 400,
    RevstackErrorCode.InsufficientFunds: 400,
    RevstackErrorCode.ExpiredCard: 400,
    RevstackErrorCode.IncorrectCvc: 400,
    RevstackErrorCode.PaymentFailed: 400,
    RevstackErrorCode.PaymentMethodNotSupported: 400,
    RevstackErrorCode.LimitExceeded: 400,
    RevstackErrorCode.FraudDetected: 400,
    RevstackErrorCode.RefundFailed: 400,
    RevstackErrorCode.RefundWindowExpired: 400,
    RevstackErrorCode.DisputeLost: 400,
    RevstackErrorCode.InvalidCredentials: 401,
    RevstackErrorCode.Unauthorized: 401,
    RevstackErrorCode.WebhookSignatureVerificationFailed: 401,
    RevstackErrorCode.AuthenticationRequired: 402,
    RevstackErrorCode.AccountSuspended: 403,
    RevstackErrorCode.ProviderRejected: 403,
    RevstackErrorCode.ResourceNotFound: 404,
    RevstackErrorCode.SubscriptionNotFound: 404,
    RevstackErrorCode.PlanNotFound: 404,
    RevstackErrorCode.ResourceAlreadyExists: 409,
    RevstackErrorCode.IdempotencyKeyConflict: 409,
    RevstackErrorCode.DuplicateTransaction: 409,
    RevstackErrorCode.SubscriptionAlreadyActive: 409,
    RevstackErrorCode.SubscriptionCancelled: 409,
    RevstackErrorCode.RefundAlreadyProcessed: 409,
    RevstackErrorCode.RateLimitExceeded: 429,
    RevstackErrorCode.NotImplemented: 501,
    RevstackErrorCode.ProviderUnavailable: 502,
    RevstackErrorCode.Timeout: 502,
}


def http_status_for(code: RevstackErrorCode) -> int:
    """Suggested HTTP status for surfacing `code` to an API caller."""
    return _HTTP_STATUS.get(code, 500)


class RevstackError(Exception):
    """
    Raised for programmer / integration failures. Expected vendor outcomes
    (declines, not found, rate limits) travel inside AsyncActionResult.error.
    """

    def __init__(
        self,
        code: RevstackErrorCode,
        message: str,
        *,
        provider: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.provider = provider
        self.cause = cause

    @property
    def status_code(self) -> int:
        return http_status_for(self.code)

    def to_dict(self) -> dict:
        out = {"code": self.code.value, "message": self.message}
        if self.provider:
            out["provider"] = self.provider
        return out


class OperationNotSupportedError(RevstackError):
    def __init__(self, operation: str, *, provider: Optional[str] = None):
        super().__init__(
            RevstackErrorCode.NotImplemented,
            f"Provider '{provider or 'unknown'}' does not support '{operation}'",
            provider=provider,
        )
        self.operation = operation


class InvalidCredentialsError(RevstackError):
    def __init__(self, message: str = "Invalid provider credentials", *, provider: Optional[str] = None):
        super().__init__(RevstackErrorCode.InvalidCredentials, message, provider=provider)


class ProviderNotRegisteredError(RevstackError):
    def __init__(self, slug: str, available: list[str]):
        listed = ", ".join(available) if available else "(none)"
        super().__init__(
            RevstackErrorCode.MisconfiguredProvider,
            f"Provider '{slug}' is not registered. Available providers: {listed}",
            provider=slug,
        )
        self.slug = slug
        self.available = available


class ProviderLoadError(RevstackError):
    def __init__(self, slug: str, cause: BaseException):
        super().__init__(
            RevstackErrorCode.MisconfiguredProvider,
            f"Failed to load provider '{slug}': {cause}",
            provider=slug,
            cause=cause,
        )


# ---------- Webhook verification ----------

class WebhookVerificationError(RevstackError):
    reason = "verification_failed"

    def __init__(self, detail: Optional[str] = None):
        msg = f"Webhook {self.reason.replace('_', ' ')}" + (f": {detail}" if detail else "")
        super().__init__(RevstackErrorCode.WebhookSignatureVerificationFailed, msg)
        self.detail = detail


class InvalidSignatureFormat(WebhookVerificationError):
    reason = "invalid_signature_format"


class SignatureMismatch(WebhookVerificationError):
    reason = "signature_mismatch"


class TimestampTooOld(WebhookVerificationError):
    reason = "timestamp_too_old"


class InvalidPayload(WebhookVerificationError):
    reason = "invalid_payload"
