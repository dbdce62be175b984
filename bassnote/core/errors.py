"""Failures of the purchase flow, mapped to HTTP status codes at the request boundary."""


class PurchaseFlowError(Exception):
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        # Internal detail for logs; never sent to the client
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidInput(PurchaseFlowError):
    status_code = 400
    default_message = "Invalid request."


class ProviderError(PurchaseFlowError):
    """Payment provider call failed, timed out or returned unusable data."""

    default_message = "Payment provider error."


class StoreError(PurchaseFlowError):
    """Entitlement store read or write failed."""

    default_message = "Entitlement store error."
