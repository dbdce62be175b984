from .purchase import (
    CheckoutResponse,
    UserStatusResponse,
    VerifyPurchaseRequest,
    VerifyPurchaseResponse,
)

__all__ = [
    "CheckoutResponse",
    "UserStatusResponse",
    "VerifyPurchaseRequest",
    "VerifyPurchaseResponse",
]
