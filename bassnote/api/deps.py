from fastapi import Depends, Header, Request

from bassnote.core.config import settings
from bassnote.services.entitlements import EntitlementStore
from bassnote.services.payments import PaymentProvider
from bassnote.services.purchase import ANONYMOUS_USER_ID, PurchaseFlowController, catalog_item


def get_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """Caller-supplied user id; missing or blank means the shared anonymous user."""
    return (x_user_id or "").strip() or ANONYMOUS_USER_ID


def get_entitlement_store(request: Request) -> EntitlementStore:
    return request.app.state.entitlement_store


def get_payment_provider(request: Request) -> PaymentProvider:
    return request.app.state.payment_provider


def get_purchase_controller(
    store: EntitlementStore = Depends(get_entitlement_store),
    provider: PaymentProvider = Depends(get_payment_provider),
) -> PurchaseFlowController:
    return PurchaseFlowController(
        store,
        provider,
        item=catalog_item(settings),
        default_origin=settings.public_base_url,
    )
