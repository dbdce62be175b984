from fastapi import APIRouter, Depends, Request

from bassnote.api.deps import get_purchase_controller, get_user_id
from bassnote.core.rate_limit import RATE_LIMIT_STR, limiter
from bassnote.schemas import (
    CheckoutResponse,
    UserStatusResponse,
    VerifyPurchaseRequest,
    VerifyPurchaseResponse,
)
from bassnote.services.purchase import PurchaseFlowController

router = APIRouter(tags=["purchase"])


@router.get("/user-status", response_model=UserStatusResponse)
def user_status(
    user_id: str = Depends(get_user_id),
    controller: PurchaseFlowController = Depends(get_purchase_controller),
):
    """Pro status of the caller (X-User-Id); unknown users are not Pro."""
    return UserStatusResponse(isPro=controller.get_status(user_id))


@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit(RATE_LIMIT_STR)
def checkout(
    request: Request,
    user_id: str = Depends(get_user_id),
    controller: PurchaseFlowController = Depends(get_purchase_controller),
):
    """Opens a checkout session; the client redirects the browser to the returned URL."""
    ref = controller.initiate_checkout(user_id, request.headers.get("origin"))
    return CheckoutResponse(url=ref.url, sessionId=ref.session_id)


@router.post(
    "/verify-purchase",
    response_model=VerifyPurchaseResponse,
    response_model_exclude_none=True,
)
@limiter.limit(RATE_LIMIT_STR)
def verify_purchase(
    request: Request,
    body: VerifyPurchaseRequest | None = None,
    controller: PurchaseFlowController = Depends(get_purchase_controller),
):
    result = controller.verify_purchase(body.sessionId if body else None)
    if result.success:
        return VerifyPurchaseResponse(success=True, isPro=True, message="Payment verified.")
    return VerifyPurchaseResponse(success=False, error="Payment not successful.")
