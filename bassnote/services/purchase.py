"""Purchase flow: start checkout, verify a returned session, report Pro status.

A purchase attempt moves INITIATED -> AWAITING_VERIFICATION while the user pays on
the provider's page, then ends VERIFIED, REJECTED (not paid) or ERROR (provider or
store failure, bad input). The provider's ``payment_status`` is treated as ground
truth; the store is the only side effect.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from bassnote.core.config import Settings
from bassnote.core.errors import InvalidInput, ProviderError, PurchaseFlowError
from bassnote.services.entitlements import EntitlementStore
from bassnote.services.payments import LineItem, PaymentProvider

log = logging.getLogger("bassnote.purchase")

ANONYMOUS_USER_ID = "anonymous_user"
METADATA_USER_KEY = "userId"
# Stripe replaces this placeholder with the real session id on redirect
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


class PurchaseState(str, enum.Enum):
    INITIATED = "initiated"
    AWAITING_VERIFICATION = "awaiting_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"
    ERROR = "error"


def catalog_item(settings: Settings) -> LineItem:
    return LineItem(
        name=settings.product_name,
        description=settings.product_description,
        unit_amount=settings.product_unit_amount,
        currency=settings.product_currency,
        quantity=1,
    )


@dataclass(frozen=True)
class CheckoutReference:
    session_id: str
    url: str
    user_id: str
    state: PurchaseState = PurchaseState.AWAITING_VERIFICATION


@dataclass(frozen=True)
class VerificationResult:
    state: PurchaseState
    session_id: str
    user_id: str | None = None

    @property
    def success(self) -> bool:
        return self.state is PurchaseState.VERIFIED

    @property
    def is_pro(self) -> bool:
        return self.success


class PurchaseFlowController:
    def __init__(
        self,
        store: EntitlementStore,
        provider: PaymentProvider,
        item: LineItem,
        default_origin: str,
    ):
        self.store = store
        self.provider = provider
        self.item = item
        self.default_origin = default_origin.rstrip("/")

    def initiate_checkout(self, user_id: str, return_origin: str | None) -> CheckoutReference:
        origin = (return_origin or "").strip().rstrip("/") or self.default_origin
        log.info("Checkout state=%s user_id=%s origin=%s", PurchaseState.INITIATED.value, user_id, origin)
        try:
            session = self.provider.create_checkout_session(
                self.item,
                metadata={METADATA_USER_KEY: user_id},
                success_url=f"{origin}/?session_id={SESSION_ID_PLACEHOLDER}",
                cancel_url=f"{origin}/",
            )
            if not session.url:
                raise ProviderError(
                    "Unable to create checkout session.",
                    detail=f"session {session.session_id} has no redirect URL",
                )
        except PurchaseFlowError as e:
            log.error("Checkout state=%s user_id=%s: %s", PurchaseState.ERROR.value, user_id, e)
            raise
        log.info(
            "Checkout state=%s user_id=%s session_id=%s",
            PurchaseState.AWAITING_VERIFICATION.value,
            user_id,
            session.session_id,
        )
        return CheckoutReference(session_id=session.session_id, url=session.url, user_id=user_id)

    def verify_purchase(self, session_id: str | None) -> VerificationResult:
        """Check a returned session with the provider and unlock Pro when it is paid.

        Repeating the call for the same paid session re-applies the same write.
        A session that is not paid is a normal REJECTED result, not an error;
        a session the provider cannot resolve raises ProviderError.
        """
        session_id = (session_id or "").strip()
        if not session_id:
            raise InvalidInput("Session ID is required.")
        log.info("Verifying checkout session: %s", session_id)

        try:
            session = self.provider.retrieve_checkout_session(session_id)
            if not session.is_paid:
                log.info(
                    "Verification state=%s session_id=%s payment_status=%s",
                    PurchaseState.REJECTED.value,
                    session_id,
                    session.payment_status,
                )
                return VerificationResult(PurchaseState.REJECTED, session_id)

            user_id = (session.metadata.get(METADATA_USER_KEY) or "").strip()
            if not user_id:
                raise ProviderError(
                    "Invalid session ID or server error.",
                    detail=f"paid session {session_id} carries no {METADATA_USER_KEY} metadata",
                )
            self.store.set_pro(user_id)
        except PurchaseFlowError as e:
            log.error("Verification state=%s session_id=%s: %s", PurchaseState.ERROR.value, session_id, e)
            raise

        log.info("Verification state=%s user_id=%s is now Pro", PurchaseState.VERIFIED.value, user_id)
        return VerificationResult(PurchaseState.VERIFIED, session_id, user_id)

    def get_status(self, user_id: str) -> bool:
        is_pro = self.store.get_status(user_id)
        log.info("User %s requested status: isPro=%s", user_id, is_pro)
        return is_pro
