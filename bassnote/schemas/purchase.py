from pydantic import BaseModel

# Field names follow the browser client's JSON (camelCase).


class UserStatusResponse(BaseModel):
    isPro: bool


class CheckoutResponse(BaseModel):
    url: str
    sessionId: str


class VerifyPurchaseRequest(BaseModel):
    """Sent after the provider redirects back with ?session_id=..."""
    sessionId: str | None = None


class VerifyPurchaseResponse(BaseModel):
    success: bool
    isPro: bool | None = None
    message: str | None = None
    error: str | None = None
