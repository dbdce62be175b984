"""Pytest fixtures: test client, in-memory SQLite store, fake payment provider."""
import dataclasses
import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Must be set before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENTITLEMENT_BACKEND", "database")
os.environ.setdefault("STRIPE_SECRET_KEY", "")
os.environ.setdefault("PUBLIC_BASE_URL", "http://localhost:8080")
# High limit so the whole suite fits in one window
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")

from bassnote.api.deps import get_payment_provider
from bassnote.core.errors import ProviderError
from bassnote.main import app
from bassnote.services.payments import CheckoutSession


class FakePaymentProvider:
    """Records created sessions and answers lookups from memory, like Stripe test mode."""

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}
        self.created: list[dict] = []
        self.retrieved: list[str] = []
        self.fail_create = False

    def create_checkout_session(self, line_item, metadata, success_url, cancel_url):
        if self.fail_create:
            raise ProviderError("Unable to create checkout session.", detail="No such price")
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append(
            {
                "session_id": session_id,
                "line_item": line_item,
                "metadata": dict(metadata),
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        session = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status="unpaid",
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session

    def retrieve_checkout_session(self, session_id):
        self.retrieved.append(session_id)
        if session_id not in self.sessions:
            raise ProviderError(
                "Invalid session ID or server error.",
                detail=f"No such checkout.session: '{session_id}'",
            )
        return self.sessions[session_id]

    def add_session(self, session_id, payment_status="paid", metadata=None):
        self.sessions[session_id] = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status=payment_status,
            metadata=metadata or {},
        )

    def mark_paid(self, session_id):
        self.sessions[session_id] = dataclasses.replace(self.sessions[session_id], payment_status="paid")


@pytest.fixture
def provider():
    return FakePaymentProvider()


@pytest.fixture(scope="function")
def client(provider):
    """TestClient; lifespan creates the tables and the entitlement store."""
    app.dependency_overrides[get_payment_provider] = lambda: provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    """Fresh id per test; the in-memory DB is shared by the whole session."""
    return f"user_{uuid.uuid4().hex[:12]}"
