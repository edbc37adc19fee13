# tests/conftest.py
# Shared fixtures: an in-memory realtime database seeded with one class,
# fake identity provider, recording push sender and a TestClient wired to them.

import os

# Must be set before eyes.core.config builds its settings singleton
os.environ["STORE_BACKEND"] = "memory"
os.environ["IDENTITY_JWT_PUBLIC_KEY"] = "test-secret"
os.environ["IDENTITY_JWT_ALGORITHM"] = "HS256"
os.environ["IDENTITY_JWT_ISSUER"] = ""
os.environ["CLASS_ID"] = "Class-A"
os.environ["ALERT_EMOTIONS"] = "Angry,Sad"
os.environ["ALERT_WATCHER_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from eyes.core.errors import IdentityProviderError, PushDeliveryError
from eyes.db.session import get_store
from eyes.db.store import MemoryStore
from eyes.main import app
from eyes.services.identity_provider import FlowResult, get_identity_provider
from eyes.services.notification_service import PushSender, get_push_sender


def make_token(user_id: str, expires_in: int = 3600, key: str = "test-secret") -> str:
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, key, algorithm="HS256")


# ── Fakes ─────────────────────────────────────────────────────────────────────

class RecordingSender(PushSender):
    """Collects messages instead of calling the push gateway."""

    def __init__(self):
        super().__init__(url="http://push.test")
        self.sent = []
        self.fail = False

    def send(self, message):
        if self.fail:
            raise PushDeliveryError("gateway down")
        self.sent.append(message)
        return {"data": {"status": "ok", "id": f"ticket-{len(self.sent)}"}}


class FakeIdentityProvider:
    """Stands in for the provider's Frontend API. Valid code is 123456, valid password 'secret'."""

    def __init__(self):
        self.calls = []
        self.new_user_id = "user_new"
        self.sign_in_user_id = "teacher_1"
        self.sign_up_error = None

    def create_sign_up(self, email, password):
        self.calls.append(("create_sign_up", email))
        if self.sign_up_error:
            raise IdentityProviderError(self.sign_up_error, provider_status=422)
        return FlowResult(id="sua_1", status="missing_requirements", client_token="client_1")

    def prepare_email_verification(self, sign_up_id, client_token):
        self.calls.append(("prepare_email_verification", sign_up_id))
        return FlowResult(id=sign_up_id, status="missing_requirements", client_token="client_2")

    def attempt_email_verification(self, sign_up_id, code, client_token):
        self.calls.append(("attempt_email_verification", sign_up_id, code))
        if code != "123456":
            raise IdentityProviderError("Incorrect code", provider_status=422)
        return FlowResult(
            id=sign_up_id,
            status="complete",
            client_token=client_token,
            created_user_id=self.new_user_id,
            created_session_id="sess_1",
            session_token="session-jwt",
        )

    def sign_in(self, identifier, password):
        self.calls.append(("sign_in", identifier))
        if password != "secret":
            raise IdentityProviderError("Password is incorrect. Try again.", provider_status=422)
        return FlowResult(
            id="sia_1",
            status="complete",
            created_user_id=self.sign_in_user_id,
            created_session_id="sess_2",
            session_token="session-jwt",
        )

    def start_password_reset(self, identifier):
        self.calls.append(("start_password_reset", identifier))
        return FlowResult(id="sia_2", status="needs_first_factor", client_token="client_3")

    def complete_password_reset(self, sign_in_id, code, password, client_token):
        self.calls.append(("complete_password_reset", sign_in_id, code))
        if code != "123456":
            raise IdentityProviderError("Incorrect code", provider_status=422)
        return FlowResult(id=sign_in_id, status="complete", client_token=client_token)


# ── Fixtures ──────────────────────────────────────────────────────────────────

def seed_tree() -> dict:
    return {
        "Users": {
            "Teachers": {
                "TeacherId": {
                    "teacher_1": {
                        "email": "ada@greenfieldschool.org",
                        "clerkId": "teacher_1",
                        "firstName": "Ada",
                        "lastName": "Lovelace",
                        "fcmToken": "ExponentPushToken[teacher]",
                    },
                    "teacher_2": {
                        "email": "grace@greenfieldschool.org",
                        "clerkId": "teacher_2",
                    },
                },
                "Class-A": {
                    "Parents": {
                        "parent_1": {
                            "childName": "Sam",
                            "email": "sam.parent@familymail.org",
                            "clerkId": "parent_1",
                            "fcmToken": "ExponentPushToken[parent]",
                        },
                        "parent_2": {
                            "childName": "Alex",
                            "email": "alex.parent@familymail.org",
                            "clerkId": "parent_2",
                        },
                    },
                },
            },
        },
    }


@pytest.fixture
def store():
    return MemoryStore(seed_tree())


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def client(store, sender, provider):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_push_sender] = lambda: sender
    app.dependency_overrides[get_identity_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """auth('teacher_1') -> Authorization header for that user."""
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {make_token(user_id)}"}
    return _headers
