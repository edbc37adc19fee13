# eyes/services/identity_provider.py
# Identity provider (Clerk) Frontend API wrapper
# Handles sign-up with email code verification, password sign-in and
# password reset by email code. The provider owns accounts and sessions;
# we only drive its flows and keep the client token between steps.
#
# Flow state lives at the provider. Each step returns a `client_token` that
# the next step must send back (native clients have no cookie jar).

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from eyes.core.config import settings
from eyes.core.errors import IdentityProviderError

logger = logging.getLogger("eyes.identity")

RESET_STRATEGY = "reset_password_email_code"


@dataclass
class FlowResult:
    """Outcome of one provider call."""
    id: str
    status: str
    client_token: Optional[str] = None
    created_user_id: Optional[str] = None
    created_session_id: Optional[str] = None
    email_address_id: Optional[str] = None
    session_token: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"


class IdentityProvider:
    """Minimal Frontend API client over httpx."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        self.base_url = (base_url or settings.identity_frontend_api_url).rstrip("/")
        self.timeout = timeout

    # ── transport ─────────────────────────────────────────────────────────────

    def _post(self, path: str, data: Dict[str, Any], client_token: Optional[str] = None) -> FlowResult:
        if not self.base_url:
            raise IdentityProviderError(
                "Identity provider is not configured.", title="Error", provider_status=503
            )

        headers = {"Accept": "application/json"}
        if client_token:
            headers["Authorization"] = client_token

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/v1/client/{path}",
                    params={"_is_native": "1"},
                    data={k: v for k, v in data.items() if v is not None},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %s", exc)
            raise IdentityProviderError(
                "Could not reach the sign-in service. Please try again.", provider_status=503
            )

        try:
            body = resp.json() if resp.content else {}
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            raise _provider_error(body, resp.status_code)

        obj = body.get("response") or {}
        session = _find_session(body.get("client") or {}, obj.get("created_session_id"))
        return FlowResult(
            id=obj.get("id", ""),
            status=obj.get("status", ""),
            client_token=resp.headers.get("Authorization") or client_token,
            created_user_id=obj.get("created_user_id") or (session.get("user") or {}).get("id"),
            created_session_id=obj.get("created_session_id"),
            email_address_id=_reset_email_address_id(obj),
            session_token=(session.get("last_active_token") or {}).get("jwt"),
        )

    # ── sign-up ───────────────────────────────────────────────────────────────

    def create_sign_up(self, email: str, password: str) -> FlowResult:
        return self._post("sign_ups", {"email_address": email, "password": password})

    def prepare_email_verification(self, sign_up_id: str, client_token: Optional[str]) -> FlowResult:
        return self._post(
            f"sign_ups/{sign_up_id}/prepare_verification",
            {"strategy": "email_code"},
            client_token,
        )

    def attempt_email_verification(self, sign_up_id: str, code: str, client_token: Optional[str]) -> FlowResult:
        return self._post(
            f"sign_ups/{sign_up_id}/attempt_verification",
            {"strategy": "email_code", "code": code},
            client_token,
        )

    # ── sign-in ───────────────────────────────────────────────────────────────

    def sign_in(self, identifier: str, password: str) -> FlowResult:
        return self._post(
            "sign_ins",
            {"identifier": identifier, "password": password, "strategy": "password"},
        )

    # ── password reset ────────────────────────────────────────────────────────

    def start_password_reset(self, identifier: str) -> FlowResult:
        started = self._post("sign_ins", {"identifier": identifier})
        return self._post(
            f"sign_ins/{started.id}/prepare_first_factor",
            {"strategy": RESET_STRATEGY, "email_address_id": started.email_address_id},
            started.client_token,
        )

    def complete_password_reset(
        self, sign_in_id: str, code: str, password: str, client_token: Optional[str]
    ) -> FlowResult:
        result = self._post(
            f"sign_ins/{sign_in_id}/attempt_first_factor",
            {"strategy": RESET_STRATEGY, "code": code, "password": password},
            client_token,
        )
        if result.status == "needs_new_password":
            result = self._post(
                f"sign_ins/{sign_in_id}/reset_password",
                {"password": password},
                result.client_token,
            )
        return result


def _find_session(client: dict, session_id: Optional[str]) -> dict:
    """The client object lists every session; pick the one this flow created."""
    for session in client.get("sessions") or []:
        if session.get("id") == session_id:
            return session
    return {}


def _reset_email_address_id(obj: dict) -> Optional[str]:
    for factor in obj.get("supported_first_factors") or []:
        if factor.get("strategy") == RESET_STRATEGY:
            return factor.get("email_address_id")
    return None


def _provider_error(body: dict, status_code: int) -> IdentityProviderError:
    errors = body.get("errors") or [{}]
    first = errors[0]
    message = first.get("long_message") or first.get("message") or "An unknown error occurred."
    logger.warning("Identity provider rejected request (%s): %s", status_code, message)
    return IdentityProviderError(message, provider_status=status_code)


_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency -- overridden in tests."""
    global _provider
    if _provider is None:
        _provider = IdentityProvider()
    return _provider
