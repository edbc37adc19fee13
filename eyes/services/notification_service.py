# eyes/services/notification_service.py
# Sends push notifications through the Expo push gateway
#
# Usage (from any endpoint or background task):
#   from eyes.services.notification_service import notify
#   notify(sender, token, notification_type="emotion_alert",
#          title="Your Child's Emotion Alert", body="Sam: Sam looks sad")
#
# Delivery is owned by the gateway -- we POST once and report the outcome.
# A failed push never blocks the action that triggered it.

import logging
from typing import Any, Dict, List, Optional

import httpx

from eyes.core.config import settings
from eyes.core.errors import PushDeliveryError

logger = logging.getLogger("eyes.notifications")


# ── Notification Types ────────────────────────────────────────────────────────

NOTIFICATION_TYPES = {
    "emotion_alert",   # Notable emotion detected for a child
    "chat_message",    # New chat message from the other party
}

# Android channel the app registers for each type
ANDROID_CHANNELS = {
    "emotion_alert": "emotion-alerts",
    "chat_message": "default",
}


class PushSender:
    """
    Thin client for the Expo push endpoint.
    Payload: {to, title, body, data, sound, priority, badge, channelId}
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or settings.expo_push_url
        self.timeout = timeout or settings.push_timeout_seconds

    def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    self.url,
                    json=message,
                    headers={"Accept": "application/json"},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as exc:
            raise PushDeliveryError(f"Push gateway request failed: {exc}")
        except ValueError:
            raise PushDeliveryError("Push gateway returned a non-JSON response")

        # The gateway answers 200 even for rejected tickets
        ticket = body.get("data") if isinstance(body, dict) else None
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else None
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            raise PushDeliveryError(ticket.get("message") or "Push ticket rejected")
        return body


def is_push_token(token: Any) -> bool:
    return isinstance(token, str) and (
        token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")
    )


def build_message(
    token: str,
    notification_type: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type '{notification_type}'")
    return {
        "to": token,
        "sound": "default",
        "title": title,
        "body": body,
        "priority": "high",
        "badge": 1,
        "channelId": ANDROID_CHANNELS[notification_type],
        "data": data or {},
    }


def notify(
    sender: PushSender,
    token: Optional[str],
    notification_type: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Push one notification to one device.

    Returns True when the gateway accepted it, False when there is no token
    or delivery failed (the failure is logged).
    """
    if not token:
        logger.warning("No push token registered -- skipping '%s' notification", notification_type)
        return False
    if not is_push_token(token):
        logger.warning("Ignoring malformed push token %r", token)
        return False

    message = build_message(token, notification_type, title, body, data)
    try:
        sender.send(message)
    except PushDeliveryError as exc:
        logger.error("Push notification failed: %s", exc.message)
        return False

    logger.info("Push '%s' sent to %s", notification_type, token)
    return True


def notify_many(
    sender: PushSender,
    tokens: List[Optional[str]],
    notification_type: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
) -> int:
    """Push the same notification to several devices. Returns how many were accepted."""
    return sum(
        1 for token in tokens
        if notify(sender, token, notification_type, title, body, data)
    )


_sender: Optional[PushSender] = None


def get_push_sender() -> PushSender:
    """FastAPI dependency -- overridden in tests."""
    global _sender
    if _sender is None:
        _sender = PushSender()
    return _sender
