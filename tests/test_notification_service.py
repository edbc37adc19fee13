import json

import httpx
import pytest

from eyes.core.errors import PushDeliveryError
from eyes.services import chat_service, notification_service
from eyes.services.notification_service import PushSender, build_message, is_push_token, notify


@pytest.fixture
def gateway(monkeypatch):
    """Route PushSender's httpx.Client through a mock transport; returns the captured requests."""
    captured = {
        "requests": [],
        "respond": lambda: httpx.Response(200, json={"data": {"status": "ok", "id": "t1"}}),
    }

    def handler(request):
        captured["requests"].append(request)
        return captured["respond"]()

    real_client = httpx.Client
    monkeypatch.setattr(
        notification_service.httpx,
        "Client",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    return captured


def test_is_push_token():
    assert is_push_token("ExponentPushToken[abc]")
    assert is_push_token("ExpoPushToken[abc]")
    assert not is_push_token("fcm-raw-token")
    assert not is_push_token(None)


def test_build_message():
    message = build_message("ExponentPushToken[x]", "emotion_alert", "T", "B", {"k": "v"})
    assert message == {
        "to": "ExponentPushToken[x]",
        "sound": "default",
        "title": "T",
        "body": "B",
        "priority": "high",
        "badge": 1,
        "channelId": "emotion-alerts",
        "data": {"k": "v"},
    }
    with pytest.raises(ValueError):
        build_message("ExponentPushToken[x]", "newsletter", "T", "B")


def test_notify_posts_to_gateway(gateway):
    sender = PushSender(url="https://push.test/send")
    assert notify(sender, "ExponentPushToken[x]", "chat_message", "New Message", "hi")

    request = gateway["requests"][0]
    assert str(request.url) == "https://push.test/send"
    body = json.loads(request.content)
    assert body["to"] == "ExponentPushToken[x]"
    assert body["channelId"] == "default"


def test_rejected_ticket_raises(gateway):
    gateway["respond"] = lambda: httpx.Response(
        200, json={"data": {"status": "error", "message": "DeviceNotRegistered"}}
    )
    with pytest.raises(PushDeliveryError) as exc:
        PushSender(url="https://push.test/send").send({"to": "ExponentPushToken[x]"})
    assert "DeviceNotRegistered" in exc.value.message


def test_notify_swallows_gateway_failure(gateway, caplog):
    gateway["respond"] = lambda: httpx.Response(500, text="down")
    assert not notify(PushSender(url="https://push.test/send"), "ExponentPushToken[x]", "chat_message", "t", "b")
    assert "Push notification failed" in caplog.text


def test_non_json_gateway_reply_is_a_delivery_error(gateway):
    gateway["respond"] = lambda: httpx.Response(200, text="<html>bad gateway</html>")
    with pytest.raises(PushDeliveryError):
        PushSender(url="https://push.test/send").send({"to": "ExponentPushToken[x]"})
    assert not notify(PushSender(url="https://push.test/send"), "ExponentPushToken[x]", "chat_message", "t", "b")


def test_chat_send_survives_non_json_gateway_reply(gateway, store):
    gateway["respond"] = lambda: httpx.Response(200, text="<html>bad gateway</html>")
    message = chat_service.send_message(
        store, PushSender(url="https://push.test/send"), "teacher_1_parent_1", "teacher_1", "hi"
    )
    assert [m.id for m in chat_service.load_messages(store, "teacher_1_parent_1")] == [message.id]


def test_notify_skips_missing_or_malformed_tokens(gateway):
    sender = PushSender(url="https://push.test/send")
    assert not notify(sender, None, "emotion_alert", "t", "b")
    assert not notify(sender, "garbage", "emotion_alert", "t", "b")
    assert gateway["requests"] == []


def test_notify_many_counts_accepted(gateway):
    sender = PushSender(url="https://push.test/send")
    count = notification_service.notify_many(
        sender,
        ["ExponentPushToken[a]", None, "ExponentPushToken[b]"],
        "emotion_alert", "t", "b",
    )
    assert count == 2
