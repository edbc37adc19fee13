import pytest

from eyes.core.errors import Forbidden, NotFound, ValidationFailed
from eyes.db import paths
from eyes.services import chat_service
from eyes.services.roles import PARENT, TEACHER

CHAT_ID = "teacher_1_parent_1"


def test_both_sides_build_the_same_chat_id():
    assert chat_service.chat_id_for(TEACHER, "teacher_1", "parent_1") == CHAT_ID
    assert chat_service.chat_id_for(PARENT, "parent_1", "teacher_1") == CHAT_ID


def test_participants_handle_underscores_in_ids(store):
    assert chat_service.participants(store, CHAT_ID) == ("teacher_1", "parent_1")
    assert chat_service.participants(store, "nobody_parent_1") is None


def test_non_participant_is_forbidden(store):
    with pytest.raises(Forbidden):
        chat_service.ensure_participant(store, CHAT_ID, "parent_2")
    with pytest.raises(NotFound):
        chat_service.ensure_participant(store, "ghost_parent_1", "parent_1")


def test_chat_with_unregistered_parent_is_not_found(store):
    assert chat_service.participants(store, "teacher_1_ghost") is None
    with pytest.raises(NotFound):
        chat_service.ensure_participant(store, "teacher_1_ghost", "teacher_1")


def test_send_message_stores_and_notifies_recipient(store, sender):
    message = chat_service.send_message(store, sender, CHAT_ID, "teacher_1", "  Hello Sam's family  ")

    node = store.get(paths.message_path(CHAT_ID, message.id))
    assert node["text"] == "Hello Sam's family"
    assert node["senderId"] == "teacher_1"
    assert node["seen"] is False

    assert len(sender.sent) == 1
    assert sender.sent[0]["to"] == "ExponentPushToken[parent]"
    assert sender.sent[0]["title"] == "New Message"
    assert sender.sent[0]["data"]["chatId"] == CHAT_ID


def test_send_without_recipient_token_still_stores(store, sender):
    chat_id = "teacher_1_parent_2"
    chat_service.send_message(store, sender, chat_id, "teacher_1", "hi")
    assert sender.sent == []
    assert len(chat_service.load_messages(store, chat_id)) == 1


def test_empty_message_is_rejected(store, sender):
    with pytest.raises(ValidationFailed) as exc:
        chat_service.send_message(store, sender, CHAT_ID, "teacher_1", "   ")
    assert exc.value.title == "Empty Message"


def test_unread_counts_only_the_other_sides_unseen_messages(store, sender):
    for text in ("one", "two", "three"):
        chat_service.send_message(store, sender, CHAT_ID, "teacher_1", text)
    chat_service.send_message(store, sender, CHAT_ID, "parent_1", "reply")

    messages = chat_service.load_messages(store, CHAT_ID)
    assert [m.text for m in messages] == ["one", "two", "three", "reply"]
    assert chat_service.count_unread(messages, "parent_1") == 3
    assert chat_service.count_unread(messages, "teacher_1") == 1
    assert chat_service.total_unread(store, "parent_1") == 3


def test_unread_badge_ignores_other_teachers_rooms(store, sender):
    chat_service.send_message(store, sender, CHAT_ID, "teacher_1", "hello")
    assert chat_service.total_unread(store, "parent_1") == 1
    assert chat_service.total_unread(store, "teacher_2") == 0
    assert chat_service.total_unread(store, "parent_2") == 0


def test_message_without_seen_flag_is_not_unread(store):
    store.set(paths.message_path(CHAT_ID, "legacy"), {"text": "old", "senderId": "teacher_1", "timestamp": 1})
    messages = chat_service.load_messages(store, CHAT_ID)
    assert chat_service.count_unread(messages, "parent_1") == 0


def test_mark_seen(store, sender):
    for text in ("one", "two"):
        chat_service.send_message(store, sender, CHAT_ID, "teacher_1", text)

    assert chat_service.mark_seen(store, CHAT_ID, "parent_1") == 2
    assert chat_service.mark_seen(store, CHAT_ID, "parent_1") == 0
    assert chat_service.total_unread(store, "parent_1") == 0


def test_reaction_toggles(store, sender):
    message = chat_service.send_message(store, sender, CHAT_ID, "parent_1", "thanks")

    assert chat_service.react(store, CHAT_ID, message.id, "👍") == "👍"
    assert chat_service.react(store, CHAT_ID, message.id, "❤️") == "❤️"
    assert chat_service.react(store, CHAT_ID, message.id, "❤️") is None
    assert "reaction" not in store.get(paths.message_path(CHAT_ID, message.id))


def test_reaction_validation(store, sender):
    message = chat_service.send_message(store, sender, CHAT_ID, "parent_1", "thanks")
    with pytest.raises(ValidationFailed):
        chat_service.react(store, CHAT_ID, message.id, "🍕")
    with pytest.raises(NotFound):
        chat_service.react(store, CHAT_ID, "missing", "👍")


def test_teacher_chat_list_covers_every_parent(store, sender):
    store.set(paths.join(paths.parent_path("parent_3"), "email"), "x@familymail.org")
    chat_service.send_message(store, sender, CHAT_ID, "parent_1", "hello")

    rows = chat_service.list_chats(store, TEACHER, "teacher_1")
    assert [r["id"] for r in rows][0] == "parent_1"
    assert {r["name"] for r in rows} == {"Sam", "Alex", "Unnamed"}
    assert rows[0]["last_message"] == "hello"
    assert rows[0]["unread_count"] == 1


def test_parent_chat_list_falls_back_to_all_teachers(store):
    rows = chat_service.list_chats(store, PARENT, "parent_1")
    assert {r["name"] for r in rows} == {"Ada Lovelace", "Teacher"}


def test_parent_chat_list_uses_assigned_teachers(store):
    store.set(paths.join(paths.parent_path("parent_1"), "assignedTeachers"), ["teacher_2"])
    rows = chat_service.list_chats(store, PARENT, "parent_1")
    assert [r["chat_id"] for r in rows] == ["teacher_2_parent_1"]


def test_delete_chat(store, sender):
    chat_service.send_message(store, sender, CHAT_ID, "parent_1", "bye")
    chat_service.delete_chat(store, CHAT_ID)
    assert store.get(paths.chat_path(CHAT_ID)) is None


# ── Endpoints ─────────────────────────────────────────────────────────────────

def test_chat_flow_over_http(client, auth):
    sent = client.post(f"/api/v1/chats/{CHAT_ID}/messages", json={"text": "Hi"}, headers=auth("teacher_1"))
    assert sent.status_code == 201
    assert sent.json()["is_mine"] is True

    listing = client.get("/api/v1/chats", headers=auth("parent_1"))
    assert listing.status_code == 200
    assert listing.json()["total_unread"] == 1

    thread = client.get(f"/api/v1/chats/{CHAT_ID}/messages", headers=auth("parent_1"))
    assert thread.json()["marked_seen"] == 1
    assert thread.json()["messages"][0]["is_mine"] is False

    count = client.get("/api/v1/chats/unread-count", headers=auth("parent_1"))
    assert count.json() == {"count": 0}


def test_badge_and_chat_list_agree_for_an_outsider(client, auth):
    client.post(f"/api/v1/chats/{CHAT_ID}/messages", json={"text": "Hi"}, headers=auth("teacher_1"))

    badge = client.get("/api/v1/chats/unread-count", headers=auth("teacher_2")).json()
    listing = client.get("/api/v1/chats", headers=auth("teacher_2")).json()
    assert badge == {"count": 0}
    assert listing["total_unread"] == 0


def test_sending_to_unregistered_parent_is_rejected(client, auth, store):
    resp = client.post("/api/v1/chats/teacher_1_ghost/messages", json={"text": "Hi"}, headers=auth("teacher_1"))
    assert resp.status_code == 404
    assert store.get(paths.chat_path("teacher_1_ghost")) is None


def test_open_chat_by_other_user(client, auth):
    resp = client.get("/api/v1/chats/with/teacher_1", headers=auth("parent_1"))
    assert resp.status_code == 200
    assert resp.json()["chat_id"] == CHAT_ID


def test_react_and_delete_over_http(client, auth):
    sent = client.post(f"/api/v1/chats/{CHAT_ID}/messages", json={"text": "Hi"}, headers=auth("parent_1"))
    message_id = sent.json()["id"]

    reacted = client.post(
        f"/api/v1/chats/{CHAT_ID}/messages/{message_id}/react",
        json={"emoji": "😂"},
        headers=auth("teacher_1"),
    )
    assert reacted.json() == {"message_id": message_id, "reaction": "😂"}

    assert client.delete(f"/api/v1/chats/{CHAT_ID}", headers=auth("teacher_1")).status_code == 204


def test_outsider_cannot_read_chat(client, auth):
    resp = client.get(f"/api/v1/chats/{CHAT_ID}/messages", headers=auth("parent_2"))
    assert resp.status_code == 403
    assert resp.json()["detail"]["title"] == "Not Allowed"


def test_chats_need_a_profile(client, auth):
    assert client.get("/api/v1/chats").status_code == 401
    assert client.get("/api/v1/chats", headers=auth("stranger")).status_code == 403
