# eyes/services/chat_service.py
# Teacher <-> parent chat threads
#
# A thread lives at Chats/{teacherId}_{parentId}. Either side builds the same
# id from (its own id, the other id, its role), so both screens read and write
# one thread.

import logging
import time
from typing import Dict, Iterable, List, Optional

from eyes.core.errors import Forbidden, NotFound, ValidationFailed
from eyes.db import paths
from eyes.db.store import Store
from eyes.models.chat import REACTIONS, Message
from eyes.models.user import ParentRecord, TeacherRecord
from eyes.services import notification_service
from eyes.services.notification_service import PushSender
from eyes.services.roles import PARENT, TEACHER

logger = logging.getLogger("eyes.chat")


# ── Chat ids ──────────────────────────────────────────────────────────────────

def make_chat_id(teacher_id: str, parent_id: str) -> str:
    return f"{teacher_id}_{parent_id}"


def chat_id_for(role: str, user_id: str, other_id: str) -> str:
    """The thread id seen from either side of the conversation."""
    if role == TEACHER:
        return make_chat_id(user_id, other_id)
    if role == PARENT:
        return make_chat_id(other_id, user_id)
    raise Forbidden("Only teachers and parents can chat.")


def participants(store: Store, chat_id: str) -> Optional[tuple]:
    """
    Split a chat id back into (teacher_id, parent_id).
    Ids may themselves contain underscores, so try every split point and keep
    the one where both halves are registered (a teacher and a parent).
    """
    pieces = chat_id.split("_")
    for i in range(1, len(pieces)):
        teacher_id = "_".join(pieces[:i])
        parent_id = "_".join(pieces[i:])
        if store.exists(paths.teacher_path(teacher_id)) and store.exists(paths.parent_path(parent_id)):
            return teacher_id, parent_id
    return None


def ensure_participant(store: Store, chat_id: str, user_id: str) -> tuple:
    pair = participants(store, chat_id)
    if pair is None:
        raise NotFound("Chat not found.")
    if user_id not in pair:
        raise Forbidden("You are not part of this chat.")
    return pair


# ── Reading ───────────────────────────────────────────────────────────────────

def load_messages(store: Store, chat_id: str) -> List[Message]:
    """Messages oldest first."""
    data = store.get(paths.chat_path(chat_id)) or {}
    if not isinstance(data, dict):
        return []
    messages = [
        Message.from_node(key, node)
        for key, node in data.items()
        if isinstance(node, dict)
    ]
    messages.sort(key=lambda m: (m.timestamp, m.id))
    return messages


def count_unread(messages: Iterable[Message], user_id: str) -> int:
    return sum(1 for m in messages if m.is_unread_for(user_id))


def total_unread(store: Store, user_id: str) -> int:
    """Unread messages across every room the user belongs to -- the chat tab badge."""
    rooms = store.get(paths.CHATS_ROOT) or {}
    total = 0
    for chat_id, room in rooms.items() if isinstance(rooms, dict) else []:
        if not isinstance(room, dict):
            continue
        pair = participants(store, chat_id)
        if pair is None or user_id not in pair:
            continue
        total += count_unread(
            (Message.from_node(k, v) for k, v in room.items() if isinstance(v, dict)),
            user_id,
        )
    return total


def _summary(store: Store, chat_id: str, other_id: str, name: str, user_id: str) -> dict:
    messages = load_messages(store, chat_id)
    last = messages[-1] if messages else None
    return {
        "id": other_id,
        "chat_id": chat_id,
        "name": name,
        "last_message": last.text if last else "",
        "last_timestamp": last.timestamp if last else 0,
        "unread_count": count_unread(messages, user_id),
    }


def list_chats(store: Store, role: str, user_id: str) -> List[dict]:
    """
    Chat list for the caller, newest conversation first.

    Teacher: one row per parent in the class.
    Parent:  one row per assigned teacher, or per registered teacher when
             the parent has not picked any.
    """
    rows: List[dict] = []

    if role == TEACHER:
        parents = store.get(paths.parents_root()) or {}
        for parent_id, node in parents.items():
            record = ParentRecord.from_node(parent_id, node if isinstance(node, dict) else {})
            rows.append(_summary(
                store,
                make_chat_id(user_id, parent_id),
                parent_id,
                record.child_name or "Unnamed",
                user_id,
            ))

    elif role == PARENT:
        teachers: Dict[str, dict] = store.get(paths.teachers_root()) or {}
        parent_node = store.get(paths.parent_path(user_id)) or {}
        assigned = ParentRecord.from_node(user_id, parent_node).assigned_teachers
        teacher_ids = assigned or list(teachers.keys())
        for teacher_id in teacher_ids:
            node = teachers.get(teacher_id)
            if not isinstance(node, dict):
                continue
            record = TeacherRecord.from_node(teacher_id, node)
            rows.append(_summary(
                store,
                make_chat_id(teacher_id, user_id),
                teacher_id,
                record.display_name,
                user_id,
            ))

    else:
        raise Forbidden("Only teachers and parents can chat.")

    rows.sort(key=lambda r: r["last_timestamp"], reverse=True)
    return rows


# ── Writing ───────────────────────────────────────────────────────────────────

def send_message(
    store: Store,
    sender: PushSender,
    chat_id: str,
    user_id: str,
    text: str,
) -> Message:
    """Append a message and nudge the other participant's device."""
    text = (text or "").strip()
    if not text:
        raise ValidationFailed("Message cannot be empty.", title="Empty Message")

    teacher_id, parent_id = ensure_participant(store, chat_id, user_id)

    message = Message(
        id="",
        text=text,
        sender_id=user_id,
        timestamp=int(time.time() * 1000),
        seen=False,
        reaction=None,
    )
    message.id = store.push(paths.chat_path(chat_id), message.to_node())

    recipient_path = (
        paths.parent_path(parent_id) if user_id == teacher_id else paths.teacher_path(teacher_id)
    )
    token = store.get(paths.join(recipient_path, "fcmToken"))
    notification_service.notify(
        sender,
        token,
        notification_type="chat_message",
        title="New Message",
        body=text,
        data={"chatId": chat_id, "messageId": message.id},
    )
    return message


def mark_seen(store: Store, chat_id: str, user_id: str) -> int:
    """Flag every unread message from the other side as seen, in one update."""
    updates = {
        f"{paths.message_path(chat_id, m.id)}/seen": True
        for m in load_messages(store, chat_id)
        if m.is_unread_for(user_id)
    }
    if updates:
        store.update("", updates)
    return len(updates)


def react(store: Store, chat_id: str, message_id: str, emoji: Optional[str]) -> Optional[str]:
    """
    Set a reaction on a message. Picking the reaction already there clears it.
    Returns the reaction now stored.
    """
    if emoji is not None and emoji not in REACTIONS:
        raise ValidationFailed("Unsupported reaction.", title="Invalid Reaction")

    node = store.get(paths.message_path(chat_id, message_id))
    if not isinstance(node, dict):
        raise NotFound("Message not found.")

    current = node.get("reaction")
    new_reaction = None if emoji == current else emoji
    store.update(paths.message_path(chat_id, message_id), {"reaction": new_reaction})
    return new_reaction


def delete_chat(store: Store, chat_id: str) -> None:
    store.remove(paths.chat_path(chat_id))
    logger.info("Deleted chat %s", chat_id)
