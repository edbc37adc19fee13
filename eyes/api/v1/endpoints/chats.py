# eyes/api/v1/endpoints/chats.py
# Teacher <-> parent messaging
#
# GET    /chats                                -- chat list + unread badge
# GET    /chats/unread-count                   -- total unread across rooms
# GET    /chats/with/{other_id}                -- open (or address) a thread
# GET    /chats/{chat_id}/messages             -- read thread, marks incoming seen
# POST   /chats/{chat_id}/messages             -- send
# POST   /chats/{chat_id}/seen                 -- mark incoming seen
# POST   /chats/{chat_id}/messages/{id}/react  -- set / toggle a reaction
# DELETE /chats/{chat_id}                      -- delete the whole thread

from fastapi import APIRouter, Depends

from eyes.core.dependencies import CurrentUser, require_member
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.models.chat import Message
from eyes.schemas.chat import (
    ChatListItem,
    ChatListResponse,
    MessageListResponse,
    MessageResponse,
    ReactionRequest,
    ReactionResponse,
    SendMessageRequest,
    UnreadCountResponse,
)
from eyes.services import chat_service
from eyes.services.notification_service import PushSender, get_push_sender

router = APIRouter()


def _to_response(message: Message, user_id: str) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        text=message.text,
        sender_id=message.sender_id,
        timestamp=message.timestamp,
        seen=bool(message.seen),
        reaction=message.reaction,
        is_mine=message.sender_id == user_id,
    )


@router.get("", response_model=ChatListResponse, summary="List my chats")
def list_chats(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    rows = chat_service.list_chats(store, current_user.role, current_user.id)
    return ChatListResponse(
        chats=[ChatListItem(**row) for row in rows],
        total_unread=chat_service.total_unread(store, current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread messages across all chats")
def unread_count(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    return UnreadCountResponse(count=chat_service.total_unread(store, current_user.id))


@router.get("/with/{other_id}", response_model=MessageListResponse, summary="Open the thread with another user")
def open_chat(
    other_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    chat_id = chat_service.chat_id_for(current_user.role, current_user.id, other_id)
    return read_messages(chat_id, current_user, store)


@router.get("/{chat_id}/messages", response_model=MessageListResponse, summary="Read a thread")
def read_messages(
    chat_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    chat_service.ensure_participant(store, chat_id, current_user.id)
    marked = chat_service.mark_seen(store, chat_id, current_user.id)
    messages = chat_service.load_messages(store, chat_id)
    return MessageListResponse(
        chat_id=chat_id,
        messages=[_to_response(m, current_user.id) for m in messages],
        marked_seen=marked,
    )


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=201, summary="Send a message")
def send_message(
    chat_id: str,
    payload: SendMessageRequest,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
    sender: PushSender = Depends(get_push_sender),
):
    message = chat_service.send_message(store, sender, chat_id, current_user.id, payload.text)
    return _to_response(message, current_user.id)


@router.post("/{chat_id}/seen", response_model=UnreadCountResponse, summary="Mark incoming messages seen")
def mark_seen(
    chat_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    chat_service.ensure_participant(store, chat_id, current_user.id)
    return UnreadCountResponse(count=chat_service.mark_seen(store, chat_id, current_user.id))


@router.post("/{chat_id}/messages/{message_id}/react", response_model=ReactionResponse, summary="React to a message")
def react(
    chat_id: str,
    message_id: str,
    payload: ReactionRequest,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    chat_service.ensure_participant(store, chat_id, current_user.id)
    reaction = chat_service.react(store, chat_id, message_id, payload.emoji)
    return ReactionResponse(message_id=message_id, reaction=reaction)


@router.delete("/{chat_id}", status_code=204, summary="Delete a chat")
def delete_chat(
    chat_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    chat_service.ensure_participant(store, chat_id, current_user.id)
    chat_service.delete_chat(store, chat_id)
