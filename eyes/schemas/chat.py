# eyes/schemas/chat.py

from typing import List, Optional

from pydantic import BaseModel


class ChatListItem(BaseModel):
    id: str              # the other participant
    chat_id: str
    name: str
    last_message: str
    last_timestamp: int
    unread_count: int


class ChatListResponse(BaseModel):
    chats: List[ChatListItem]
    total_unread: int


class MessageResponse(BaseModel):
    id: str
    text: str
    sender_id: Optional[str] = None
    timestamp: int
    seen: bool
    reaction: Optional[str] = None
    is_mine: bool


class MessageListResponse(BaseModel):
    chat_id: str
    messages: List[MessageResponse]
    marked_seen: int


class SendMessageRequest(BaseModel):
    text: str


class ReactionRequest(BaseModel):
    emoji: Optional[str] = None


class ReactionResponse(BaseModel):
    message_id: str
    reaction: Optional[str] = None


class UnreadCountResponse(BaseModel):
    count: int
