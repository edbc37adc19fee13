# eyes/models/chat.py
# Chat messages stored under Chats/{chatId}/{messageId}
# chatId is always "{teacherId}_{parentId}"

from typing import Optional

from pydantic import BaseModel

# Reactions offered by the message long-press picker
REACTIONS = ("❤️", "😂", "👍", "😮", "😢", "🔥")


class Message(BaseModel):
    id: str
    text: str = ""
    sender_id: Optional[str] = None
    timestamp: int = 0  # epoch milliseconds
    seen: Optional[bool] = None
    reaction: Optional[str] = None

    @classmethod
    def from_node(cls, message_id: str, node: dict) -> "Message":
        return cls(
            id=message_id,
            text=node.get("text") or "",
            sender_id=node.get("senderId"),
            timestamp=int(node.get("timestamp") or 0),
            seen=node.get("seen"),
            reaction=node.get("reaction"),
        )

    def to_node(self) -> dict:
        return {
            "text": self.text,
            "senderId": self.sender_id,
            "timestamp": self.timestamp,
            "seen": bool(self.seen),
            "reaction": self.reaction,
        }

    def is_unread_for(self, user_id: str) -> bool:
        """Unread means: from someone else and explicitly not seen yet."""
        return self.sender_id != user_id and self.seen is False
