"""
요청 단위 채팅 메시지 모델
"""

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, utcnow


CHAT_MESSAGE_TYPES = ("text", "interpretation", "inquiry", "file")


class ChatMessage(Base):
    """채팅 메시지 모델"""
    __tablename__ = "chat_messages"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    request_id = Column(UUID(), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")  # text, interpretation, inquiry, file
    file_url = Column(String(500))
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    sender = relationship("Profile")

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, request_id={self.request_id}, sender_id={self.sender_id})>"
