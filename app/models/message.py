"""
꿈 단위 메시지 모델 (꿈꾼이 ↔ 해몽가)
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, utcnow


MESSAGE_TYPES = ("text", "interpretation", "inquiry", "audio")


class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    dream_id = Column(UUID(), ForeignKey("dreams.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False, default="")
    message_type = Column(String(20), nullable=False, default="text")  # text, interpretation, inquiry, audio
    audio_url = Column(String(500))
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    sender = relationship("Profile")
