"""
해몽 요청 모델
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Numeric
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, utcnow


REQUEST_STATUSES = (
    "open", "assigned", "in_progress", "completed", "cancelled",
    "pending", "accepted", "rejected",
)


class InterpretationRequest(Base):
    """꿈에 대한 해몽 요청. 채팅 스레드의 단위이다."""
    __tablename__ = "requests"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    dream_id = Column(UUID(), ForeignKey("dreams.id", ondelete="CASCADE"), nullable=False, index=True)
    dreamer_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    interpreter_id = Column(UUID(), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="open")
    title = Column(String(255), nullable=False)
    description = Column(Text)
    budget = Column(Numeric(10, 2))
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    dream = relationship("Dream")
    dreamer = relationship("Profile", foreign_keys=[dreamer_id])
    interpreter = relationship("Profile", foreign_keys=[interpreter_id])
