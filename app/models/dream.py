"""
꿈 모델
"""

from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, JSON, utcnow


DREAM_STATUSES = ("new", "pending_inquiry", "pending_interpretation", "interpreted", "returned")


class Dream(Base):
    """꿈 모델"""
    __tablename__ = "dreams"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    dreamer_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    interpreter_id = Column(UUID(), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(30), nullable=False, default="new")
    interpretation = Column(Text)
    notes = Column(Text)
    dream_date = Column(DateTime)
    mood = Column(String(50))
    audio_url = Column(String(500))
    audio_duration = Column(Integer)  # 초
    # "metadata"는 Declarative 예약어라 속성명을 분리한다
    dream_metadata = Column("metadata", JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    dreamer = relationship("Profile", foreign_keys=[dreamer_id])
    interpreter = relationship("Profile", foreign_keys=[interpreter_id])
