"""
댓글 모델
"""

from sqlalchemy import Column, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, utcnow


class Comment(Base):
    """꿈 댓글 모델"""
    __tablename__ = "comments"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    dream_id = Column(UUID(), ForeignKey("dreams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # 관계 설정
    user = relationship("Profile")

    def __repr__(self):
        return f"<Comment(id={self.id}, dream_id={self.dream_id}, user_id={self.user_id})>"
