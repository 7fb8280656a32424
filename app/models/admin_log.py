"""
관리자 작업 로그 모델
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
import uuid

from app.core.database import Base, UUID, JSON, utcnow


class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    admin_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(100), nullable=False)
    target_type = Column(String(50), nullable=False)
    target_id = Column(String(100), nullable=False)
    details = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
