"""
결제 관련 모델
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, JSON, utcnow


PAYMENT_STATUSES = ("pending", "succeeded", "failed", "refunded", "cancelled")


class Payment(Base):
    """결제 내역 모델. reference(외부 결제 참조)는 중복 처리를 막기 위해 UNIQUE."""
    __tablename__ = "payments"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(UUID(), ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, succeeded, failed, refunded, cancelled
    provider = Column(String(50), nullable=False)  # stripe, manual
    reference = Column(String(255), unique=True, nullable=False)
    payment_metadata = Column("metadata", JSON)
    paid_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    plan = relationship("Plan")
