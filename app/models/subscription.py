"""
구독 플랜 모델: 플랜 정의 + 사용자 구독(사용량 카운터 포함)
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, JSON, utcnow


PLAN_SCOPES = ("egypt", "international", "custom")


class Plan(Base):
    """구독 플랜. 한도 컬럼이 NULL이면 무제한."""
    __tablename__ = "plans"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    scope = Column(String(20), nullable=False, default="international")  # egypt, international, custom
    country_codes = Column(JSON)
    duration_days = Column(Integer, nullable=False, default=30)
    max_dreams = Column(Integer)
    max_interpretations = Column(Integer)
    letter_quota = Column(Integer)
    audio_minutes_quota = Column(Integer)
    features = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True)
    is_trial = Column(Boolean, nullable=False, default=False)
    trial_duration_days = Column(Integer)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Plan(name={self.name}, active={self.is_active})>"


class UserPlan(Base):
    """사용자 구독. (user, plan) 쌍마다 1행이며 재구독 시 기간/카운터를 초기화한다."""
    __tablename__ = "user_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "plan_id", name="uq_user_plans_user_id_plan_id"),
    )

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(UUID(), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)  # NULL이면 만료 없음
    is_active = Column(Boolean, nullable=False, default=True)
    letters_used = Column(Integer, nullable=False, default=0)
    audio_minutes_used = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    plan = relationship("Plan")
