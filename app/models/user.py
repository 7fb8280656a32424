"""
사용자/프로필 모델
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, UUID, utcnow


USER_ROLES = ("dreamer", "interpreter", "admin", "super_admin")
SELF_SERVICE_ROLES = ("dreamer", "interpreter")


class User(Base):
    """인증 계정 (이메일/비밀번호)"""
    __tablename__ = "users"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # 관계 설정 (계정 삭제 시 DB 외래키 CASCADE로 정리)
    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class Profile(Base):
    """사용자 프로필. id는 users.id와 동일하다."""
    __tablename__ = "profiles"

    id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255))
    role = Column(String(20), nullable=False, default="dreamer")  # dreamer, interpreter, admin, super_admin
    avatar_url = Column(String(500))
    bio = Column(Text)
    is_available = Column(Boolean, nullable=False, default=True)
    total_interpretations = Column(Integer, nullable=False, default=0)
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    current_plan_id = Column(UUID(), ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="profile")
    current_plan = relationship("Plan", foreign_keys=[current_plan_id])

    def __repr__(self):
        return f"<Profile(id={self.id}, role={self.role})>"
