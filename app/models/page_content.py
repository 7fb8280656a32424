"""
CMS 페이지 콘텐츠 모델 (about, terms, privacy 등)
"""

from sqlalchemy import Column, String, Boolean, DateTime, Text
import uuid

from app.core.database import Base, UUID, JSON, utcnow


class PageContent(Base):
    __tablename__ = "page_contents"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    page_key = Column(String(100), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    page_metadata = Column("metadata", JSON)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
