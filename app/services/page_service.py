"""
CMS 페이지 서비스
"""

from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationAppError
from app.models.page_content import PageContent
from app.schemas.page import PageUpdate

logger = logging.getLogger(__name__)


DEFAULT_PAGES = [
    {
        "page_key": "about",
        "title": "عن مبشرات",
        "content": "<h1>عن مبشرات</h1><p>منصة متخصصة في تفسير الرؤى والأحلام وفق المنهج الإسلامي الصحيح.</p>",
        "page_metadata": {"seoDescription": "تعرف على منصة مبشرات لتفسير الرؤى"},
    },
    {
        "page_key": "terms",
        "title": "الشروط والأحكام",
        "content": "<h1>الشروط والأحكام</h1><p>يرجى قراءة هذه الشروط بعناية قبل استخدام المنصة.</p>",
        "page_metadata": {"seoDescription": "شروط وأحكام استخدام منصة مبشرات"},
    },
    {
        "page_key": "guide",
        "title": "دليل الاستخدام",
        "content": "<h1>دليل الاستخدام</h1><p>كيفية استخدام منصة مبشرات خطوة بخطوة.</p>",
        "page_metadata": {"seoDescription": "دليل استخدام منصة مبشرات"},
    },
    {
        "page_key": "support",
        "title": "الدعم والمساعدة",
        "content": "<h1>الدعم والمساعدة</h1><p>للتواصل معنا وطلب المساعدة.</p>",
        "page_metadata": {"seoDescription": "دعم ومساعدة منصة مبشرات"},
    },
    {
        "page_key": "good-news",
        "title": "البشارات",
        "content": "<h1>البشارات</h1><p>قال رسول الله صلى الله عليه وسلم: \"لم يبق من النبوة إلا المبشرات\"</p>",
        "page_metadata": {"seoDescription": "البشارات في الإسلام"},
    },
]


async def get_page(db: AsyncSession, page_key: str, published_only: bool = False) -> PageContent:
    query = select(PageContent).where(PageContent.page_key == page_key)
    if published_only:
        query = query.where(PageContent.is_published == True)
    page = (await db.execute(query)).scalar_one_or_none()
    if page is None:
        raise NotFoundError("페이지를 찾을 수 없습니다.")
    return page


async def list_pages(db: AsyncSession) -> List[PageContent]:
    result = await db.execute(select(PageContent).order_by(PageContent.page_key))
    return list(result.scalars().all())


async def update_page(db: AsyncSession, page_key: str, data: PageUpdate) -> PageContent:
    page = await get_page(db, page_key)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationAppError("변경할 항목이 없습니다.")
    if "metadata" in changes:
        page.page_metadata = changes.pop("metadata")
    for field, value in changes.items():
        setattr(page, field, value)
    await db.commit()
    await db.refresh(page)
    logger.info(f"페이지 수정: {page_key}")
    return page


async def seed_default_pages(db: AsyncSession) -> List[str]:
    """없는 기본 페이지만 생성. 생성된 page_key 목록 반환."""
    created = []
    for page_data in DEFAULT_PAGES:
        existing = (await db.execute(
            select(PageContent.id).where(PageContent.page_key == page_data["page_key"])
        )).scalar_one_or_none()
        if existing is None:
            db.add(PageContent(**page_data))
            created.append(page_data["page_key"])
    await db.commit()
    return created
