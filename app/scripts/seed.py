"""
초기 데이터 시드 스크립트

생성 항목 (이미 있으면 건너뜀, 여러 번 실행해도 안전)
- 기본 구독 플랜 4종 + 체험 플랜 1종
- 테스트 계정 (super_admin / admin / interpreter / dreamer)
- 기본 CMS 페이지

사용법
  python -m app.scripts.seed
  python -m app.scripts.seed --no-users     # 계정은 만들지 않음 (운영)
  python -m app.scripts.seed --create-tables

주의
- 테스트 계정 비밀번호는 운영 환경에서 반드시 변경하세요.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, Dict, List

from app.core.database import AsyncSessionLocal, Base, engine, utcnow
from app.core.security import get_password_hash
from app.models import Plan, Profile, User
from app.services import page_service, plan_service, user_service


DEFAULT_PLANS: List[Dict[str, Any]] = [
    {
        "name": "مجاني",
        "description": "خطة مجانية للبدء",
        "price": 0,
        "currency": "EGP",
        "scope": "egypt",
        "duration_days": 30,
        "max_dreams": 3,
        "max_interpretations": 1,
        "letter_quota": 1500,
        "audio_minutes_quota": 0,
        "country_codes": ["EG"],
        "features": ["رؤية واحدة", "تفسير واحد", "دعم البريد الإلكتروني خلال 48 ساعة"],
    },
    {
        "name": "أساسي",
        "description": "خطة أساسية للمستخدمين العاديين",
        "price": 149,
        "currency": "EGP",
        "scope": "egypt",
        "duration_days": 30,
        "max_dreams": 10,
        "max_interpretations": 5,
        "letter_quota": 8000,
        "audio_minutes_quota": 15,
        "country_codes": ["EG"],
        "features": ["حتى 10 رؤى في الشهر", "5 تفسيرات معتمدة", "متابعة عبر البريد خلال 24 ساعة"],
    },
    {
        "name": "احترافي",
        "description": "خطة احترافية للمستخدمين الدوليين",
        "price": 19.99,
        "currency": "USD",
        "scope": "international",
        "duration_days": 30,
        "max_dreams": 30,
        "max_interpretations": 15,
        "letter_quota": 20000,
        "audio_minutes_quota": 45,
        "features": ["30 رؤية شهرية", "15 تفسير معتمد", "قناة دعم مخصصة", "تقارير شهرية مبسطة"],
    },
    {
        "name": "مميز",
        "description": "خطة مميزة مع جميع الميزات للمؤسسات",
        "price": 79.99,
        "currency": "USD",
        "scope": "custom",
        "duration_days": 90,
        "max_dreams": None,
        "max_interpretations": None,
        "letter_quota": None,
        "audio_minutes_quota": 180,
        "features": ["رؤى غير محدودة", "تفسيرات غير محدودة", "دعم 24/7", "تقارير متقدمة وتحليلات"],
    },
    {
        "name": "تجربة مجانية",
        "description": "تجربة مجانية لمدة 7 أيام للمستخدمين الجدد",
        "price": 0,
        "currency": "USD",
        "scope": "international",
        "duration_days": 7,
        "max_dreams": 10,
        "max_interpretations": 3,
        "letter_quota": 5000,
        "audio_minutes_quota": 30,
        "features": ["تجربة لمدة 7 أيام"],
        "is_trial": True,
        "trial_duration_days": 7,
    },
]

# (email, password, full_name, role, bio)
TEST_ACCOUNTS = [
    ("admin@mubasharat.com", "admin123", "مسؤول النظام", "super_admin", None),
    ("regularadmin@mubasharat.com", "admin123", "مدير عادي", "admin", None),
    ("interpreter@mubasharat.com", "interpreter123", "أحمد المفسر", "interpreter", "مفسر أحلام متخصص بخبرة 10 سنوات"),
    ("dreamer@mubasharat.com", "dreamer123", "محمد الرائي", "dreamer", "أبحث عن تفسير رؤيتي"),
]


def _log(msg: str) -> None:
    sys.stdout.write(msg + "\n")
    sys.stdout.flush()


async def seed_plans(db) -> int:
    created = 0
    for plan_data in DEFAULT_PLANS:
        if await plan_service.get_plan_by_name(db, plan_data["name"]):
            _log(f"  - 플랜 존재: {plan_data['name']}")
            continue
        db.add(Plan(**plan_data))
        created += 1
        _log(f"  + 플랜 생성: {plan_data['name']}")
    await db.commit()
    return created


async def seed_accounts(db) -> int:
    """테스트 계정 생성. 관리자 역할은 가입 경로로 만들 수 없으므로 직접 삽입한다."""
    created = 0
    for email, password, full_name, role, bio in TEST_ACCOUNTS:
        if await user_service.get_user_by_email(db, email):
            _log(f"  - 계정 존재: {email}")
            continue
        if role in ("dreamer", "interpreter"):
            _, profile = await user_service.register_user(db, email, password, full_name, role)
            if bio:
                await user_service.update_profile(db, profile.id, bio=bio)
        else:
            now = utcnow()
            user = User(email=email, hashed_password=get_password_hash(password), created_at=now, updated_at=now)
            db.add(user)
            await db.flush()
            db.add(Profile(id=user.id, email=email, full_name=full_name, role=role, bio=bio, created_at=now, updated_at=now))
            await db.commit()
        created += 1
        _log(f"  + 계정 생성: {email} ({role}) / {password}")
    return created


async def main(create_tables: bool, with_users: bool) -> None:
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        _log("테이블 생성 완료")

    async with AsyncSessionLocal() as db:
        _log("🌱 플랜 시드")
        plans = await seed_plans(db)
        accounts = 0
        if with_users:
            _log("👤 테스트 계정 시드")
            accounts = await seed_accounts(db)
        _log("📄 기본 페이지 시드")
        pages = await page_service.seed_default_pages(db)

    await engine.dispose()
    _log(f"✨ 완료: plans={plans} accounts={accounts} pages={len(pages)}")
    if with_users and accounts:
        _log("⚠️  테스트 계정 비밀번호는 운영 환경에서 변경하세요.")


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="기본 플랜/계정/페이지 시드")
    parser.add_argument("--create-tables", action="store_true", help="시드 전에 테이블 생성")
    parser.add_argument("--no-users", action="store_true", help="테스트 계정 생성 생략")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    asyncio.run(main(create_tables=args.create_tables, with_users=not args.no_users))
