"""
공통 테스트 픽스처

- 테스트마다 새 SQLite 파일 DB (외래키 강제 포함)
- httpx AsyncClient + ASGITransport 로 앱 직접 호출
- 가입/로그인/역할 변경 헬퍼
"""

import os
import tempfile

# 앱 설정은 import 시점에 읽히므로 먼저 환경변수를 고정한다
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["UPLOAD_DIRECTORY"] = tempfile.mkdtemp(prefix="dream-uploads-")

from typing import Optional
import uuid

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import Base, create_engine_for_url, get_db
from app.core.security import create_access_token
from app.main import app
from app.models import Plan, Profile


@pytest.fixture
async def engine(tmp_path):
    db_engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Account:
    """가입된 테스트 계정 (id, 역할, 토큰)"""

    def __init__(self, user_id: str, email: str, role: str, token: str):
        self.id = user_id
        self.email = email
        self.role = role
        self.token = token

    @property
    def headers(self) -> dict:
        return auth_headers(self.token)


@pytest.fixture
def register(client):
    """가입 헬퍼. 세션 쿠키는 비워서 계정 간 섞이지 않게 한다."""

    async def _register(role: str = "dreamer", email: Optional[str] = None, password: str = "secret123") -> Account:
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        resp = await client.post(
            "/auth/register",
            json={"email": email, "password": password, "fullName": f"{role} user", "role": role},
        )
        assert resp.status_code == 201, resp.text
        client.cookies.clear()
        data = resp.json()
        return Account(data["user"]["id"], email, data["profile"]["role"], data["access_token"])

    return _register


@pytest.fixture
def make_account(register, session_factory):
    """임의 역할 계정 생성. 관리자 역할은 가입 후 DB에서 직접 승격한다."""

    async def _make(role: str = "dreamer") -> Account:
        if role in ("dreamer", "interpreter"):
            return await register(role)
        account = await register("interpreter")
        async with session_factory() as session:
            profile = await session.get(Profile, uuid.UUID(account.id))
            profile.role = role
            await session.commit()
        token = create_access_token(account.id, account.email, role)
        return Account(account.id, account.email, role, token)

    return _make


@pytest.fixture
def create_plan(session_factory):
    """DB에 직접 플랜 생성"""

    async def _create(**overrides) -> Plan:
        values = {
            "name": f"plan-{uuid.uuid4().hex[:8]}",
            "price": 10,
            "currency": "USD",
            "scope": "international",
            "duration_days": 30,
            "is_active": True,
        }
        values.update(overrides)
        async with session_factory() as session:
            plan = Plan(**values)
            session.add(plan)
            await session.commit()
            await session.refresh(plan)
            return plan

    return _create


@pytest.fixture
def trial_plan(create_plan):
    async def _trial(**overrides):
        values = {
            "name": "trial",
            "price": 0,
            "duration_days": 7,
            "is_trial": True,
            "trial_duration_days": 7,
            "letter_quota": 5000,
            "audio_minutes_quota": 30,
            "max_dreams": 10,
        }
        values.update(overrides)
        return await create_plan(**values)

    return _trial


@pytest.fixture
def subscribe(client):
    """수동 구독 헬퍼"""

    async def _subscribe(account: Account, plan_id) -> dict:
        resp = await client.post("/plans/subscribe", json={"planId": str(plan_id)}, headers=account.headers)
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _subscribe


@pytest.fixture
def create_dream(client):
    async def _create(account: Account, description: str = "꿈 내용", **extra) -> httpx.Response:
        payload = {"title": "꿈", "description": description}
        payload.update(extra)
        return await client.post("/dreams", json=payload, headers=account.headers)

    return _create
