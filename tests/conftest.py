"""테스트 설정"""

import os
from contextlib import asynccontextmanager
from typing import Generator

import pytest
import pytest_asyncio
from docker import from_env
from docker.errors import DockerException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from app.core.config import settings
from app.core.database import Base, get_db, get_session_factory
from app.domains.personalization.service import (
    get_homepage_cache,
    get_homepage_flight,
)
from app.main import app


def _is_docker_available() -> bool:
    """로컬 환경에서 Docker 접근 가능 여부 확인"""
    if os.getenv("FORCE_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return True
    if os.getenv("SKIP_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return False

    try:
        client = from_env()
        client.ping()
        return True
    except DockerException:
        return False


DOCKER_AVAILABLE = _is_docker_available()


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """PostgreSQL 테스트 컨테이너"""
    if not DOCKER_AVAILABLE:
        pytest.skip("Docker is not available; skipping container-based tests.")

    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def test_database_url(postgres_container: PostgresContainer) -> str:
    """테스트 데이터베이스 URL (asyncpg)"""
    return str(
        postgres_container.get_connection_url().replace(
            "postgresql+psycopg2://", "postgresql+asyncpg://"
        )
    )


# NOTE:
# pytest-asyncio는 테스트마다 독립적인 event loop를 생성하므로
# async fixture는 모두 function 스코프로 유지
@pytest_asyncio.fixture
async def db_session(test_database_url: str):
    """테스트 데이터베이스 세션 (테스트마다 스키마 재생성)"""
    engine = create_async_engine(test_database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture(autouse=True)
def reset_homepage_cache():
    """프로세스 공용 홈페이지 캐시를 테스트마다 비움"""
    get_homepage_cache().clear()
    yield
    get_homepage_cache().clear()
    get_homepage_flight.cache_clear()


@pytest_asyncio.fixture
async def api_client():
    """비동기 테스트 클라이언트 (DB 없이, 의존성은 테스트에서 오버라이드)"""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(db_session):
    """비동기 테스트 클라이언트 (테스트 DB 사용)"""

    async def override_get_db():
        yield db_session

    @asynccontextmanager
    async def shared_session():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    # 홈페이지 생성 전용 세션도 테스트 세션을 사용 (롤백 전 데이터 조회)
    app.dependency_overrides[get_session_factory] = lambda: shared_session

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend():
    """anyio 백엔드 설정"""
    return "asyncio"


@pytest.fixture
def api_key_header():
    """Internal API Key 헤더"""
    return {"X-Internal-Api-Key": settings.internal_api_key}
