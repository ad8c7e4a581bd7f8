from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# 비동기 엔진 생성
# 홈페이지 섹션은 요청당 최대 5개의 조회를 순차 실행하므로 풀은 작게 유지
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

# 비동기 세션 팩토리
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """SQLAlchemy 모델 베이스 클래스"""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """데이터베이스 세션 의존성 (요청 종료 시 커밋, 예외 시 롤백)"""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """데이터베이스 연결 종료"""
    await engine.dispose()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """요청 세션과 수명이 분리된 세션이 필요한 작업용 팩토리 의존성"""
    return async_session_maker
