"""Alembic 마이그레이션 시작 훅

앱 기동 시 스키마 버전을 확인하고, 설정에 따라 head까지 올립니다.
업체 디렉터리와 행동 데이터 테이블이 없으면 개인화가 항상 기본 홈페이지로
떨어지므로 개발 환경에서는 자동 적용을 기본값으로 둡니다.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class MigrationStatus:
    """DB 리비전과 스크립트 head 비교 결과"""

    current: Optional[str]
    head: Optional[str]

    @property
    def is_initialized(self) -> bool:
        return self.current is not None

    @property
    def is_up_to_date(self) -> bool:
        return self.current == self.head


def sync_database_url(url: Optional[str] = None) -> str:
    """asyncpg URL을 Alembic용 psycopg2 URL로 변환"""
    return (url or settings.database_url).replace(
        "postgresql+asyncpg", "postgresql+psycopg2"
    )


def get_alembic_config() -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", sync_database_url())
    return config


def get_current_revision() -> Optional[str]:
    """DB에 기록된 리비전 (조회 실패 시 None)"""
    engine = create_engine(sync_database_url())
    try:
        with engine.connect() as conn:
            revision = MigrationContext.configure(conn).get_current_revision()
    except SQLAlchemyError as e:
        logger.warning(f"Failed to read current migration revision: {e}")
        return None
    finally:
        engine.dispose()
    return str(revision) if revision else None


def get_head_revision() -> Optional[str]:
    script = ScriptDirectory.from_config(get_alembic_config())
    head = script.get_current_head()
    return str(head) if head else None


def check_migration_status() -> MigrationStatus:
    return MigrationStatus(
        current=get_current_revision(), head=get_head_revision()
    )


def upgrade_to_head(status: MigrationStatus) -> None:
    """head까지 업그레이드"""
    logger.info(
        f"🔄 Upgrading database schema ({status.current} → {status.head})"
    )
    command.upgrade(get_alembic_config(), "head")
    logger.info(f"✅ Database schema upgraded (revision: {status.head})")


def run_migrations_on_startup(auto_migrate: bool = True) -> None:
    """서버 시작 시 마이그레이션 확인 및 실행

    Args:
        auto_migrate: True면 자동 업그레이드, False면 상태만 로깅

    Raises:
        RuntimeError: 프로덕션 환경에서 확인/업그레이드에 실패한 경우
    """
    try:
        status = check_migration_status()
        if status.is_up_to_date:
            logger.info(f"✅ Database schema is up to date ({status.current})")
            return

        if not status.is_initialized:
            logger.warning("⚠️ No migration history found in database")
        else:
            logger.warning(
                f"⚠️ Database schema is behind "
                f"(current: {status.current}, head: {status.head})"
            )

        if auto_migrate:
            upgrade_to_head(status)
    except Exception as e:
        logger.error(f"❌ Migration check failed: {e}")
        # 개발 환경에서는 DB 없이도 기동 (개인화는 기본 홈페이지로 대체됨)
        if settings.is_production:
            raise RuntimeError("Migration check failed in production") from e
        logger.warning("⚠️ Continuing startup outside production")
