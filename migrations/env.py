"""Alembic 환경 설정"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from app.core.database import Base
from app.core.migration import sync_database_url

# 모든 모델 임포트 (autogenerate 감지를 위해)
from app.domains.behavior.models import (  # noqa: F401
    UserBehaviorPattern,
    UserInteraction,
    UserPreference,
)
from app.domains.personalization.models import (  # noqa: F401
    Business,
    BusinessCategory,
    Category,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

# 앱 시작 훅에서 이미 URL을 넣어준 경우 그대로 사용
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", sync_database_url())


def run_migrations_offline() -> None:
    """DB 연결 없이 SQL 스크립트 출력"""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """DB에 연결하여 마이그레이션 실행"""
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
