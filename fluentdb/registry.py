"""
데이터베이스 레지스트리

설정 dict의 databases 섹션으로부터 이름별 데이터베이스 인스턴스를 생성/보관합니다.

사용 예시:
    await DatabaseRegistry.init_from_config(load_config('config/database.yaml'))
    db = get_db('default')
    ...
    await DatabaseRegistry.close_all()
"""

import logging
from typing import Any

from fluentdb.base import BaseDatabase
from fluentdb.config import DatabaseConfig
from fluentdb.exception import DatabaseError, DatabaseNotFoundError

logger = logging.getLogger(__name__)


class DatabaseRegistry:
    """이름 → 데이터베이스 인스턴스 레지스트리"""

    _databases: dict[str, BaseDatabase] = {}

    @classmethod
    async def init_from_config(cls, config: dict[str, Any]) -> None:
        """설정의 모든 데이터베이스 초기화"""
        for name, db_config in (config.get('databases') or {}).items():
            cls.register(await cls._create(DatabaseConfig.from_dict(name, db_config)))

    @classmethod
    async def _create(cls, config: DatabaseConfig) -> BaseDatabase:
        if config.type == 'sqlite':
            from fluentdb.sqlite3 import SQLiteDatabase
            return await SQLiteDatabase.create(config.name, config)
        if config.type == 'mysql':
            from fluentdb.mysql import MySQLDatabase
            return await MySQLDatabase.create(config.name, config)
        raise DatabaseError(f"Unsupported database type: {config.type}")

    @classmethod
    def register(cls, db: BaseDatabase) -> None:
        if db.name in cls._databases:
            logger.warning(f"Database '{db.name}' already registered, replacing")
        cls._databases[db.name] = db
        logger.info(f"Database '{db.name}' registered")

    @classmethod
    def get(cls, name: str) -> BaseDatabase:
        if name not in cls._databases:
            raise DatabaseNotFoundError(name)
        return cls._databases[name]

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._databases)

    @classmethod
    async def close_all(cls) -> None:
        """모든 데이터베이스 종료 및 레지스트리 비우기"""
        for name, db in list(cls._databases.items()):
            try:
                await db.close()
            except Exception as e:
                logger.error(f"Error closing database '{name}': {e}")
        cls._databases.clear()

    @classmethod
    def clear(cls) -> None:
        """레지스트리 비우기 (종료하지 않음, 테스트용)"""
        cls._databases.clear()


def get_db(name: str = 'default') -> BaseDatabase:
    """등록된 데이터베이스 반환"""
    return DatabaseRegistry.get(name)
