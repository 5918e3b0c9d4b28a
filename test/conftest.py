"""
공통 테스트 픽스처

- fake_db: 실제 I/O 없이 실행된 SQL/파라미터와 커넥션 이벤트를 기록하는 데이터베이스
- database: 임시 파일 기반 SQLiteDatabase (users, profiles 테이블 포함)
"""

import logging
import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).parent.parent))

from fluentdb import BaseDatabase, DatabaseRegistry, ExecResult, get_db

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class RecordingDatabase(BaseDatabase):
    """실행 내역을 기록하는 테스트용 데이터베이스"""

    def __init__(self, name: str = 'fake', debug: bool = False):
        super().__init__(name, debug=debug)
        self.statements: list[tuple[Any, str, list[Any]]] = []
        self.events: list[tuple[str, Any]] = []
        self.results: list[ExecResult] = []
        self.error: Exception | None = None
        self.fail_on: dict[str, Exception] = {}
        self._next_id = 0

    def queue(self, *results: ExecResult) -> None:
        self.results.extend(results)

    def _event(self, name: str, connection: Any) -> None:
        self.events.append((name, connection))
        if name in self.fail_on:
            raise self.fail_on[name]

    async def acquire(self) -> int:
        self._next_id += 1
        self._event('acquire', self._next_id)
        return self._next_id

    async def release(self, connection: int) -> None:
        self._event('release', connection)

    async def begin(self, connection: int) -> None:
        self._event('begin', connection)

    async def commit(self, connection: int) -> None:
        self._event('commit', connection)

    async def rollback(self, connection: int) -> None:
        self._event('rollback', connection)

    async def _run(self, connection: int, sql: str, params: list[Any]) -> ExecResult:
        self.statements.append((connection, sql, params))
        if self.error is not None:
            raise self.error
        if self.results:
            return self.results.pop(0)
        return ExecResult()

    def raw_connection(self, connection: int) -> int:
        return connection

    async def close(self) -> None:
        pass

    @property
    def sqls(self) -> list[str]:
        return [sql for _, sql, _ in self.statements]

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def fake_db() -> RecordingDatabase:
    return RecordingDatabase()


@pytest.fixture
def sqlite_config(tmp_path):
    return {
        'databases': {
            'default': {
                'type': 'sqlite',
                'path': str(tmp_path / 'fluentdb_test.db'),
                'debug': True,
                'pool': {
                    'pool_size': 3,
                    'pool_timeout': 2.0,
                },
            }
        }
    }


@pytest_asyncio.fixture
async def database(sqlite_config):
    """테스트용 SQLiteDatabase (DatabaseRegistry 사용)"""
    DatabaseRegistry.clear()
    await DatabaseRegistry.init_from_config(sqlite_config)
    db = get_db('default')

    await db.sql(
        "CREATE TABLE users ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " name TEXT NOT NULL,"
        " email TEXT,"
        " status TEXT,"
        " age INTEGER)"
    )
    await db.sql(
        "CREATE TABLE profiles ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " user_id INTEGER NOT NULL,"
        " bio TEXT)"
    )

    yield db
    await DatabaseRegistry.close_all()
