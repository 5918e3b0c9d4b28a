"""
MySQL 비동기 커넥션풀 모듈

asyncmy를 사용하여 비동기 MySQL 커넥션풀을 제공합니다.
빌더가 만든 '?' 플레이스홀더는 실행 직전에 '%s'로 변환됩니다.
"""

import asyncio
import inspect
import logging
import re
from typing import Any

import asyncmy
from asyncmy.cursors import DictCursor

from fluentdb.base import BaseDatabase, ExecResult
from fluentdb.config import DatabaseConfig
from fluentdb.exception import ConnectionPoolExhaustedError

logger = logging.getLogger(__name__)

# 따옴표 리터럴 / 백틱 식별자 / ? / % 토큰
_TOKEN = re.compile(r"""'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.)*"|`[^`]*`|\?|%""")

# 위 토큰 + ::cast / :name (aiosql 쿼리 파일용)
_NAMED_TOKEN = re.compile(
    r"""'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.)*"|`[^`]*`|::|:(?P<name>[A-Za-z_]\w*)|%"""
)


def to_pyformat(sql: str) -> str:
    """'?' → '%s' 변환, 리터럴 '%'는 '%%'로 이스케이프"""
    def _replace(match: re.Match) -> str:
        token = match.group(0)
        if token == '?':
            return '%s'
        return token.replace('%', '%%')
    return _TOKEN.sub(_replace, sql)


def named_to_pyformat(sql: str) -> str:
    """':name' → '%(name)s' 변환, 리터럴 '%'는 '%%'로 이스케이프"""
    def _replace(match: re.Match) -> str:
        if match.group('name'):
            return f"%({match.group('name')})s"
        return match.group(0).replace('%', '%%')
    return _NAMED_TOKEN.sub(_replace, sql)


class MySQLDatabase(BaseDatabase):
    """
    MySQL 데이터베이스 구현

    사용 예시:
        db = await MySQLDatabase.create('mysql_main', config)

        user = await db.table('users').where('id', '=', 1).first()

        async with db.transaction() as trx:
            await trx.table('orders').insert({...})
    """

    aiosql_driver = 'asyncmy'

    def __init__(self, name: str, config: dict[str, Any] | DatabaseConfig):
        if isinstance(config, dict):
            config = DatabaseConfig.from_dict(name, {'type': 'mysql', **config})
        super().__init__(name, debug=config.debug)
        self._config = config
        self._pool: asyncmy.Pool | None = None

    @classmethod
    async def create(cls, name: str, config: dict[str, Any] | DatabaseConfig) -> 'MySQLDatabase':
        """MySQLDatabase 인스턴스 생성 및 초기화"""
        instance = cls(name, config)
        await instance._initialize()
        return instance

    async def _initialize(self) -> None:
        """내부 초기화"""
        pool_config = self._config.pool
        opts = self._config.options

        self._pool = await asyncmy.create_pool(
            host=self._config.host,
            port=self._config.port,
            db=self._config.database,
            user=self._config.user,
            password=self._config.password,
            minsize=int(opts.get('minsize', 1)),
            maxsize=pool_config.pool_size,
            pool_recycle=pool_config.pool_recycle,
            charset=opts.get('charset', 'utf8mb4'),
            autocommit=True,
        )

        logger.info(
            f"MySQLDatabase '{self.name}' initialized "
            f"(pool max: {pool_config.pool_size})"
        )

    @property
    def pool(self) -> asyncmy.Pool:
        """커넥션풀 반환"""
        if self._pool is None:
            raise RuntimeError(f"Database '{self.name}' not initialized")
        return self._pool

    async def acquire(self) -> asyncmy.Connection:
        pool = self.pool
        timeout = self._config.pool.pool_timeout
        # 풀이 가득 차면 pool_timeout 까지 대기, 드라이버 오류는 그대로 전파
        try:
            return await asyncio.wait_for(self._checkout(pool), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionPoolExhaustedError(
                f"Connection pool '{self.name}' exhausted (waited {timeout}s)"
            ) from e

    @staticmethod
    async def _checkout(pool: asyncmy.Pool) -> asyncmy.Connection:
        return await pool.acquire()

    async def release(self, connection: asyncmy.Connection) -> None:
        result = self.pool.release(connection)
        if inspect.isawaitable(result):
            await result

    def raw_connection(self, connection: asyncmy.Connection) -> asyncmy.Connection:
        return connection

    async def begin(self, connection: asyncmy.Connection) -> None:
        await connection.begin()

    async def commit(self, connection: asyncmy.Connection) -> None:
        await connection.commit()

    async def rollback(self, connection: asyncmy.Connection) -> None:
        await connection.rollback()

    async def _run(self, connection: asyncmy.Connection, sql: str, params: list[Any]) -> ExecResult:
        async with connection.cursor(DictCursor) as cursor:
            if params:
                await cursor.execute(to_pyformat(sql), params)
            else:
                await cursor.execute(sql)
            rows = []
            if cursor.description:
                rows = list(await cursor.fetchall())
            return ExecResult(
                rows=rows,
                insert_id=cursor.lastrowid,
                affected_rows=max(cursor.rowcount or 0, 0),
            )

    async def close(self) -> None:
        """데이터베이스 연결 종료"""
        if self._pool:
            self._pool.close()
            await self._pool.wait_closed()
        logger.info(f"MySQLDatabase '{self.name}' closed")
