"""
SQLite3 비동기 커넥션풀 모듈

aiosqlite를 사용하여 비동기 SQLite3 커넥션풀을 제공합니다.
커넥션은 autocommit 모드(isolation_level=None)로 열리며,
트랜잭션은 BEGIN IMMEDIATE로 명시적으로 시작합니다.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from fluentdb.base import BaseDatabase, ExecResult
from fluentdb.compiler import CompiledStatement
from fluentdb.config import DatabaseConfig, PoolConfig
from fluentdb.exception import ConnectionPoolExhaustedError

logger = logging.getLogger(__name__)


@dataclass
class SqliteOptions:
    """SQLite 연결 옵션"""
    busy_timeout: int = 5000
    journal_mode: str = 'WAL'
    synchronous: str = 'NORMAL'
    cache_size: int = -2000
    foreign_keys: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> 'SqliteOptions':
        data = data or {}
        return cls(
            busy_timeout=int(data.get('busy_timeout', 5000)),
            journal_mode=data.get('journal_mode', 'WAL'),
            synchronous=data.get('synchronous', 'NORMAL'),
            cache_size=int(data.get('cache_size', -2000)),
            foreign_keys=bool(data.get('foreign_keys', True)),
        )


@dataclass
class PooledConnection:
    """풀에서 관리되는 연결"""
    connection: aiosqlite.Connection
    created_at: datetime = field(default_factory=datetime.now)
    last_used_at: datetime = field(default_factory=datetime.now)
    in_use: bool = False


class AsyncConnectionPool:
    """비동기 SQLite 커넥션풀 클래스"""

    def __init__(
        self,
        db_path: str,
        pool_config: PoolConfig | None = None,
        sqlite_options: SqliteOptions | None = None
    ):
        self._db_path = Path(db_path)
        self._pool_config = pool_config or PoolConfig()
        self._sqlite_options = sqlite_options or SqliteOptions()

        self._pool: list[PooledConnection] = []
        self._lock = asyncio.Lock()
        self._semaphore: asyncio.Semaphore | None = None
        self._initialized = False
        self._closed = False

    async def initialize(self) -> None:
        """커넥션풀 초기화"""
        if self._initialized:
            logger.warning("Connection pool already initialized")
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._semaphore = asyncio.Semaphore(self._pool_config.pool_size)

        for _ in range(self._pool_config.pool_size):
            conn = await self._create_connection()
            self._pool.append(PooledConnection(connection=conn))

        self._initialized = True
        logger.info(
            f"Connection pool initialized: {self._db_path} "
            f"(size={self._pool_config.pool_size}, timeout={self._pool_config.pool_timeout}s)"
        )

    async def _create_connection(self) -> aiosqlite.Connection:
        """새로운 SQLite 연결 생성"""
        conn = await aiosqlite.connect(
            self._db_path,
            timeout=self._sqlite_options.busy_timeout / 1000.0,
            isolation_level=None,
        )
        conn.row_factory = aiosqlite.Row

        await conn.execute(f"PRAGMA busy_timeout={self._sqlite_options.busy_timeout}")
        await conn.execute(f"PRAGMA journal_mode={self._sqlite_options.journal_mode}")
        await conn.execute(f"PRAGMA synchronous={self._sqlite_options.synchronous}")
        await conn.execute(f"PRAGMA cache_size={self._sqlite_options.cache_size}")
        await conn.execute(f"PRAGMA foreign_keys={'ON' if self._sqlite_options.foreign_keys else 'OFF'}")

        logger.debug("New connection created with PRAGMA settings applied")
        return conn

    async def acquire(self, timeout: float | None = None) -> PooledConnection:
        """커넥션풀에서 연결 획득 (빈 연결이 생길 때까지 대기)"""
        if not self._initialized:
            raise RuntimeError("Connection pool not initialized. Call initialize() first.")
        if self._closed:
            raise RuntimeError("Connection pool is closed.")

        timeout = timeout or self._pool_config.pool_timeout

        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionPoolExhaustedError(
                f"Connection pool exhausted. Timeout after {timeout}s"
            )

        async with self._lock:
            for pooled_conn in self._pool:
                if not pooled_conn.in_use:
                    pooled_conn.in_use = True
                    pooled_conn.last_used_at = datetime.now()
                    return pooled_conn

        self._semaphore.release()
        raise ConnectionPoolExhaustedError("No available connection in pool")

    async def release(self, pooled_conn: PooledConnection) -> None:
        """연결을 풀에 반환"""
        async with self._lock:
            pooled_conn.in_use = False
            pooled_conn.last_used_at = datetime.now()
        self._semaphore.release()
        logger.debug(f"Connection released. Available: {self.available}/{self.size}")

    async def close(self) -> None:
        """모든 연결을 닫고 풀 종료"""
        self._closed = True
        async with self._lock:
            for pooled_conn in self._pool:
                try:
                    await pooled_conn.connection.close()
                except Exception as e:
                    logger.error(f"Error closing connection: {e}")
            self._pool.clear()
        logger.info("Connection pool closed")

    @property
    def size(self) -> int:
        """현재 풀의 연결 수"""
        return len(self._pool)

    @property
    def available(self) -> int:
        """사용 가능한 연결 수"""
        return sum(1 for pc in self._pool if not pc.in_use)


class SQLiteDatabase(BaseDatabase):
    """
    SQLite 데이터베이스 구현

    사용 예시:
        db = await SQLiteDatabase.create('default', {'path': './data/app.db'})
        await db.table('users').insert({'name': 'kim'})

        async with db.transaction() as trx:
            await trx.table('users').where('id', '=', 1).update({'name': 'lee'})
    """

    aiosql_driver = 'aiosqlite'

    def __init__(self, name: str, config: dict[str, Any] | DatabaseConfig):
        if isinstance(config, dict):
            config = DatabaseConfig.from_dict(name, {'type': 'sqlite', **config})
        super().__init__(name, debug=config.debug)
        self._config = config
        self._pool: AsyncConnectionPool | None = None

    @classmethod
    async def create(cls, name: str, config: dict[str, Any] | DatabaseConfig) -> 'SQLiteDatabase':
        """SQLiteDatabase 인스턴스 생성 및 초기화"""
        instance = cls(name, config)
        await instance._initialize()
        return instance

    async def _initialize(self) -> None:
        """내부 초기화"""
        self._pool = AsyncConnectionPool(
            db_path=self._config.path or f'./data/{self.name}.db',
            pool_config=self._config.pool,
            sqlite_options=SqliteOptions.from_dict(self._config.options),
        )
        await self._pool.initialize()
        logger.info(f"SQLiteDatabase '{self.name}' initialized successfully")

    @property
    def pool(self) -> AsyncConnectionPool:
        """커넥션풀 반환"""
        if self._pool is None:
            raise RuntimeError(f"Database '{self.name}' not initialized")
        return self._pool

    async def acquire(self) -> PooledConnection:
        return await self.pool.acquire()

    async def release(self, connection: PooledConnection) -> None:
        await self.pool.release(connection)

    def raw_connection(self, connection: PooledConnection) -> aiosqlite.Connection:
        return connection.connection

    async def begin(self, connection: PooledConnection) -> None:
        await connection.connection.execute("BEGIN IMMEDIATE")

    async def commit(self, connection: PooledConnection) -> None:
        await connection.connection.execute("COMMIT")

    async def rollback(self, connection: PooledConnection) -> None:
        await connection.connection.execute("ROLLBACK")

    async def _run(self, connection: PooledConnection, sql: str, params: list[Any]) -> ExecResult:
        cursor = await connection.connection.execute(sql, params)
        try:
            rows = []
            if cursor.description:
                rows = [dict(row) for row in await cursor.fetchall()]
            return ExecResult(
                rows=rows,
                insert_id=cursor.lastrowid,
                affected_rows=max(cursor.rowcount, 0),
            )
        finally:
            await cursor.close()

    def truncate_statement(self, table: str) -> CompiledStatement:
        # SQLite에는 TRUNCATE가 없음
        return CompiledStatement(f"DELETE FROM {table}")

    async def close(self) -> None:
        """데이터베이스 연결 종료"""
        if self._pool:
            await self._pool.close()
        logger.info(f"SQLiteDatabase '{self.name}' closed")
