"""
데이터베이스 기본 인터페이스

커넥션풀/드라이버 구현체(SQLite, MySQL)가 따라야 할 계약과
공통 실행 경로(공유 풀 실행, 디버그 로깅, 빌더/트랜잭션 진입점)를 정의합니다.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence, TypeVar

import aiosql
from aiosql.queries import Queries

from fluentdb.compiler import CompiledStatement, compile_truncate

if TYPE_CHECKING:
    from fluentdb.builder import QueryBuilder
    from fluentdb.transaction import ManagedTransaction, TransactionScope

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ExecResult:
    """드라이버 실행 결과 정규화"""
    rows: list[dict[str, Any]] = field(default_factory=list)
    insert_id: int | None = None
    affected_rows: int = 0


class BaseDatabase(ABC):
    """
    데이터베이스 기본 클래스

    사용 예시:
        users = await db.table('users').where('age', '>', 20).get()

        async with db.transaction() as trx:
            user_id = await trx.table('users').insert({'name': 'kim'})
            await trx.table('profiles').insert({'user_id': user_id})
    """

    # aiosql 드라이버 이름 (load_queries에서 사용)
    aiosql_driver: str = ''

    def __init__(self, name: str, debug: bool = False):
        self.name = name
        self.debug = debug
        self._queries: dict[str, Queries] = {}

    # ---- 드라이버 계약 ----

    @abstractmethod
    async def acquire(self) -> Any:
        """풀에서 전용 커넥션 획득 (풀 포화 시 대기)"""
        ...

    @abstractmethod
    async def release(self, connection: Any) -> None:
        """커넥션을 풀에 반환"""
        ...

    @abstractmethod
    async def begin(self, connection: Any) -> None:
        ...

    @abstractmethod
    async def commit(self, connection: Any) -> None:
        ...

    @abstractmethod
    async def rollback(self, connection: Any) -> None:
        ...

    @abstractmethod
    async def _run(self, connection: Any, sql: str, params: list[Any]) -> ExecResult:
        """커넥션 위에서 문장 하나 실행"""
        ...

    @abstractmethod
    def raw_connection(self, connection: Any) -> Any:
        """acquire()가 돌려준 핸들에서 드라이버 커넥션 추출"""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    # ---- 실행 ----

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> ExecResult:
        """공유 풀에서 실행 (커넥션 획득 → 실행 → 반환)"""
        params = list(params or [])
        self._log_query(sql, params)
        connection = await self.acquire()
        try:
            result = await self._run(connection, sql, params)
        finally:
            await self.release(connection)
        self._log_result(result)
        return result

    async def execute_on(self, connection: Any, sql: str, params: Sequence[Any] | None = None) -> ExecResult:
        """지정한 (트랜잭션) 커넥션에서 실행"""
        params = list(params or [])
        self._log_query(sql, params)
        result = await self._run(connection, sql, params)
        self._log_result(result)
        return result

    async def sql(self, query: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Raw SQL 실행 - 빌더를 거치지 않고 행 목록을 그대로 반환"""
        result = await self.execute(query, params)
        return result.rows

    def truncate_statement(self, table: str) -> CompiledStatement:
        return compile_truncate(table)

    def _log_query(self, sql: str, params: list[Any]) -> None:
        if not self.debug:
            return
        sql_oneline = ' '.join(sql.split())
        extra = {'database': self.name, 'sql': sql_oneline, 'params': params}
        if params:
            logger.info(f"[SQL] {sql_oneline} | params: {params}", extra=extra)
        else:
            logger.info(f"[SQL] {sql_oneline}", extra=extra)

    def _log_result(self, result: ExecResult) -> None:
        if not self.debug:
            return
        if result.rows:
            logger.info(f"[SQL Result] {len(result.rows)} row(s)")
        else:
            logger.info(f"[SQL Result] affected={result.affected_rows} insert_id={result.insert_id}")

    # ---- 진입점 ----

    def table(self, name: str) -> 'QueryBuilder':
        """테이블 대상 쿼리 빌더 생성"""
        from fluentdb.builder import QueryBuilder
        return QueryBuilder(self, name)

    def transaction(self) -> 'ManagedTransaction':
        """트랜잭션 컨텍스트 매니저 반환"""
        from fluentdb.transaction import ManagedTransaction
        return ManagedTransaction(self)

    async def run_in_transaction(self, work: Callable[['TransactionScope'], Awaitable[T]]) -> T:
        """
        작업 단위를 트랜잭션 안에서 실행

        Args:
            work: TransactionScope를 받는 async 함수

        Returns:
            work의 반환값 (정상 종료 시 커밋 후 반환)

        Raises:
            work가 던진 예외를 롤백 후 그대로 다시 던짐
        """
        async with self.transaction() as scope:
            return await work(scope)

    # ---- aiosql ----

    def load_queries(self, name: str, sql_path: str) -> Queries:
        """aiosql로 SQL 파일 로드"""
        queries = aiosql.from_path(sql_path, self.aiosql_driver)
        self._queries[name] = queries
        return queries

    def get_queries(self, name: str) -> Queries | None:
        """로드된 쿼리 세트 반환"""
        return self._queries.get(name)
