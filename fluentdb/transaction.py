"""
트랜잭션 코디네이터

전용 커넥션 하나를 풀에서 꺼내 BEGIN 하고, 그 커넥션에 묶인 빌더 팩토리
(TransactionScope)를 작업 단위에 넘깁니다. 작업이 정상 종료하면 COMMIT,
예외가 나면 ROLLBACK 후 원래 예외를 다시 던지며, 커넥션은 어떤 경로로
끝나든 정확히 한 번 반환됩니다.

상태: IDLE → ACTIVE → (COMMITTED | ROLLED_BACK)
"""

import logging
from contextvars import Token
from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

from fluentdb.context import clear_transaction, set_transaction
from fluentdb.exception import TransactionStateError

if TYPE_CHECKING:
    from fluentdb.base import BaseDatabase, ExecResult
    from fluentdb.builder import QueryBuilder

logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    """트랜잭션 상태"""
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionScope:
    """트랜잭션 커넥션에 묶인 빌더 팩토리 + Raw SQL 통로"""

    def __init__(self, db: 'BaseDatabase', connection: Any):
        self._db = db
        self._connection = connection
        self._state = TransactionState.IDLE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def database(self) -> 'BaseDatabase':
        return self._db

    @property
    def connection(self) -> Any:
        """드라이버 커넥션 (aiosql 쿼리 호출용)"""
        self._ensure_active()
        return self._db.raw_connection(self._connection)

    def table(self, name: str) -> 'QueryBuilder':
        """이 트랜잭션에서 실행되는 빌더 생성"""
        from fluentdb.builder import QueryBuilder

        self._ensure_active()
        return QueryBuilder(self._db, name, transaction=self)

    async def sql(self, query: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """트랜잭션 커넥션에서 Raw SQL 실행"""
        result = await self.execute(query, params)
        return result.rows

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> 'ExecResult':
        self._ensure_active()
        return await self._db.execute_on(self._connection, sql, params)

    async def begin(self) -> None:
        if self._state is not TransactionState.IDLE:
            raise TransactionStateError(self._state.value)
        await self._db.begin(self._connection)
        self._state = TransactionState.ACTIVE
        logger.debug(f"Transaction started on '{self._db.name}'")

    async def commit(self) -> None:
        self._ensure_active()
        await self._db.commit(self._connection)
        self._state = TransactionState.COMMITTED
        logger.debug(f"Transaction committed on '{self._db.name}'")

    async def rollback(self) -> None:
        self._ensure_active()
        try:
            await self._db.rollback(self._connection)
        finally:
            self._state = TransactionState.ROLLED_BACK
        logger.debug(f"Transaction rolled back on '{self._db.name}'")

    def _ensure_active(self) -> None:
        if self._state is not TransactionState.ACTIVE:
            raise TransactionStateError(self._state.value)


class ManagedTransaction:
    """트랜잭션 컨텍스트 매니저"""

    def __init__(self, db: 'BaseDatabase'):
        self._db = db
        self._connection: Any = None
        self._scope: TransactionScope | None = None
        self._token: Token | None = None

    async def __aenter__(self) -> TransactionScope:
        self._connection = await self._db.acquire()
        self._scope = TransactionScope(self._db, self._connection)
        try:
            await self._scope.begin()
        except BaseException:
            await self._db.release(self._connection)
            raise

        self._token = set_transaction(self._db.name, self._scope)
        return self._scope

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                await self._rollback_quietly()
            else:
                try:
                    await self._scope.commit()
                except BaseException:
                    await self._rollback_quietly()
                    raise
        finally:
            try:
                clear_transaction(self._token)
            finally:
                await self._db.release(self._connection)

    async def _rollback_quietly(self) -> None:
        """롤백 실패는 로깅만 하고 원래 예외를 살림"""
        if self._scope.state is not TransactionState.ACTIVE:
            return
        try:
            await self._scope.rollback()
        except Exception:
            logger.exception(f"Rollback failed on '{self._db.name}'")
