"""
Fluent 쿼리 빌더

절 메서드(select, join, where, order_by, limit)는 상태만 누적하고 self를 반환하며,
종료 메서드(get, first, count, insert, update, delete, paginate, truncate)는
컴파일 → 실행 후 어떤 경로로 끝나든 상태를 초기화합니다.
"""

import logging
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from fluentdb.compiler import (
    ClauseState,
    CompiledStatement,
    compile_count,
    compile_delete,
    compile_insert,
    compile_insert_bulk,
    compile_select,
    compile_update,
    render_join,
    render_limit,
    render_order,
)
from fluentdb.exception import DatabaseError, InvalidClauseError, PaginationError, QueryExecutionError
from fluentdb.pagination import Page

if TYPE_CHECKING:
    from fluentdb.base import BaseDatabase, ExecResult
    from fluentdb.transaction import TransactionScope

logger = logging.getLogger(__name__)


class QueryBuilder:
    """
    테이블 하나에 대한 쿼리 빌더

    인스턴스는 순차 재사용이 가능하지만 동시 사용은 안전하지 않습니다.

    사용 예시:
        rows = await (
            db.table('users')
            .select(['users.id', 'profiles.bio'])
            .left_join('profiles', 'users.id', '=', 'profiles.user_id')
            .where('users.status', '=', 'active')
            .order_by('users.id', 'DESC')
            .limit(10)
            .get()
        )
    """

    def __init__(self, db: 'BaseDatabase', table: str, transaction: 'TransactionScope | None' = None):
        self._db = db
        self._table = table
        self._trx = transaction
        self._state = ClauseState()

    @property
    def table(self) -> str:
        return self._table

    @property
    def transaction(self) -> 'TransactionScope | None':
        return self._trx

    @property
    def state(self) -> ClauseState:
        return self._state

    # ---- 절 누적 ----

    def select(self, columns: str | Sequence[str] = '*') -> 'QueryBuilder':
        if isinstance(columns, str):
            rendered = columns.strip()
        else:
            rendered = ', '.join(columns)
        if not rendered:
            raise InvalidClauseError("select() requires at least one column")
        self._state.columns = rendered
        return self

    def join(self, table: str, left: str, operator: str, right: str, kind: str = 'INNER') -> 'QueryBuilder':
        self._state.joins.append(render_join(table, left, operator, right, kind))
        return self

    def left_join(self, table: str, left: str, operator: str, right: str) -> 'QueryBuilder':
        return self.join(table, left, operator, right, 'LEFT')

    def right_join(self, table: str, left: str, operator: str, right: str) -> 'QueryBuilder':
        return self.join(table, left, operator, right, 'RIGHT')

    def where(self, column: str, operator: str, value: Any) -> 'QueryBuilder':
        self._state.add_where(column, operator, value)
        return self

    def where_equal(self, data: Mapping[str, Any]) -> 'QueryBuilder':
        for column, value in data.items():
            self.where(column, '=', value)
        return self

    def order_by(self, column: str, direction: str = 'ASC') -> 'QueryBuilder':
        self._state.order = render_order(column, direction)
        return self

    def limit(self, count: int, offset: int | None = None) -> 'QueryBuilder':
        self._state.limit = render_limit(count, offset)
        return self

    def to_sql(self) -> CompiledStatement:
        """현재 상태의 SELECT 문 (실행/초기화 없음)"""
        return compile_select(self._table, self._state)

    def reset(self) -> None:
        self._state.reset()

    # ---- 실행 ----

    async def _execute(self, operation: str, statement: CompiledStatement) -> 'ExecResult':
        try:
            if self._trx is not None:
                return await self._trx.execute(statement.sql, statement.params)
            return await self._db.execute(statement.sql, statement.params)
        except DatabaseError:
            raise
        except Exception as e:
            raise QueryExecutionError(operation, self._table, e) from e

    async def get(self) -> list[dict[str, Any]]:
        """SELECT 실행 - 행 목록을 그대로 반환"""
        try:
            result = await self._execute('GET', compile_select(self._table, self._state))
            return result.rows
        finally:
            self._state.reset()

    async def first(self) -> dict[str, Any] | None:
        self.limit(1)
        rows = await self.get()
        return rows[0] if rows else None

    async def pluck(self, column: str) -> list[Any]:
        """단일 컬럼 값 목록"""
        self.select([column])
        rows = await self.get()
        return [next(iter(row.values())) for row in rows]

    async def count(self, column: str = '*') -> int:
        try:
            result = await self._execute('COUNT', compile_count(self._table, self._state, column))
            return _total(result)
        finally:
            self._state.reset()

    async def exists(self) -> bool:
        return await self.count() > 0

    async def insert(self, record: Mapping[str, Any]) -> int | None:
        """단일 행 INSERT - 생성된 ID 반환"""
        try:
            result = await self._execute('INSERT', compile_insert(self._table, record))
            return result.insert_id
        finally:
            self._state.reset()

    async def insert_bulk(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """다중 행 INSERT - affected rows 반환"""
        try:
            result = await self._execute('BULK INSERT', compile_insert_bulk(self._table, rows))
            return result.affected_rows
        finally:
            self._state.reset()

    async def update(self, record: Mapping[str, Any]) -> int:
        try:
            result = await self._execute('UPDATE', compile_update(self._table, self._state, record))
            return result.affected_rows
        finally:
            self._state.reset()

    async def delete(self) -> int:
        try:
            result = await self._execute('DELETE', compile_delete(self._table, self._state))
            return result.affected_rows
        finally:
            self._state.reset()

    async def truncate(self) -> 'ExecResult':
        try:
            return await self._execute('TRUNCATE', self._db.truncate_statement(self._table))
        finally:
            self._state.reset()

    async def paginate(self, page: int = 1, per_page: int = 10) -> Page:
        """
        페이지 조회

        COUNT는 현재 JOIN/WHERE 상태를 그대로 사용하고(초기화하지 않음),
        이어서 limit(per_page, offset)를 적용해 get()으로 데이터를 읽습니다.

        Raises:
            PaginationError: page < 1 또는 per_page < 1
        """
        try:
            if not _is_positive_int(page) or not _is_positive_int(per_page):
                raise PaginationError(page, per_page)
            offset = (page - 1) * per_page

            counted = await self._execute('COUNT', compile_count(self._table, self._state))
            total = _total(counted)

            self.limit(per_page, offset)
            data = await self.get()
        finally:
            self._state.reset()

        logger.debug(f"Paginated '{self._table}': page={page}, per_page={per_page}, total={total}")
        return Page.create(data, total=total, page=page, per_page=per_page)


def _total(result: 'ExecResult') -> int:
    if not result.rows:
        return 0
    return int(result.rows[0].get('total') or 0)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1
