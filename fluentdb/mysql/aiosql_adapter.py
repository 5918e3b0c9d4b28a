"""
asyncmy용 aiosql 어댑터

쿼리 파일의 ':name' 파라미터를 asyncmy가 받는 '%(name)s'로 바꾸고,
행은 빌더 결과와 같은 dict로 돌려줍니다. 패키지 import 시 'asyncmy'
이름으로 aiosql에 등록되므로 load_queries는 풀 생성 전에도 쓸 수 있습니다.

사용 예시:
    queries = db.load_queries('users', 'sql/users.sql')
    async with db.transaction() as trx:
        rows = await queries.get_users_by_status(trx.connection, status='active')
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiosql
from asyncmy.cursors import Cursor, DictCursor

from fluentdb.mysql.connection import named_to_pyformat


class AsyncmyAdapter:
    """asyncmy용 aiosql 어댑터"""

    is_aio_driver = True

    def process_sql(self, _query_name: str, _op_type: Any, sql: str) -> str:
        return named_to_pyformat(sql)

    @asynccontextmanager
    async def _cursor(self, conn, sql: str, parameters: Any, as_dict: bool = True) -> AsyncIterator[Any]:
        async with conn.cursor(DictCursor if as_dict else Cursor) as cur:
            await cur.execute(sql, parameters or None)
            yield cur

    async def select(self, conn, _query_name, sql, parameters, record_class=None):
        async with self._cursor(conn, sql, parameters) as cur:
            rows = list(await cur.fetchall())
        if record_class is None:
            return rows
        return [record_class(**row) for row in rows]

    async def select_one(self, conn, _query_name, sql, parameters, record_class=None):
        async with self._cursor(conn, sql, parameters) as cur:
            row = await cur.fetchone()
        if row is None or record_class is None:
            return row
        return record_class(**row)

    async def select_value(self, conn, _query_name, sql, parameters):
        async with self._cursor(conn, sql, parameters, as_dict=False) as cur:
            row = await cur.fetchone()
        return row[0] if row else None

    @asynccontextmanager
    async def select_cursor(self, conn, _query_name, sql, parameters):
        async with self._cursor(conn, sql, parameters) as cur:
            yield cur

    async def insert_returning(self, conn, _query_name, sql, parameters):
        # MySQL은 RETURNING 미지원: 자동 증가 키 반환
        async with self._cursor(conn, sql, parameters, as_dict=False) as cur:
            return cur.lastrowid

    async def insert_update_delete(self, conn, _query_name, sql, parameters):
        async with self._cursor(conn, sql, parameters, as_dict=False) as cur:
            return max(cur.rowcount or 0, 0)

    async def insert_update_delete_many(self, conn, _query_name, sql, parameters):
        async with conn.cursor(Cursor) as cur:
            await cur.executemany(sql, parameters)
            return max(cur.rowcount or 0, 0)

    async def execute_script(self, conn, sql):
        statements = [s.strip() for s in sql.split(';') if s.strip()]
        async with conn.cursor(Cursor) as cur:
            for statement in statements:
                await cur.execute(statement)
        return f"{len(statements)} statement(s)"


aiosql.register_adapter("asyncmy", AsyncmyAdapter)
