"""
SQLite3 비동기 데이터베이스 패키지

사용 예시:
    from fluentdb.sqlite3 import SQLiteDatabase

    db = await SQLiteDatabase.create('default', {'path': './data/app.db'})
    users = await db.table('users').where('status', '=', 'active').get()
"""

from fluentdb.sqlite3.connection import (
    SQLiteDatabase,
    AsyncConnectionPool,
    SqliteOptions,
    PooledConnection,
)

__all__ = [
    'SQLiteDatabase',
    'AsyncConnectionPool',
    'SqliteOptions',
    'PooledConnection',
]
