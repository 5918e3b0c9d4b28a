"""MySQL 비동기 데이터베이스 패키지"""

from fluentdb.mysql import aiosql_adapter  # noqa: F401  (aiosql에 asyncmy 등록)
from fluentdb.mysql.connection import MySQLDatabase, to_pyformat

__all__ = ['MySQLDatabase', 'to_pyformat']
