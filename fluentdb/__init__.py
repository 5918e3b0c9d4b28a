"""
fluentdb - 커넥션풀 위의 비동기 Fluent 쿼리 빌더

사용 예시:
    from fluentdb import DatabaseRegistry, get_db, load_config

    await DatabaseRegistry.init_from_config(load_config('config/database.yaml'))
    db = get_db('default')

    page = await db.table('users').where('status', '=', 'active').paginate(2, 10)

    async def work(trx):
        user_id = await trx.table('users').insert({'name': 'kim'})
        await trx.table('profiles').insert({'user_id': user_id, 'bio': ''})
        return user_id

    user_id = await db.run_in_transaction(work)
"""

from fluentdb.base import BaseDatabase, ExecResult
from fluentdb.builder import QueryBuilder
from fluentdb.compiler import UNSET, CompiledStatement
from fluentdb.config import DatabaseConfig, PoolConfig, config_from_env, load_config
from fluentdb.context import get_transaction, transactional
from fluentdb.exception import (
    BulkShapeError,
    ConnectionPoolExhaustedError,
    DatabaseError,
    DatabaseNotFoundError,
    InvalidClauseError,
    InvalidOperatorError,
    MissingWhereError,
    NoActiveTransactionError,
    PaginationError,
    QueryContractError,
    QueryExecutionError,
    TransactionStateError,
    UnsetValueError,
)
from fluentdb.pagination import Page, PageMeta
from fluentdb.registry import DatabaseRegistry, get_db
from fluentdb.transaction import ManagedTransaction, TransactionScope, TransactionState

__all__ = [
    'BaseDatabase',
    'ExecResult',
    'QueryBuilder',
    'UNSET',
    'CompiledStatement',
    'DatabaseConfig',
    'PoolConfig',
    'config_from_env',
    'load_config',
    'get_transaction',
    'transactional',
    'NoActiveTransactionError',
    'BulkShapeError',
    'ConnectionPoolExhaustedError',
    'DatabaseError',
    'DatabaseNotFoundError',
    'InvalidClauseError',
    'InvalidOperatorError',
    'MissingWhereError',
    'PaginationError',
    'QueryContractError',
    'QueryExecutionError',
    'TransactionStateError',
    'UnsetValueError',
    'Page',
    'PageMeta',
    'DatabaseRegistry',
    'get_db',
    'ManagedTransaction',
    'TransactionScope',
    'TransactionState',
]
