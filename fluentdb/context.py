"""
현재 태스크의 트랜잭션 컨텍스트

contextvars로 데이터베이스 이름별 활성 TransactionScope를 추적하여,
@transactional 함수 안에서 스코프를 인자로 넘기지 않고 꺼내 쓸 수 있게 합니다.

사용 예시:
    @transactional(db)
    async def create_user(name):
        trx = get_transaction('default')
        return await trx.table('users').insert({'name': name})
"""

import functools
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from fluentdb.exception import NoActiveTransactionError

if TYPE_CHECKING:
    from fluentdb.base import BaseDatabase
    from fluentdb.transaction import TransactionScope

T = TypeVar('T')

_transactions: ContextVar[dict[str, 'TransactionScope']] = ContextVar('fluentdb_transactions', default={})


def set_transaction(name: str, scope: 'TransactionScope') -> Token:
    current = _transactions.get()
    return _transactions.set({**current, name: scope})


def clear_transaction(token: Token | None) -> None:
    if token is not None:
        _transactions.reset(token)


def get_transaction(name: str) -> 'TransactionScope':
    """현재 컨텍스트의 활성 트랜잭션 반환"""
    scope = _transactions.get().get(name)
    if scope is None:
        raise NoActiveTransactionError(name)
    return scope


def _active_scope(db: 'BaseDatabase') -> 'TransactionScope | None':
    from fluentdb.transaction import TransactionState

    scope = _transactions.get().get(db.name)
    if scope is None or scope.database is not db or scope.state is not TransactionState.ACTIVE:
        return None
    return scope


def transactional(db: 'BaseDatabase') -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    함수 전체를 트랜잭션으로 감싸는 데코레이터

    같은 데이터베이스의 트랜잭션이 이미 진행 중이면 새로 열지 않고 합류합니다.
    안쪽 함수의 예외는 바깥 트랜잭션 전체를 롤백시킵니다.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            if _active_scope(db) is not None:
                return await func(*args, **kwargs)
            async with db.transaction():
                return await func(*args, **kwargs)
        return wrapper
    return decorator
