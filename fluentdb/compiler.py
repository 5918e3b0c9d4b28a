"""
SQL 절 누적 상태와 문장 컴파일러

ClauseState는 빌더 인스턴스 하나의 가변 상태(컬럼, JOIN, WHERE, 파라미터,
ORDER, LIMIT)를 담고, compile_* 함수들은 상태를 (sql, params)로 변환하는
순수 함수입니다. 모든 플레이스홀더는 '?' 이며 params 순서와 일치합니다.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from fluentdb.exception import (
    BulkShapeError,
    InvalidClauseError,
    InvalidOperatorError,
    MissingWhereError,
    UnsetValueError,
)


class _Unset:
    """컬럼 값 미지정 표시 (None은 SQL NULL로 허용)"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

ALLOWED_OPERATORS = frozenset({
    '=', '!=', '<>', '>', '>=', '<', '<=',
    'LIKE', 'NOT LIKE', 'IN', 'NOT IN', 'IS', 'IS NOT',
})
JOIN_OPERATORS = frozenset({'=', '!=', '<>', '>', '>=', '<', '<='})
JOIN_KINDS = frozenset({'INNER', 'LEFT', 'RIGHT', 'CROSS'})
DIRECTIONS = frozenset({'ASC', 'DESC'})


@dataclass(frozen=True)
class CompiledStatement:
    """컴파일된 SQL과 바인딩 파라미터"""
    sql: str
    params: list[Any] = field(default_factory=list)


@dataclass
class ClauseState:
    """빌더 인스턴스의 누적 절 상태"""
    columns: str = '*'
    joins: list[str] = field(default_factory=list)
    wheres: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)
    # wheres[i]가 가진 플레이스홀더 수 (IN 확장 시 1보다 큼)
    arity: list[int] = field(default_factory=list)
    order: str = ''
    limit: str = ''

    def reset(self) -> None:
        """초기 빈 상태로 복귀"""
        self.columns = '*'
        self.joins = []
        self.wheres = []
        self.params = []
        self.arity = []
        self.order = ''
        self.limit = ''

    def add_where(self, column: str, operator: str, value: Any) -> None:
        op = normalize_operator(operator)
        if op in ('IN', 'NOT IN') and isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                raise InvalidClauseError(f"{op} requires at least one value for column: {column}")
            if any(v is UNSET for v in values):
                raise UnsetValueError(column)
            placeholders = ', '.join('?' for _ in values)
            self.wheres.append(f"{column} {op} ({placeholders})")
            self.params.extend(values)
            self.arity.append(len(values))
        else:
            if value is UNSET:
                raise UnsetValueError(column)
            self.wheres.append(f"{column} {op} ?")
            self.params.append(value)
            self.arity.append(1)

    def where_sql(self) -> str:
        """WHERE 절 렌더링 (조건 없으면 빈 문자열)"""
        if not self.wheres:
            return ''
        if sum(self.arity) != len(self.params):
            raise RuntimeError(
                f"WHERE placeholders ({sum(self.arity)}) do not match parameters ({len(self.params)})"
            )
        return 'WHERE ' + ' AND '.join(self.wheres)


def normalize_operator(operator: str) -> str:
    """연산자 정규화 및 허용 목록 검사"""
    op = ' '.join(str(operator).split()).upper()
    if op not in ALLOWED_OPERATORS:
        raise InvalidOperatorError(operator)
    return op


def render_join(table: str, left: str, operator: str, right: str, kind: str = 'INNER') -> str:
    kind = str(kind).strip().upper()
    if kind not in JOIN_KINDS:
        raise InvalidClauseError(f"Unsupported join type: {kind!r}")
    op = ' '.join(str(operator).split())
    if op not in JOIN_OPERATORS:
        raise InvalidOperatorError(operator)
    return f"{kind} JOIN {table} ON {left} {op} {right}"


def render_order(column: str, direction: str = 'ASC') -> str:
    direction = str(direction).strip().upper()
    if direction not in DIRECTIONS:
        raise InvalidClauseError(f"Invalid order direction: {direction!r}")
    return f"ORDER BY {column} {direction}"


def render_limit(count: int, offset: int | None = None) -> str:
    if not _is_int(count) or count < 0:
        raise InvalidClauseError(f"LIMIT count must be a non-negative integer: {count!r}")
    if offset is None:
        return f"LIMIT {count}"
    if not _is_int(offset) or offset < 0:
        raise InvalidClauseError(f"LIMIT offset must be a non-negative integer: {offset!r}")
    return f"LIMIT {count} OFFSET {offset}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _join_parts(*parts: str) -> str:
    return ' '.join(p for p in parts if p)


def compile_select(table: str, state: ClauseState) -> CompiledStatement:
    """SELECT <cols> FROM <table> <joins> [WHERE] [ORDER BY] [LIMIT]"""
    sql = _join_parts(
        f"SELECT {state.columns} FROM {table}",
        ' '.join(state.joins),
        state.where_sql(),
        state.order,
        state.limit,
    )
    return CompiledStatement(sql, list(state.params))


def compile_count(table: str, state: ClauseState, column: str = '*') -> CompiledStatement:
    """COUNT 변형: JOIN/WHERE는 동일, ORDER/LIMIT 제외"""
    sql = _join_parts(
        f"SELECT COUNT({column}) AS total FROM {table}",
        ' '.join(state.joins),
        state.where_sql(),
    )
    return CompiledStatement(sql, list(state.params))


def compile_insert(table: str, record: Mapping[str, Any]) -> CompiledStatement:
    """단일 행 INSERT"""
    if not record:
        raise InvalidClauseError(f"INSERT into '{table}' requires at least one column")
    for key, value in record.items():
        if value is UNSET:
            raise UnsetValueError(key)
    keys = list(record.keys())
    placeholders = ', '.join('?' for _ in keys)
    sql = f"INSERT INTO {table} ({', '.join(keys)}) VALUES ({placeholders})"
    return CompiledStatement(sql, [record[k] for k in keys])


def compile_insert_bulk(table: str, rows: Sequence[Mapping[str, Any]]) -> CompiledStatement:
    """
    다중 행 INSERT

    모든 행은 첫 행과 동일한 키 집합을 가져야 하며 UNSET 값은 허용되지 않습니다.
    params는 행 우선(row-major), 컬럼 순서로 평탄화됩니다.
    """
    if isinstance(rows, Mapping) or not isinstance(rows, Sequence) or len(rows) == 0:
        raise BulkShapeError("insert_bulk requires a non-empty list of rows")
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise BulkShapeError(f"Row {i} is not a mapping", row=i)

    keys = list(rows[0].keys())
    if not keys:
        raise BulkShapeError("insert_bulk rows must have at least one column", row=0)
    expected = set(keys)

    for i, row in enumerate(rows):
        for key in keys:
            if key not in row:
                raise BulkShapeError(f'Missing column "{key}" in row {i}', row=i, column=key)
            if row[key] is UNSET:
                raise UnsetValueError(key, row=i)
        extra = [k for k in row.keys() if k not in expected]
        if extra:
            raise BulkShapeError(f'Unexpected column "{extra[0]}" in row {i}', row=i, column=extra[0])

    group = '(' + ', '.join('?' for _ in keys) + ')'
    sql = f"INSERT INTO {table} ({', '.join(keys)}) VALUES {', '.join(group for _ in rows)}"
    params = [row[k] for row in rows for k in keys]
    return CompiledStatement(sql, params)


def compile_update(table: str, state: ClauseState, record: Mapping[str, Any]) -> CompiledStatement:
    """UPDATE: SET 파라미터가 WHERE 파라미터보다 앞"""
    if not state.wheres:
        raise MissingWhereError('UPDATE', table)
    if not record:
        raise InvalidClauseError(f"UPDATE on '{table}' requires at least one column")
    for key, value in record.items():
        if value is UNSET:
            raise UnsetValueError(key)
    keys = list(record.keys())
    assignments = ', '.join(f"{k} = ?" for k in keys)
    sql = f"UPDATE {table} SET {assignments} {state.where_sql()}"
    return CompiledStatement(sql, [record[k] for k in keys] + list(state.params))


def compile_delete(table: str, state: ClauseState) -> CompiledStatement:
    if not state.wheres:
        raise MissingWhereError('DELETE', table)
    return CompiledStatement(f"DELETE FROM {table} {state.where_sql()}", list(state.params))


def compile_truncate(table: str) -> CompiledStatement:
    return CompiledStatement(f"TRUNCATE TABLE {table}")
