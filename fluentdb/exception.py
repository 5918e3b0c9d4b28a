"""
데이터베이스 관련 예외 클래스 정의
"""


class DatabaseError(Exception):
    """데이터베이스 기본 예외"""
    pass


class DatabaseNotFoundError(DatabaseError):
    """등록되지 않은 데이터베이스"""
    def __init__(self, name: str):
        self.name = name
        self.message = f"Database '{name}' is not registered"
        super().__init__(self.message)


class ConnectionPoolExhaustedError(DatabaseError):
    """커넥션풀 소진 (대기 시간 초과)"""
    pass


class TransactionStateError(DatabaseError):
    """종료된 트랜잭션 사용"""
    def __init__(self, state: str):
        self.state = state
        self.message = f"Transaction is not active (state: {state})"
        super().__init__(self.message)


class QueryContractError(DatabaseError):
    """호출 규약 위반 (I/O 이전에 발생, 재시도 불가)"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class MissingWhereError(QueryContractError):
    """WHERE 없는 UPDATE/DELETE"""
    def __init__(self, operation: str, table: str):
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on '{table}' requires WHERE")


class UnsetValueError(QueryContractError):
    """INSERT/UPDATE 데이터 또는 WHERE 값에 UNSET 포함"""
    def __init__(self, column: str, row: int | None = None):
        self.column = column
        self.row = row
        if row is None:
            super().__init__(f"Unset value for column: {column}")
        else:
            super().__init__(f"Unset value for column '{column}' in row {row}")


class BulkShapeError(QueryContractError):
    """벌크 INSERT 행 구조 불일치"""
    def __init__(self, message: str, row: int | None = None, column: str | None = None):
        self.row = row
        self.column = column
        super().__init__(message)


class PaginationError(QueryContractError):
    """잘못된 페이징 인자"""
    def __init__(self, page: int, per_page: int):
        self.page = page
        self.per_page = per_page
        super().__init__(
            f"Invalid pagination arguments: page={page}, per_page={per_page} "
            f"(both must be >= 1)"
        )


class InvalidOperatorError(QueryContractError):
    """허용되지 않은 WHERE/JOIN 연산자"""
    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Operator not allowed: {operator!r}")


class InvalidClauseError(QueryContractError):
    """잘못된 절 인자 (정렬 방향, LIMIT 값 등)"""
    pass


class QueryExecutionError(DatabaseError):
    """드라이버 실행 실패 (원본 메시지 보존)"""
    def __init__(self, operation: str, table: str | None, cause: BaseException):
        self.operation = operation
        self.table = table
        self.cause = cause
        target = f"{operation}[{table}]" if table else operation
        self.message = f"{target} failed: {cause}"
        super().__init__(self.message)


class NoActiveTransactionError(DatabaseError):
    """활성 트랜잭션 없음"""
    def __init__(self, name: str):
        self.name = name
        self.message = f"No active transaction for database '{name}'"
        super().__init__(self.message)
