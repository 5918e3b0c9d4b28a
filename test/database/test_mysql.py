"""
MySQL 데이터베이스 테스트

Docker 환경에서 실행:
    docker run -d -p 3306:3306 -e MYSQL_DATABASE=fluentdb -e MYSQL_USER=fluentdb \
        -e MYSQL_PASSWORD=fluentdb_dev -e MYSQL_RANDOM_ROOT_PASSWORD=1 mysql:8
    python -m pytest test/database/test_mysql.py -v

테스트 항목:
1. 커넥션 풀 테스트
2. CRUD / 페이징
3. 트랜잭션 (커밋, 롤백)
4. 동시성
"""

import asyncio
import logging
import socket

import pytest
import pytest_asyncio

from fluentdb import DatabaseRegistry, get_db

logger = logging.getLogger(__name__)


def is_mysql_available():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    result = sock.connect_ex(('localhost', 3306))
    sock.close()
    return result == 0


pytestmark = pytest.mark.skipif(
    not is_mysql_available(),
    reason="MySQL not available on localhost:3306"
)


@pytest_asyncio.fixture
async def mysql_config():
    """MySQL 테스트 설정"""
    return {
        'databases': {
            'mysql_test': {
                'type': 'mysql',
                'host': 'localhost',
                'port': 3306,
                'database': 'fluentdb',
                'user': 'fluentdb',
                'password': 'fluentdb_dev',
                'debug': True,
                'pool': {
                    'pool_size': 5,
                },
                'options': {
                    'charset': 'utf8mb4',
                }
            }
        }
    }


@pytest_asyncio.fixture
async def database(mysql_config):
    """테스트용 MySQLDatabase 인스턴스"""
    DatabaseRegistry.clear()
    await DatabaseRegistry.init_from_config(mysql_config)
    db = get_db('mysql_test')

    await db.sql(
        "CREATE TABLE IF NOT EXISTS fluent_users ("
        " id INT AUTO_INCREMENT PRIMARY KEY,"
        " name VARCHAR(100) NOT NULL,"
        " status VARCHAR(20) NULL)"
    )
    await db.table('fluent_users').truncate()

    yield db
    await DatabaseRegistry.close_all()


class TestMySQLCrud:
    """MySQL CRUD 테스트"""

    @pytest.mark.asyncio
    async def test_insert_and_first(self, database):
        user_id = await database.table('fluent_users').insert({'name': 'kim', 'status': 'active'})
        row = await database.table('fluent_users').where('id', '=', user_id).first()
        assert row == {'id': user_id, 'name': 'kim', 'status': 'active'}

    @pytest.mark.asyncio
    async def test_like_with_literal_percent(self, database):
        await database.table('fluent_users').insert_bulk([
            {'name': 'alpha', 'status': 'a'},
            {'name': 'beta', 'status': 'b'},
        ])
        rows = await database.sql(
            "SELECT name FROM fluent_users WHERE name LIKE 'al%' AND status = ?", ['a']
        )
        assert rows == [{'name': 'alpha'}]

    @pytest.mark.asyncio
    async def test_paginate(self, database):
        await database.table('fluent_users').insert_bulk([
            {'name': f'user{i}', 'status': 'active'} for i in range(25)
        ])
        page = await database.table('fluent_users').order_by('id').paginate(2, 10)
        assert page.meta.total == 25
        assert page.meta.last_page == 3
        assert len(page.data) == 10


class TestMySQLTransaction:
    """MySQL 트랜잭션 테스트"""

    @pytest.mark.asyncio
    async def test_commit(self, database):
        async def work(trx):
            return await trx.table('fluent_users').insert({'name': 'committed'})

        user_id = await database.run_in_transaction(work)
        assert await database.table('fluent_users').where('id', '=', user_id).exists()

    @pytest.mark.asyncio
    async def test_rollback(self, database):
        async def work(trx):
            await trx.table('fluent_users').insert({'name': 'rolled_back'})
            raise ValueError("Intentional error for rollback test")

        with pytest.raises(ValueError):
            await database.run_in_transaction(work)

        assert await database.table('fluent_users').where('name', '=', 'rolled_back').count() == 0


class TestMySQLConcurrency:
    """MySQL 동시성 테스트"""

    @pytest.mark.asyncio
    async def test_concurrent_transactions(self, database):
        async def work(trx, name):
            return await trx.table('fluent_users').insert({'name': name})

        await asyncio.gather(*[
            database.run_in_transaction(lambda trx, n=f"concurrent_{i}": work(trx, n))
            for i in range(8)
        ])

        count = await database.table('fluent_users').where('name', 'LIKE', 'concurrent_%').count()
        assert count == 8
