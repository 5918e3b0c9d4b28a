"""
설정 / 레지스트리 / 로깅 / 플레이스홀더 변환 테스트

실행: python -m pytest test/config_test.py -v
"""

import json
import logging

import pytest

from fluentdb import (
    DatabaseConfig,
    DatabaseNotFoundError,
    DatabaseRegistry,
    config_from_env,
    get_db,
    load_config,
)
from fluentdb.logging import CustomJsonFormatter, setup_logging
from fluentdb.mysql import to_pyformat


class TestConfig:
    """설정 로드 테스트"""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / 'database.yaml'
        path.write_text(
            "databases:\n"
            "  default:\n"
            "    type: sqlite\n"
            "    path: ./data/app.db\n"
            "    debug: true\n"
            "    pool:\n"
            "      pool_size: 4\n",
            encoding='utf-8',
        )
        config = load_config(path)
        db_config = DatabaseConfig.from_dict('default', config['databases']['default'])

        assert db_config.type == 'sqlite'
        assert db_config.debug is True
        assert db_config.pool.pool_size == 4
        assert db_config.pool.pool_timeout == 30.0

    def test_load_yaml_without_databases(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("other: 1\n", encoding='utf-8')
        with pytest.raises(ValueError):
            load_config(path)

    def test_default_pool_size(self):
        assert DatabaseConfig.from_dict('x', {}).pool.pool_size == 10

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv('DB_HOST', 'db.internal')
        monkeypatch.setenv('DB_USER', 'app')
        monkeypatch.setenv('DB_PASSWORD', 'secret')
        monkeypatch.setenv('DB_NAME', 'shop')
        monkeypatch.setenv('DB_PORT', '3307')
        monkeypatch.setenv('DB_DEBUG', 'true')
        monkeypatch.delenv('DB_POOL_SIZE', raising=False)

        config = config_from_env('main')
        db_config = DatabaseConfig.from_dict('main', config['databases']['main'])

        assert db_config.type == 'mysql'
        assert db_config.host == 'db.internal'
        assert db_config.database == 'shop'
        assert db_config.port == 3307
        assert db_config.debug is True
        assert db_config.pool.pool_size == 10


class TestRegistry:
    """레지스트리 테스트"""

    def test_unknown_database(self):
        DatabaseRegistry.clear()
        with pytest.raises(DatabaseNotFoundError):
            get_db('nope')

    @pytest.mark.asyncio
    async def test_init_and_close(self, sqlite_config):
        DatabaseRegistry.clear()
        await DatabaseRegistry.init_from_config(sqlite_config)
        assert DatabaseRegistry.names() == ['default']
        assert get_db().debug is True

        await DatabaseRegistry.close_all()
        assert DatabaseRegistry.names() == []


class TestLogging:
    """로깅 설정 테스트"""

    def test_json_format(self, capsys):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="INFO", json_format=True)
            assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)

            logging.getLogger('fluentdb.test').info("pool ready")
            line = capsys.readouterr().out.strip().splitlines()[-1]
            record = json.loads(line)
            assert record['message'] == "pool ready"
            assert record['level'] == "INFO"
            assert record['logger'] == "fluentdb.test"
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    @pytest.mark.asyncio
    async def test_sql_fields_in_json(self, fake_db, capsys):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="INFO", json_format=True)
            fake_db.debug = True
            await fake_db.table('users').where('id', '=', 7).get()

            lines = capsys.readouterr().out.strip().splitlines()
            records = [json.loads(line) for line in lines]
            sql_record = next(r for r in records if r['message'].startswith('[SQL] '))
            assert sql_record['database'] == 'fake'
            assert sql_record['sql'] == "SELECT * FROM users WHERE id = ?"
            assert sql_record['params'] == [7]
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestPyformat:
    """MySQL 플레이스홀더 변환 테스트"""

    def test_placeholders(self):
        assert to_pyformat("SELECT * FROM t WHERE a = ? AND b IN (?, ?)") == \
            "SELECT * FROM t WHERE a = %s AND b IN (%s, %s)"

    def test_literals(self):
        sql = "SELECT * FROM t WHERE name LIKE 'a%?' AND `we?ird` = ? AND x = 10 % 3"
        assert to_pyformat(sql) == \
            "SELECT * FROM t WHERE name LIKE 'a%%?' AND `we?ird` = %s AND x = 10 %% 3"

    def test_percent_inside_backticks(self):
        sql = to_pyformat("SELECT `rate%` FROM t WHERE id = ?")
        assert sql == "SELECT `rate%%` FROM t WHERE id = %s"
        assert sql % ("1",) == "SELECT `rate%` FROM t WHERE id = 1"
