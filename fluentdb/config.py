"""
데이터베이스 설정 모듈

YAML 파일 또는 환경변수(DB_HOST 등)에서 설정을 읽어
DatabaseRegistry.init_from_config()에 넘길 dict를 만듭니다.

설정 예시 (config/database.yaml):
    databases:
      default:
        type: sqlite
        path: ./data/app.db
        debug: false
        pool:
          pool_size: 10
          pool_timeout: 30.0
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_POOL_SIZE = 10


@dataclass
class PoolConfig:
    """커넥션풀 설정"""
    pool_size: int = DEFAULT_POOL_SIZE
    pool_timeout: float = 30.0
    pool_recycle: int = 300

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> 'PoolConfig':
        data = data or {}
        return cls(
            pool_size=int(data.get('pool_size', data.get('maxsize', DEFAULT_POOL_SIZE))),
            pool_timeout=float(data.get('pool_timeout', 30.0)),
            pool_recycle=int(data.get('pool_recycle', 300)),
        )


@dataclass
class DatabaseConfig:
    """단일 데이터베이스 설정"""
    name: str
    type: str = 'sqlite'
    debug: bool = False
    pool: PoolConfig = field(default_factory=PoolConfig)
    options: dict[str, Any] = field(default_factory=dict)
    # sqlite
    path: str | None = None
    # mysql
    host: str = 'localhost'
    port: int = 3306
    user: str = ''
    password: str = ''
    database: str = ''

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> 'DatabaseConfig':
        return cls(
            name=name,
            type=data.get('type', 'sqlite'),
            debug=_to_bool(data.get('debug', False)),
            pool=PoolConfig.from_dict(data.get('pool')),
            options=dict(data.get('options') or {}),
            path=data.get('path'),
            host=data.get('host', 'localhost'),
            port=int(data.get('port') or 3306),
            user=data.get('user', ''),
            password=data.get('password', ''),
            database=data.get('database', ''),
        )


def load_config(path: str | Path) -> dict[str, Any]:
    """YAML 설정 파일 로드"""
    with open(path, encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
    if 'databases' not in config:
        raise ValueError(f"'databases' section missing in {path}")
    return config


def config_from_env(name: str = 'default', prefix: str = 'DB_') -> dict[str, Any]:
    """
    환경변수에서 MySQL 설정 생성

    Args:
        name: 등록할 데이터베이스 이름
        prefix: 환경변수 접두어 (DB_HOST, DB_USER, DB_PASSWORD, DB_NAME, DB_PORT,
                DB_POOL_SIZE, DB_DEBUG)

    Returns:
        init_from_config()에 넘길 설정 dict
    """
    env = os.environ
    return {
        'databases': {
            name: {
                'type': 'mysql',
                'host': env.get(f'{prefix}HOST', 'localhost'),
                'user': env.get(f'{prefix}USER', ''),
                'password': env.get(f'{prefix}PASSWORD', ''),
                'database': env.get(f'{prefix}NAME', ''),
                'port': int(env.get(f'{prefix}PORT') or 3306),
                'debug': _to_bool(env.get(f'{prefix}DEBUG', 'false')),
                'pool': {
                    'pool_size': int(env.get(f'{prefix}POOL_SIZE') or DEFAULT_POOL_SIZE),
                },
            }
        }
    }


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)
