"""
JSON 구조화 로깅 설정

SQL 진단 로그는 데이터베이스의 debug 플래그가 켜졌을 때만 INFO로 남으며,
JSON 포맷에서는 메시지 외에 database / sql / params 필드가 함께 기록됩니다.

사용 예시:
    setup_logging(level="INFO", json_format=True)
    db.debug = True
    # {"message": "[SQL] SELECT * FROM users WHERE id = ? | params: [1]",
    #  "database": "default", "sql": "SELECT * FROM users WHERE id = ?", "params": [1], ...}
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

# 드라이버 로거는 WARNING 이상만
DRIVER_LOGGERS = ('asyncio', 'aiosqlite', 'asyncmy')

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class CustomJsonFormatter(JsonFormatter):
    """timestamp / level / logger 필드를 붙이는 JSON 포매터"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = self.formatTime(record)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record.setdefault('message', record.getMessage())


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return CustomJsonFormatter('%(message)s')
    return logging.Formatter(TEXT_FORMAT)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None
) -> None:
    """
    루트 로거 설정 (기존 핸들러 교체)

    Args:
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON 포맷 사용 여부 (False면 텍스트 포맷)
        log_file: 로그 파일 경로 (None이면 stdout만 사용)
    """
    formatter = _formatter(json_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=getattr(logging, level.upper()), handlers=handlers, force=True)

    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
