"""
로깅 설정 모듈

구조화된 로그 출력과 파일 저장을 제공합니다.
패키지 루트 로거(notice_aggregator)에 핸들러를 붙이고,
모듈별 로거는 get_logger(__name__)로 얻은 하위 로거를 사용합니다.
ELK 스택과의 통합을 위한 JSON 포매터를 포함합니다.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Literal, Optional


ROOT_LOGGER_NAME = "notice_aggregator"

# 핸들러가 설정된 로거 저장소
_loggers: dict[str, logging.Logger] = {}


class ColoredFormatter(logging.Formatter):
    """콘솔 출력용 컬러 포매터"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # 같은 레코드를 다른 핸들러가 다시 포맷하므로 원본 레벨명을 복구
        original = record.levelname
        color = self.COLORS.get(original, self.RESET)
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JsonFormatter(logging.Formatter):
    """
    ELK 스택 호환 JSON 포매터

    출력 형식:
        {
            "@timestamp": "2025-03-01T05:30:00.123456+00:00",
            "level": "INFO",
            "logger": "notice_aggregator.aggregator",
            "message": "소스 완료: wevity (12건)",
            "module": "aggregator",
            "function": "run",
            "line": 42,
            "extra": {...}
        }
    """

    STANDARD_ATTRS = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message",
    }

    def __init__(
        self,
        include_stack_trace: bool = True,
        extra_fields: Optional[dict[str, Any]] = None,
    ):
        """
        Args:
            include_stack_trace: 예외 발생 시 스택 트레이스 포함 여부
            extra_fields: 모든 로그에 추가할 필드
        """
        super().__init__()
        self.include_stack_trace = include_stack_trace
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        log_data.update(self.extra_fields)

        extra = {}
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)

        if extra:
            log_data["extra"] = extra

        if record.exc_info and self.include_stack_trace:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    rotation: Literal["size", "time", "none"] = "size",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    rotation_when: str = "midnight",
    json_format: bool = False,
    extra_fields: Optional[dict[str, Any]] = None,
) -> logging.Logger:
    """
    로거 설정

    Args:
        name: 로거 이름
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR)
        log_file: 로그 파일 경로 (None이면 파일 출력 안함)
        console_output: 콘솔 출력 여부
        rotation: 로그 회전 방식 ("size", "time", "none")
        max_bytes: size 회전 시 최대 파일 크기 (기본 10MB)
        backup_count: 보관할 백업 파일 수 (기본 5개)
        rotation_when: time 회전 시점 ("midnight", "H", "D", "W0" 등)
        json_format: JSON 형식 로깅 사용 여부 (ELK 스택 통합용)
        extra_fields: JSON 로그에 추가할 필드 (예: {"service": "notice_aggregator"})

    Returns:
        설정된 로거
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers = []
    logger.propagate = False

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    json_formatter = JsonFormatter(extra_fields=extra_fields) if json_format else None

    if console_output:
        # stdout은 프리뷰 출력용이므로 로그는 stderr로 보냄
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))

        if json_format:
            console_handler.setFormatter(json_formatter)
        else:
            console_handler.setFormatter(
                ColoredFormatter(log_format, datefmt=date_format)
            )

        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        if rotation == "size":
            file_handler: logging.Handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        elif rotation == "time":
            file_handler = TimedRotatingFileHandler(
                log_file,
                when=rotation_when,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = logging.FileHandler(
                log_file,
                encoding="utf-8",
                mode="a",
            )

        file_handler.setLevel(logging.DEBUG)  # 파일에는 모든 레벨 기록

        if json_format:
            file_handler.setFormatter(json_formatter)
        else:
            file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))

        logger.addHandler(file_handler)

    _loggers[name] = logger
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    로거 가져오기

    패키지 하위 이름(notice_aggregator.xxx)은 핸들러 없이 루트 로거로 전파되는
    하위 로거를 반환합니다. 그 외 이름은 기본 설정으로 생성합니다.

    Args:
        name: 로거 이름

    Returns:
        로거
    """
    if name in _loggers:
        return _loggers[name]

    if name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)

    return setup_logger(name)


def reset_loggers() -> None:
    """모든 로거 초기화 (테스트용)"""
    for logger in _loggers.values():
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
        logger.propagate = True
    _loggers.clear()


class AggregationLogger:
    """
    수집 실행 전용 로거

    실행/소스/페이지 단위 진행 상황을 구조화된 형태로 로깅합니다.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(ROOT_LOGGER_NAME)
        self.start_time: Optional[datetime] = None

    def start_run(self, run_id: str, config_summary: str = "") -> None:
        """실행 시작 로그"""
        self.start_time = datetime.now()
        self.logger.info("=" * 60)
        self.logger.info(f"수집 시작: {run_id}")
        if config_summary:
            self.logger.info(f"설정: {config_summary}")
        self.logger.info("=" * 60)

    def end_run(
        self,
        per_source: dict[str, int],
        merged: int,
        skipped: Optional[list[str]] = None,
    ) -> None:
        """실행 종료 로그"""
        elapsed = ""
        if self.start_time:
            delta = datetime.now() - self.start_time
            elapsed = f" (소요시간: {delta})"

        self.logger.info("=" * 60)
        self.logger.info(f"수집 완료{elapsed}")
        for name, count in per_source.items():
            self.logger.info(f"  - {name}: {count}건")
        self.logger.info(f"  - 통합: {merged}건")
        if skipped:
            self.logger.info(f"  - 건너뜀: {', '.join(skipped)}")
        self.logger.info("=" * 60)

    def source_done(self, name: str, count: int) -> None:
        self.logger.info(f"소스 완료: {name} ({count}건)")

    def source_skipped(self, name: str, reason: str) -> None:
        self.logger.warning(f"소스 건너뜀: {name} - {reason}")

    def page_progress(self, label: str, page: int, total: Optional[int], items: int) -> None:
        """페이지 진행 로그"""
        if total:
            self.logger.info(f"[{label}] 페이지 {page}/{total} 처리 완료 ({items}건 후보)")
        else:
            self.logger.info(f"[{label}] 페이지 {page} 처리 완료 ({items}건 후보)")

    def budget_exhausted(self, label: str, page: int) -> None:
        self.logger.info(f"[{label}] 시간 예산 소진: 페이지 {page}에서 중단")

    def feed_written(self, path: Path, count: int) -> None:
        self.logger.info(f"RSS 저장: {path} ({count}건)")
