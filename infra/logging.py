"""
TheLordWill Search 로깅 설정 및 초기화

구조화된 로깅 시스템 설정
infra 아키텍쳐 지침: 연결, 초기화, 설정만 담당
"""

import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog
from structlog.processors import JSONRenderer
from structlog.stdlib import LoggerFactory
import colorama
from colorama import Fore, Style

from .config import Settings, get_settings

logger = structlog.get_logger(__name__)

# 컬러 초기화
colorama.init(autoreset=True)


def setup_logging(settings: Optional[Settings] = None) -> None:
    """로깅 시스템을 초기화합니다."""
    settings = settings or get_settings()

    log_level = getattr(logging, settings.app_log_level)

    # 기본 로깅 설정
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=_get_handlers(settings),
        force=True,
    )

    # Structlog 설정
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _service_context(settings),
            _get_renderer(settings),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 외부 라이브러리 로그 레벨 조정
    _configure_external_loggers()

    logger.info(
        "로깅 시스템이 초기화되었습니다",
        log_level=settings.app_log_level,
        log_format=settings.log_format,
        log_file=settings.log_file_path,
        console_enabled=settings.log_console_enabled
    )


def _get_handlers(settings: Settings) -> list:
    """로깅 핸들러를 생성합니다."""
    handlers = []

    # 파일 핸들러
    if settings.log_file_path:
        log_path = Path(settings.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=settings.log_file_path,
            maxBytes=_parse_size(settings.log_file_max_size),
            backupCount=settings.log_file_backup_count,
            encoding='utf-8'
        )
        handlers.append(file_handler)

    # 콘솔 핸들러
    if settings.log_console_enabled:
        handlers.append(logging.StreamHandler(sys.stdout))

    # 핸들러가 하나도 없으면 basicConfig가 stderr를 쓰므로 NullHandler로 막음
    if not handlers:
        handlers.append(logging.NullHandler())

    return handlers


def _service_context(settings: Settings):
    """모든 로그에 서비스명과 실행 환경을 붙이는 프로세서"""
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("environment", settings.app_environment)
        return event_dict

    return processor


def _get_renderer(settings: Settings):
    """로그 렌더러를 반환합니다."""
    if settings.log_format == "json":
        return JSONRenderer()
    # 개발 환경용 컬러 렌더러
    return ColoredConsoleRenderer()


def _parse_size(size_str: str) -> int:
    """크기 문자열을 바이트로 변환합니다."""
    size_str = size_str.upper()
    if size_str.endswith("KB"):
        return int(size_str[:-2]) * 1024
    elif size_str.endswith("MB"):
        return int(size_str[:-2]) * 1024 * 1024
    elif size_str.endswith("GB"):
        return int(size_str[:-2]) * 1024 * 1024 * 1024
    else:
        return int(size_str)


def _configure_external_loggers() -> None:
    """외부 라이브러리의 로거 레벨을 조정합니다."""
    external_loggers = {
        "motor": "WARNING",
        "pymongo": "WARNING",
        "qdrant_client": "WARNING",
        "pinecone": "WARNING",
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "openai": "WARNING",
        "fastapi": "INFO",
        "uvicorn": "INFO",
    }

    for logger_name, level in external_loggers.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level))


class ColoredConsoleRenderer:
    """개발 환경용 컬러 콘솔 렌더러"""

    LEVEL_COLORS = {
        "debug": Fore.CYAN,
        "info": Fore.GREEN,
        "warning": Fore.YELLOW,
        "error": Fore.RED,
        "critical": Fore.MAGENTA + Style.BRIGHT,
    }

    def __call__(self, logger, method_name, event_dict):
        """로그를 컬러로 렌더링합니다."""
        level = event_dict.get("level", "info").lower()
        color = self.LEVEL_COLORS.get(level, "")

        timestamp = event_dict.get("timestamp", "")
        logger_name = event_dict.get("logger", "")
        message = event_dict.get("event", "")

        # 추가 컨텍스트 정보
        context = {k: v for k, v in event_dict.items()
                   if k not in ("timestamp", "logger", "level", "event", "service", "environment")}

        parts = []
        if timestamp:
            parts.append(f"{Fore.BLUE}{timestamp[:19]}{Style.RESET_ALL}")
        if logger_name:
            parts.append(f"{Fore.MAGENTA}{logger_name}{Style.RESET_ALL}")

        parts.append(f"{color}[{level.upper()}]{Style.RESET_ALL}")

        if message:
            parts.append(f"{color}{message}{Style.RESET_ALL}")

        result = " | ".join(parts)

        if context:
            context_str = " ".join([f"{k}={v}" for k, v in context.items()])
            result += f" {Fore.WHITE}{context_str}{Style.RESET_ALL}"

        return result
