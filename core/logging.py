"""
统一日志模块 (Core Logging)
标准 logging 作为输出端，structlog 挂接其上；支持彩色文本/JSON 两种格式、
敏感字段脱敏、滚动文件归档以及 Trace ID 注入。
"""

import json
import logging
import re
import uuid
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog
from dotenv import find_dotenv, load_dotenv

from core.config import settings
from core.context import trace_id_var

# Simple redaction keywords
_REDACT_KEYS = {"token", "api_hash", "apikey", "api_key", "authorization", "password", "secret"}

_COMPILED_PATTERNS = []
for _k in _REDACT_KEYS:
    _e = re.escape(_k)
    _COMPILED_PATTERNS.extend(
        [
            (re.compile(rf"({_e}\s*=\s*)([^\s;,]+)", re.IGNORECASE), r"\1***"),
            (re.compile(rf'("{_e}"\s*:\s*")(.*?)(")', re.IGNORECASE), r"\1***\3"),
            (re.compile(rf"('{_e}'\s*:\s*')(.*?)(')", re.IGNORECASE), r"\1***\3"),
        ]
    )

# Telegram Bot Token 形如 123456:AA...
_BOT_TOKEN_PATTERN = re.compile(r"\b\d{6,}:[A-Za-z0-9_-]{30,}\b")


def _redact(text: str) -> str:
    if not text:
        return text
    masked = text
    for _p, _r in _COMPILED_PATTERNS:
        masked = _p.sub(_r, masked)
    return _BOT_TOKEN_PATTERN.sub("***", masked)


class JsonFormatter(logging.Formatter):
    """JSON 格式化器"""

    def __init__(
        self, include_traceback: bool = True, datefmt: str = None
    ) -> None:
        super().__init__(datefmt=datefmt)
        self.include_traceback = include_traceback
        self.datefmt = datefmt or "%Y-%m-%dT%H:%M:%S%z"

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": _redact(record.getMessage()),
            "process": record.process,
            "trace_id": getattr(record, "correlation_id", "-"),
            "func_name": record.funcName,
            "lineno": record.lineno,
        }

        # 附加异常信息
        if record.exc_info and self.include_traceback:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


class ColorTextFormatter(logging.Formatter):
    """标准彩色文本格式化器"""

    _COLORS = {
        "DEBUG": "\x1b[90m",  # 灰
        "INFO": "\x1b[32m",  # 绿
        "WARNING": "\x1b[33m",  # 黄
        "ERROR": "\x1b[31m",  # 红
        "CRITICAL": "\x1b[35m",  # 品红
    }
    _RESET = "\x1b[0m"

    def __init__(
        self, use_color: bool = True, datefmt: str | None = None
    ) -> None:
        fmt = "%(asctime)s [%(correlation_id)s][%(levelname)s][%(name)s] %(message)s"
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        out = _redact(super().format(record))
        if not self.use_color:
            return out
        color = self._COLORS.get(record.levelname)
        return f"{color}{out}{self._RESET}" if color else out


class _ContextFilter(logging.Filter):
    """Inject correlation_id from the trace context var."""

    def filter(self, record: logging.LogRecord) -> bool:
        cid = trace_id_var.get()
        if cid == "-":
            cid = getattr(record, "correlation_id", None) or "-"
        setattr(record, "correlation_id", cid)
        return True


class _MuteFilter(logging.Filter):
    """前缀静音：LOG_MUTE_LOGGERS 中列出的 logger 前缀在 WARNING 以下全部丢弃"""

    def __init__(self, prefixes) -> None:
        super().__init__()
        self.mute_prefixes = [p for p in prefixes if p]

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        name = record.name or ""
        return not any(name.startswith(prefix) for prefix in self.mute_prefixes)


class SafeLoggerFactory(structlog.stdlib.LoggerFactory):
    """确保 logger name 永远是字符串"""
    def __call__(self, *args, **kwargs):
        if args and args[0] is None:
            args = ("root",) + args[1:]
        elif not args:
            args = ("root",)
        return super().__call__(*args, **kwargs)


def configure_structlog():
    """配置 structlog 以对接标准 logging 系统"""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        context_class=dict,
        logger_factory=SafeLoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _build_formatter(log_format: str, use_color: bool) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(include_traceback=settings.LOG_INCLUDE_TRACEBACK)
    return ColorTextFormatter(use_color=use_color)


def setup_logging():
    """配置日志系统，包括滚动归档"""
    # 优先加载 .env
    try:
        load_dotenv(find_dotenv(usecwd=True))
    except Exception as e:
        print(f"Error loading .env: {e}")

    configure_structlog()

    root_logger = logging.getLogger()
    level = str(settings.LOG_LEVEL).upper()
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    log_format = str(settings.LOG_FORMAT).lower()
    mute_filter = _MuteFilter(settings.LOG_MUTE_LOGGERS)

    # 移除现有处理器
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    # Console Handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_build_formatter(log_format, settings.LOG_COLOR))
    console_handler.addFilter(_ContextFilter())
    console_handler.addFilter(mute_filter)
    root_logger.addHandler(console_handler)

    # File Handler (Rolling)
    if settings.LOG_TO_FILE and settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_dir / "app.log"),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(_build_formatter(log_format, use_color=False))
        file_handler.addFilter(_ContextFilter())
        file_handler.addFilter(mute_filter)
        root_logger.addHandler(file_handler)

    # Telethon 日志级别控制
    telethon_level = str(settings.TELETHON_LOG_LEVEL).upper()
    logging.getLogger("telethon").setLevel(getattr(logging, telethon_level, logging.WARNING))

    # Logger Overrides: "name=LEVEL,name2=LEVEL"
    for item in settings.LOG_LEVEL_OVERRIDES.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        name, lvl = item.split("=", 1)
        name = name.strip()
        if name:
            logging.getLogger(name).setLevel(getattr(logging, lvl.strip().upper(), logging.WARNING))

    logger = structlog.get_logger("core.logging")
    logger.info(
        "Log system initialized",
        level=logging.getLevelName(root_logger.level),
        format=log_format,
        max_bytes=settings.LOG_MAX_BYTES,
        backup_count=settings.LOG_BACKUP_COUNT,
    )
    return root_logger


class StandardLogger:
    """标准化日志记录器"""

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        if not isinstance(name, str):
            name = str(name) if name is not None else "unknown"
        self.name = name
        self.logger = logging.getLogger(name)
        self.module_name = name.split(".")[-1] if "." in name else name
        self.context = context or {}

    def _log(self, level: str, message: str, *args, **kwargs) -> None:
        standard_params = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in standard_params}

        extra = log_kwargs.get("extra", {}) or {}
        if not isinstance(extra, dict):
            extra = {"_extra_data": extra}

        if self.context:
            extra = {**self.context, **extra}

        other_params = {k: v for k, v in kwargs.items() if k not in standard_params}
        if other_params:
            extra = {**extra, **other_params}

        if extra:
            log_kwargs["extra"] = extra

        getattr(self.logger, level.lower())(message, *args, **log_kwargs)

    def debug(self, message: str, *args, **kwargs) -> None: self._log("debug", message, *args, **kwargs)
    def info(self, message: str, *args, **kwargs) -> None: self._log("info", message, *args, **kwargs)
    def warning(self, message: str, *args, **kwargs) -> None: self._log("warning", message, *args, **kwargs)
    def error(self, message: str, *args, **kwargs) -> None: self._log("error", message, *args, **kwargs)
    def critical(self, message: str, *args, **kwargs) -> None: self._log("critical", message, *args, **kwargs)
    def exception(self, message: str, *args, **kwargs) -> None: self._log("exception", message, *args, **kwargs)

    # 业务日志方法
    def log_operation(self, operation: str, entity_id: Optional[Union[int, str]] = None, details: Optional[str] = None, level: str = "info") -> None:
        msg = f"[{self.module_name}] {operation}"
        if entity_id: msg += f" [ID: {entity_id}]"
        if details: msg += f" - {details}"
        self._log(level, msg)

    def log_system_state(self, component: str, state: str, metrics: Optional[Dict[str, Any]] = None) -> None:
        msg = f"[{self.module_name}] 系统状态 | {component}: {state}"
        if metrics:
            for key, value in metrics.items(): msg += f" | {key}: {value}"
        self._log("info", msg)


# Cache
_logger_cache: Dict[str, StandardLogger] = {}

def get_logger(name: str) -> StandardLogger:
    if not isinstance(name, str):
        name = str(name) if name is not None else "unknown"
    if name not in _logger_cache:
        _logger_cache[name] = StandardLogger(name)
    return _logger_cache[name]


def log_startup(module_name: str, version: str = None, config: Dict[str, Any] = None):
    logger = get_logger(module_name)
    msg = f"{module_name} 启动"
    if version: msg += f" | 版本: {version}"
    if config: msg += f" | 配置: {json.dumps(config, ensure_ascii=False, default=str)}"
    logger.log_system_state("启动", msg)


def log_shutdown(module_name: str, cleanup_info: Dict[str, Any] = None):
    logger = get_logger(module_name)
    msg = f"{module_name} 关闭"
    if cleanup_info: msg += f" | 清理信息: {json.dumps(cleanup_info, ensure_ascii=False, default=str)}"
    logger.log_system_state("关闭", msg)


def new_trace_id() -> str:
    return uuid.uuid4().hex[:8]


@contextmanager
def correlation_context(cid: Optional[str] = None):
    """在上下文内绑定 Trace ID；未提供时自动生成"""
    token = trace_id_var.set(str(cid) if cid else new_trace_id())
    try:
        yield trace_id_var.get()
    finally:
        trace_id_var.reset(token)

