from typing import Optional


class LessonBotError(Exception):
    """系统基础异常类"""
    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class TransientError(LessonBotError):
    """
    瞬态错误（可自动重试）
    场景：API 限流 (429 / FloodWait)
    """
    pass


class PermanentError(LessonBotError):
    """
    永久错误（不可重试，应直接向上层报告）
    场景：数据库故障、消息已删除、权限不足
    """
    pass


class StorageError(PermanentError):
    """持久层故障 (SQLite 锁、磁盘、约束等)"""
    pass


class TransportError(PermanentError):
    """Telegram 出站调用失败 (非限流原因，或限流重试后仍失败)"""
    def __init__(self, message: str, operation: str = "-", destination: str = "-", context: dict | None = None) -> None:
        super().__init__(message, context)
        self.operation = operation
        self.destination = destination


class RateLimitedError(TransportError, TransientError):
    """Telegram 限流信号，携带可选的 retry_after 秒数"""
    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ValidationError(PermanentError):
    """输入校验失败（空查询、无可搜索群组等），通常作为正常结果处理"""
    pass
