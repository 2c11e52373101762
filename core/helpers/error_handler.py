"""
统一的错误处理装饰器
用于消除重复的try-except代码模式，提供标准化的错误处理
"""

import functools
import logging
import inspect
from typing import Any, Optional, Type, Union, Callable, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError

from core.context import trace_id_var
from core.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Callable[..., Any])


def handle_errors(
    default_return: Any = None,
    log_error: bool = True,
    reraise: bool = False,
    error_message: Optional[str] = None,
    specific_errors: Optional[Union[Type[Exception], tuple]] = None,
) -> Callable[[T], T]:
    """
    统一错误处理装饰器 (仅支持协程函数)

    用于"尽力而为"的旁路逻辑：记录日志后返回 default_return，不打断主流程。
    """
    def decorator(func: T) -> T:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"handle_errors 只能用于协程函数: {func.__name__}")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if specific_errors and not isinstance(e, specific_errors):
                    raise

                if log_error:
                    cid = trace_id_var.get("-")
                    func_logger = logging.getLogger(func.__module__ or __name__)
                    message = error_message or f"{func.__name__} 执行失败"
                    func_logger.error(f"[{cid}] {message}: {str(e)}", exc_info=True)

                if reraise:
                    raise

                return default_return
        return cast(T, async_wrapper)

    return decorator


def storage_guard(operation: Optional[str] = None) -> Callable[[T], T]:
    """
    仓库层装饰器：将 SQLAlchemy 异常统一转换为 StorageError

    上层只需要捕获 StorageError，不依赖具体的数据库驱动异常类型。
    """
    def decorator(func: T) -> T:
        op_name = operation or func.__qualname__

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"[{trace_id_var.get('-')}] 数据库操作 {op_name} 失败: {e}")
                raise StorageError(f"{op_name} failed: {e}", context={"operation": op_name}) from e
        return cast(T, async_wrapper)

    return decorator
