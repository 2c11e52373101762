"""
优雅关闭协调器 (Graceful Shutdown Coordinator)

按优先级顺序执行清理回调，每个回调单独超时，总时长受 total_timeout 限制。
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Awaitable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CleanupTask:
    """清理任务定义"""
    callback: Callable[[], Awaitable[None]]
    priority: int  # 0-9, 0 最高优先级
    timeout: float  # 单个任务超时 (秒)
    name: str


class ShutdownCoordinator:
    def __init__(self, total_timeout: float = 30.0):
        self._tasks: List[CleanupTask] = []
        self._total_timeout = total_timeout
        self._is_shutting_down = False
        self._lock = asyncio.Lock()

    def register_cleanup(
        self,
        callback: Callable[[], Awaitable[None]],
        priority: int = 5,
        timeout: float = 5.0,
        name: Optional[str] = None
    ) -> None:
        """
        注册清理回调

        Raises:
            ValueError: 优先级不在 0-9 范围内
        """
        if not 0 <= priority <= 9:
            raise ValueError(f"Priority must be 0-9, got {priority}")

        name = name or callback.__name__
        self._tasks.append(CleanupTask(callback=callback, priority=priority, timeout=timeout, name=name))
        logger.debug(f"注册清理任务: {name} (优先级: {priority}, 超时: {timeout}s)")

    def is_shutting_down(self) -> bool:
        return self._is_shutting_down

    async def shutdown(self) -> bool:
        """
        执行优雅关闭，重复调用直接返回 True

        Returns:
            bool: 全部任务成功完成时为 True
        """
        async with self._lock:
            if self._is_shutting_down:
                logger.info("关闭流程已在进行中，忽略重复调用")
                return True
            self._is_shutting_down = True

        started = time.monotonic()
        logger.info(f"[SHUTDOWN] 开始优雅关闭 (总超时: {self._total_timeout}s, 任务数: {len(self._tasks)})")

        failures = 0
        for task in sorted(self._tasks, key=lambda t: t.priority):
            remaining = self._total_timeout - (time.monotonic() - started)
            if remaining <= 0:
                logger.warning(f"[SHUTDOWN] 总超时，跳过任务: {task.name}")
                failures += 1
                continue

            effective_timeout = min(task.timeout, remaining)
            try:
                await asyncio.wait_for(task.callback(), timeout=effective_timeout)
                logger.info(f"[SHUTDOWN] ✓ 清理完成: {task.name}")
            except asyncio.TimeoutError:
                logger.error(f"[SHUTDOWN] ✗ 清理超时: {task.name} ({effective_timeout:.1f}s)")
                failures += 1
            except Exception as e:
                logger.error(f"[SHUTDOWN] ✗ 清理失败: {task.name}, 错误: {e}", exc_info=True)
                failures += 1

        logger.info(f"[SHUTDOWN] 优雅关闭完成 (失败: {failures}, 耗时: {time.monotonic() - started:.2f}s)")
        return failures == 0


_global_coordinator: Optional[ShutdownCoordinator] = None


def get_shutdown_coordinator() -> ShutdownCoordinator:
    """获取全局关闭协调器单例"""
    global _global_coordinator
    if _global_coordinator is None:
        _global_coordinator = ShutdownCoordinator(total_timeout=30.0)
    return _global_coordinator
