"""
出站调用限流器

所有发往 Telegram 的调用 (发消息/转发/回答回调/编辑键盘) 都经过 DeliveryLimiter.call:
- 全局节奏: 任意两次调用的开始时间间隔 >= global_gap (默认 40ms)
- 目标节奏: 同一目标 (chat/user) 严格 FIFO 串行，相邻两次开始间隔 >= destination_gap (默认 1100ms)
- 限流重试: 识别到 retry_after=N 时睡眠 N+1 秒，重新排队全局节奏后重试一次

前一个调用失败不会阻断同一目标后续调用的队列。
"""

import asyncio
import logging
import re
import time
from numbers import Real
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from telethon.errors import FloodWaitError
from telethon.tl.types import ReplyInlineMarkup

from core.context import trace_id_var
from core.exceptions import RateLimitedError, TransportError

logger = logging.getLogger(__name__)

_FLOOD_TEXT_RE = re.compile(
    r"(?:(?:FloodWait|Flood wait|A wait) (?:of|for) (\d+(?:\.\d+)?) seconds|retry after (\d+(?:\.\d+)?))",
    re.IGNORECASE,
)


def _as_seconds(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Real):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        try:
            seconds = float(value.strip())
        except ValueError:
            return None
        return seconds if seconds >= 0 else None
    return None


def _lookup(container: Any, name: str) -> Any:
    if container is None:
        return None
    if isinstance(container, dict):
        return container.get(name)
    return getattr(container, name, None)


def extract_retry_after(exc: BaseException) -> Optional[float]:
    """
    从各种形态的限流异常中提取 retry_after 秒数，无法识别时返回 None

    依次检查:
    1. Telethon FloodWaitError.seconds 或任意异常的 seconds / retry_after 属性
    2. 嵌套的 parameters / response.parameters / on.parameters 中的 retry_after
    3. 文本: "A wait of N seconds" / "FloodWait for N seconds" / 429 "Too Many Requests: retry after N"
    """
    if isinstance(exc, FloodWaitError):
        return _as_seconds(exc.seconds)

    for attr in ("seconds", "retry_after"):
        seconds = _as_seconds(getattr(exc, attr, None))
        if seconds is not None:
            return seconds

    for holder in (exc, _lookup(exc, "response"), _lookup(exc, "on")):
        params = _lookup(holder, "parameters")
        seconds = _as_seconds(_lookup(params, "retry_after"))
        if seconds is not None:
            return seconds

    texts = [str(exc)]
    for attr in ("description", "message"):
        value = getattr(exc, attr, None)
        if isinstance(value, str):
            texts.append(value)
    for text in texts:
        match = _FLOOD_TEXT_RE.search(text)
        if match:
            return _as_seconds(match.group(1) or match.group(2))

    return None


class ActivationGuard:
    """
    回调按钮去重集合

    check_and_mark 在同一事件循环内无 await，检查与插入是原子的。
    后台任务每 window 秒清空一次集合。
    """

    def __init__(self, window: float = 30.0, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.window = window
        self._sleep = sleep
        self._seen: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    def check_and_mark(self, activation_id) -> bool:
        """首次出现返回 True 并记录，重复返回 False"""
        key = str(activation_id)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def clear(self) -> None:
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)

    async def _sweep_loop(self) -> None:
        while True:
            await self._sleep(self.window)
            if self._seen:
                logger.debug(f"[ActivationGuard] 清理 {len(self._seen)} 条回调记录")
            self.clear()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._sweep_loop(), name="activation-guard-sweeper")
            logger.info(f"[ActivationGuard] 清理任务已启动，周期 {self.window}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class DeliveryLimiter:
    """Telegram 出站调用的全局 + 按目标限流器 (进程内单例，显式传递)"""

    _PRUNE_THRESHOLD = 512

    def __init__(
        self,
        global_gap: float = 0.04,
        destination_gap: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        activation_window: float = 30.0,
    ):
        self.global_gap = global_gap
        self.destination_gap = destination_gap
        self._clock = clock
        self._sleep = sleep

        self._global_lock = asyncio.Lock()
        self._global_last_start: Optional[float] = None
        self._destination_last_start: Dict[str, float] = {}
        # 每个目标队列的队尾；新调用等待它完成后才开始
        self._tails: Dict[str, asyncio.Future] = {}

        self.activations = ActivationGuard(window=activation_window, sleep=sleep)

    def pending(self, destination) -> bool:
        return str(destination) in self._tails

    async def call(self, destination, operation: str, func: Callable[[], Awaitable[Any]]) -> Any:
        """
        在限流约束下执行一次出站调用

        Raises:
            RateLimitedError: 重试一次后仍被限流
            TransportError: 其他任何失败
        """
        key = str(destination)
        loop = asyncio.get_running_loop()
        previous = self._tails.get(key)
        settled = loop.create_future()
        self._tails[key] = settled

        try:
            if previous is not None:
                # shield: 当前任务被取消时不影响排在后面的等待者
                await asyncio.shield(previous)
            await self._pace_destination(key)
            return await self._invoke(key, operation, func)
        finally:
            if previous is None or previous.done():
                self._release(key, settled)
            else:
                # 排队中被取消：前一个调用仍在执行，队尾要等它结束后才能放行
                previous.add_done_callback(lambda _: self._release(key, settled))

    def _release(self, key: str, settled: asyncio.Future) -> None:
        if not settled.done():
            settled.set_result(None)
        if self._tails.get(key) is settled:
            del self._tails[key]
        self._prune()

    async def _invoke(self, key: str, operation: str, func: Callable[[], Awaitable[Any]]) -> Any:
        cid = trace_id_var.get("-")
        try:
            return await self._attempt(key, func)
        except Exception as e:
            retry_after = extract_retry_after(e)
            if retry_after is None:
                logger.warning(f"[{cid}] [Delivery] {operation} -> {key} 失败: {e}")
                raise TransportError(str(e), operation=operation, destination=key) from e
            logger.warning(f"[{cid}] [Delivery] {operation} -> {key} 触发限流，{retry_after + 1:.0f}s 后重试")

        await self._sleep(retry_after + 1)
        await self._pace_destination(key)
        try:
            return await self._attempt(key, func)
        except Exception as e:
            again = extract_retry_after(e)
            if again is not None:
                logger.error(f"[{cid}] [Delivery] {operation} -> {key} 重试后仍被限流 (retry_after={again})")
                raise RateLimitedError(str(e), retry_after=again, operation=operation, destination=key) from e
            logger.warning(f"[{cid}] [Delivery] {operation} -> {key} 重试失败: {e}")
            raise TransportError(str(e), operation=operation, destination=key) from e

    async def _attempt(self, key: str, func: Callable[[], Awaitable[Any]]) -> Any:
        await self._pace_global()
        self._destination_last_start[key] = self._clock()
        return await func()

    async def _pace_global(self) -> None:
        async with self._global_lock:
            if self._global_last_start is not None:
                wait = self._global_last_start + self.global_gap - self._clock()
                if wait > 0:
                    await self._sleep(wait)
            self._global_last_start = self._clock()

    async def _pace_destination(self, key: str) -> None:
        last = self._destination_last_start.get(key)
        if last is None:
            return
        wait = last + self.destination_gap - self._clock()
        if wait > 0:
            await self._sleep(wait)

    def _prune(self) -> None:
        if len(self._destination_last_start) < self._PRUNE_THRESHOLD:
            return
        horizon = self._clock() - self.destination_gap
        stale = [
            k for k, started in self._destination_last_start.items()
            if started < horizon and k not in self._tails
        ]
        for k in stale:
            del self._destination_last_start[k]

    # ---- Telegram 调用封装 ----

    async def send_message(self, client, destination, text: str, **kwargs) -> Any:
        return await self.call(destination, "SendMsg", lambda: client.send_message(int(destination), text, **kwargs))

    async def forward(self, client, destination, from_chat, message_id: int) -> Any:
        return await self.call(
            destination,
            "Forward",
            lambda: client.forward_messages(int(destination), int(message_id), from_peer=int(from_chat)),
        )

    async def answer(self, event, destination, message: Optional[str] = None, **kwargs) -> Any:
        return await self.call(destination, "AnswerCb", lambda: event.answer(message, **kwargs))

    async def clear_buttons(self, client, chat_id, message_id: int) -> Any:
        """移除消息的内联键盘"""
        return await self.call(
            chat_id,
            "EditMarkup",
            lambda: client.edit_message(int(chat_id), int(message_id), buttons=ReplyInlineMarkup(rows=[])),
        )
