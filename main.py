from core.config import settings
from core.container import container
from core.bootstrap import Bootstrap, build_bot_client
from core.logging import setup_logging, log_startup, log_shutdown
from core.shutdown import get_shutdown_coordinator
from version import VERSION
import asyncio
import logging
import signal
import sys

# 设置日志配置
setup_logging()

logger = logging.getLogger(__name__)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> None:
    """SIGINT / SIGTERM 只负责置位 stop_event，真正的清理由 ShutdownCoordinator 执行"""

    def _signal_handler(sig, frame):
        logger.info(f"收到信号 {sig}，开始优雅关停…")
        loop.call_soon_threadsafe(stop_event.set)

    for s in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(s, _signal_handler)
        except (ValueError, OSError) as e:
            logger.warning(f"无法安装信号处理器 {s}: {e}")


async def main() -> int:
    settings.validate_required()
    bot_client = build_bot_client(settings)

    coordinator = get_shutdown_coordinator()
    stop_event = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), stop_event)

    await Bootstrap(bot_client, container, coordinator).run()
    log_startup("lesson-bot", VERSION, {"env": settings.APP_ENV, "db": settings.DB_PATH})

    disconnected = asyncio.ensure_future(bot_client.run_until_disconnected())
    stopping = asyncio.ensure_future(stop_event.wait())
    await asyncio.wait({disconnected, stopping}, return_when=asyncio.FIRST_COMPLETED)

    success = await coordinator.shutdown()
    for task in (disconnected, stopping):
        if not task.done():
            task.cancel()
    await asyncio.gather(disconnected, stopping, return_exceptions=True)

    log_shutdown("lesson-bot", {"success": success})
    return 0 if success else 1


def cli() -> None:
    """控制台入口 (lesson-bot)"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("正在关闭...")


if __name__ == "__main__":
    cli()
