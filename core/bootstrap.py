import asyncio
from telethon import TelegramClient
from telethon.tl.functions.bots import SetBotCommandsRequest
from telethon.tl.types import BotCommandScopeDefault

from core.config import settings
from core.container import Container
from core.shutdown import ShutdownCoordinator, get_shutdown_coordinator
from core.logging import get_logger
from listeners import setup_listeners

logger = get_logger(__name__)


def build_bot_client(cfg=settings) -> TelegramClient:
    """
    创建机器人客户端

    flood_sleep_threshold=0: FloodWait 一律抛给 DeliveryLimiter，由其按 retry_after+1 重试一次；
    request_retries=1: 关闭 Telethon 自身的重复请求。
    """
    cfg.SESSION_DIR.mkdir(parents=True, exist_ok=True)
    return TelegramClient(
        str(cfg.SESSION_DIR / cfg.BOT_SESSION_NAME),
        cfg.API_ID,
        cfg.API_HASH,
        flood_sleep_threshold=0,
        request_retries=1,
    )


class Bootstrap:
    """系统引导程序"""

    def __init__(self, bot_client: TelegramClient, container: Container, coordinator: ShutdownCoordinator = None):
        self.bot_client = bot_client
        self.container = container
        self.coordinator = coordinator or get_shutdown_coordinator()

    async def run(self) -> None:
        """执行完整的系统启动序列"""
        logger.info("🚀 正在启动系统引导序列...")

        # 1. 数据库
        await self._init_db_tables()

        # 2. Telegram 客户端连接
        await self._start_client()

        # 3. 命令注册与监听器
        await self._register_commands()
        self.container.init_with_client(self.bot_client)
        await setup_listeners(self.bot_client, self.container)

        # 4. 后台任务
        await self.container.start_all()

        # 5. 注册关闭钩子
        self._register_shutdown_hooks()

        logger.info("✅ 引导序列完成。系统现已运行。")

    async def _init_db_tables(self) -> None:
        logger.info("正在初始化数据库表...")
        await self.container.db.create_all()

    async def _start_client(self) -> None:
        logger.info("正在连接 Telegram 客户端...")
        await self.bot_client.start(bot_token=settings.BOT_TOKEN)
        me_bot = await self.bot_client.get_me()
        logger.info(f'机器人客户端已启动: {me_bot.first_name} (@{me_bot.username})')

    async def _register_commands(self) -> None:
        from handlers.bot_commands_list import BOT_COMMANDS
        try:
            await self.bot_client(SetBotCommandsRequest(
                scope=BotCommandScopeDefault(),
                lang_code='',
                commands=BOT_COMMANDS
            ))
            logger.info(f"已成功注册 {len(BOT_COMMANDS)} 个 Bot 命令")
        except Exception as e:
            logger.warning(f"注册 Bot 命令失败: {e}")

    def _register_shutdown_hooks(self) -> None:
        # Priority 1: 停止后台任务
        self.coordinator.register_cleanup(self.container.shutdown, priority=1, timeout=5.0, name="container_shutdown")

        # Priority 2: 断开客户端
        async def _disconnect_client() -> None:
            if self.bot_client.is_connected():
                try:
                    await asyncio.wait_for(self.bot_client.disconnect(), timeout=4.0)
                    logger.info("Bot 客户端已安全断开")
                except asyncio.TimeoutError:
                    logger.warning("Bot 客户端断开超时 (4s)，强制跳过")

        self.coordinator.register_cleanup(_disconnect_client, priority=2, timeout=5.0, name="telegram_client")

        # Priority 3: 关闭数据库
        self.coordinator.register_cleanup(self.container.db.close, priority=3, timeout=5.0, name="database")
