from core.config import settings as default_settings
from core.database import Database
from repositories.media_repo import MediaRepository
from repositories.membership_repo import MembershipRepository
from services.delivery_limiter import DeliveryLimiter
from services.indexer_service import MediaIndexer
from services.membership_service import MembershipTracker
from services.menu_service import MenuPaginator
from services.resolver_service import QueryResolver
from ui.menu_renderer import MenuRenderer
from ui.renderers.search_renderer import SearchRenderer
import logging

logger = logging.getLogger(__name__)


class Container:
    """依赖容器：持有数据库、仓库、限流器与全部业务服务 (进程内单例)"""

    def __init__(self, db: Database = None, limiter: DeliveryLimiter = None, settings=None):
        self.settings = settings or default_settings
        cfg = self.settings

        self.db = db or Database(cfg.database_url, echo=cfg.DB_ECHO, timeout=cfg.DB_TIMEOUT)

        # 仓库 (复用统一的 db 实例)
        self.media_repo = MediaRepository(self.db, fuzzy_limit=cfg.SEARCH_FUZZY_LIMIT)
        self.membership_repo = MembershipRepository(self.db)
        logger.info("Repositories initialized")

        # 出站限流器：所有 Telegram 调用的唯一出口
        self.limiter = limiter or DeliveryLimiter(
            global_gap=cfg.DELIVERY_GLOBAL_GAP_MS / 1000,
            destination_gap=cfg.DELIVERY_DESTINATION_GAP_MS / 1000,
            activation_window=cfg.CALLBACK_DEDUP_WINDOW,
        )

        self.membership_tracker = MembershipTracker(self.membership_repo)
        self.indexer = MediaIndexer(self.media_repo)
        self.resolver = QueryResolver(
            self.media_repo,
            self.membership_repo,
            fuzzy_limit=cfg.SEARCH_FUZZY_LIMIT,
            pool_cap=cfg.SEARCH_FUZZY_POOL_CAP,
            candidates_max=cfg.SEARCH_CANDIDATES_MAX,
        )
        self.paginator = MenuPaginator(self.media_repo, page_size=cfg.MENU_PAGE_SIZE)
        self.menu_renderer = MenuRenderer(label_max=cfg.MENU_LABEL_MAX, menu_button_text=cfg.MENU_BUTTON_LABEL)
        self.search_renderer = SearchRenderer()
        logger.info("Services initialized")

        self.bot_client = None
        self.bot_username = None

    def init_with_client(self, bot_client):
        self.bot_client = bot_client

    async def start_all(self):
        """启动后台任务 (回调去重集合的定期清理)"""
        if self.bot_client is None:
            raise RuntimeError("Client not initialized. Call init_with_client() first.")
        self.limiter.activations.start()
        logger.info("✅ Background services started")

    async def shutdown(self):
        logger.info("🛑 Stopping services...")
        await self.limiter.activations.stop()
        logger.info("✅ Services stopped")


container = Container()
