from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional, List, Any, Union
from pathlib import Path

import logging

# 设置日志
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """应用配置类，使用Pydantic v2实现类型安全的配置管理"""

    # === 基础配置 ===
    APP_ENV: str = Field(
        default="development",
        description="应用环境: development, testing, production"
    )
    DEBUG: bool = Field(
        default=False,
        description="是否启用调试模式"
    )

    # === 项目路径配置 ===
    BASE_DIR: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent.parent.parent,
        description="项目根目录"
    )
    SESSION_DIR: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "sessions",
        description="会话文件存储目录"
    )
    LOG_DIR: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "logs",
        description="日志文件存储目录"
    )
    DB_DIR: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "db",
        description="数据库文件存储目录"
    )

    # === 日志配置 ===
    LOG_LEVEL: str = Field(
        default="INFO",
        description="日志级别: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    LOG_FORMAT: str = Field(default="text")
    LOG_INCLUDE_TRACEBACK: bool = Field(default=False)
    LOG_COLOR: bool = Field(default=True)
    LOG_MAX_BYTES: int = Field(default=10 * 1024 * 1024)
    LOG_BACKUP_COUNT: int = Field(default=5)
    LOG_TO_FILE: bool = Field(default=True)

    LOG_MUTE_LOGGERS: Union[List[str], str] = Field(default=[])
    LOG_LEVEL_OVERRIDES: str = Field(default="")

    TELETHON_LOG_LEVEL: str = Field(
        default="WARNING",
        description="Telethon 库的日志级别"
    )

    # === 数据库配置 ===
    DB_PATH: str = Field(
        default="db/lessons.db",
        description="SQLite 数据库文件相对路径"
    )
    DB_ECHO: bool = Field(
        default=False,
        description="是否打印SQL语句"
    )
    DB_TIMEOUT: int = Field(
        default=30,
        description="SQLite 锁等待超时 (秒)"
    )

    # === Telegram 配置 ===
    API_ID: Optional[int] = Field(
        default=None,
        description="Telegram API ID"
    )
    API_HASH: Optional[str] = Field(
        default=None,
        description="Telegram API Hash"
    )
    BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="BotFather 颁发的机器人 Token"
    )
    BOT_SESSION_NAME: str = Field(
        default="bot",
        description="机器人会话文件名 (位于 SESSION_DIR 下)"
    )

    # === 发送限流配置 ===
    DELIVERY_GLOBAL_GAP_MS: int = Field(
        default=40,
        description="全局任意两次出站调用之间的最小间隔 (毫秒)，约 25 次/秒"
    )
    DELIVERY_DESTINATION_GAP_MS: int = Field(
        default=1100,
        description="同一目标会话连续两次调用之间的最小间隔 (毫秒)"
    )

    # === 搜索配置 ===
    SEARCH_FUZZY_LIMIT: int = Field(
        default=5,
        description="模糊搜索每个群组最多返回条数"
    )
    SEARCH_FUZZY_POOL_CAP: int = Field(
        default=6,
        description="跨群组模糊搜索累计达到该数量后停止继续查询"
    )
    SEARCH_CANDIDATES_MAX: int = Field(
        default=10,
        description="歧义结果最多展示条数"
    )
    SEARCH_SILENT_GROUP_MISS: bool = Field(
        default=True,
        description="群组内搜索无结果时是否保持静默"
    )

    # === 菜单配置 ===
    MENU_PAGE_SIZE: int = Field(
        default=8,
        description="课程菜单每页条数"
    )
    MENU_BUTTON_LABEL: str = Field(
        default="📚 Darslar",
        description="唤起课程菜单的键盘按钮文本"
    )
    MENU_LABEL_MAX: int = Field(
        default=48,
        description="菜单按钮文本最大长度"
    )
    CALLBACK_DEDUP_WINDOW: int = Field(
        default=30,
        description="按钮回调去重记录的清理周期 (秒)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=False,  # 允许在运行时修改配置
        title="应用配置",
    )

    @field_validator("LOG_MUTE_LOGGERS", mode="before")
    @classmethod
    def parse_list_fields(cls, v: Any) -> List[Any]:
        if isinstance(v, str):
            import json
            try:
                # 尝试 JSON 解析
                return list(json.loads(v))
            except json.JSONDecodeError:
                # 逗号分隔回退
                return [t.strip() for t in v.split(",") if t.strip()]
        return list(v)

    @property
    def database_url(self) -> str:
        """根据 DB_PATH 生成 aiosqlite 连接串，并确保目录存在"""
        db_path = Path(self.DB_PATH)
        if not db_path.is_absolute():
            db_path = self.BASE_DIR / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{db_path.as_posix()}"

    def validate_required(self) -> None:
        """验证极其重要的配置项，若缺失则系统无法基本运行"""
        missing = []
        if not self.API_ID:
            missing.append("API_ID")
        if not self.API_HASH:
            missing.append("API_HASH")
        if not self.BOT_TOKEN:
            missing.append("BOT_TOKEN")

        if missing:
            logger.error(
                f"缺少核心环境变量: {', '.join(missing)}。请在 .env 中配置后重新启动。"
            )
            if self.APP_ENV == "production":
                raise SystemExit(1)
            else:
                logger.warning("当前非生产环境，尝试降级启动...")


# 单例模式获取配置 - 使用lru_cache确保全局只有一个实例
@lru_cache()
def get_settings() -> Settings:
    """获取配置实例，使用lru_cache实现单例模式"""
    return Settings()

# 全局配置实例，方便直接导入使用
settings = get_settings()
