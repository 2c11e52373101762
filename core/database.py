from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging
import os

logger = logging.getLogger(__name__)


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """每个新连接都启用 WAL，WAL 对 SQLite 并发读写至关重要"""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")  # 5秒等待
    except Exception as e:
        logger.error(f"[Database] 设置 SQLite PRAGMA 失败: {e}")
    finally:
        cursor.close()


class Database:
    def __init__(self, db_url: Optional[str] = None, engine: Optional[AsyncEngine] = None, echo: bool = False, timeout: int = 30) -> None:
        logger.info(f"[Database] 初始化数据库连接，模式={'共享引擎' if engine else '新建引擎'}")

        if engine:
            # 模式 A: 使用传入的现有引擎 (测试或共享连接池)
            self.engine = engine
            logger.info(f"[Database] 使用共享引擎: {engine.url}")
        elif db_url:
            # 自动修正 SQLite URL 以使用 aiosqlite 驱动
            if db_url.startswith('sqlite://') and 'aiosqlite' not in db_url:
                db_url = db_url.replace('sqlite://', 'sqlite+aiosqlite://')
                logger.info(f"[Database] 修正SQLite URL: {db_url}")

            connect_args = {"timeout": timeout}
            if 'sqlite' in db_url:
                connect_args["check_same_thread"] = False

            self.engine = create_async_engine(db_url, echo=echo, connect_args=connect_args)

            if 'sqlite' in db_url:
                db_path = db_url.replace('sqlite+aiosqlite:///', '')
                if not os.path.isabs(db_path):
                    db_path = os.path.abspath(db_path)
                logger.info(f"[Database] SQLite数据库文件路径: {db_path}")
                # 对于 AsyncEngine，需要监听 sync_engine
                event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragma)

            logger.info(f"[Database] 创建新引擎: {db_url} (已配置 WAL)")
        else:
            raise ValueError("Must provide either db_url or engine")

        self.session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession
        )
        logger.info(f"[Database] 会话工厂已初始化")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session = self.session_factory()
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception as e:
            if session.in_transaction():
                await session.rollback()
                logger.error(f"[Database] 事务回滚: {id(session)}，错误={e}")
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """创建所有数据表 (幂等)"""
        from models.base import Base
        import models  # noqa: F401  注册全部模型

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"[Database] 数据表已就绪: {sorted(Base.metadata.tables)}")

    async def close(self) -> None:
        logger.info(f"[Database] 关闭数据库引擎")
        await self.engine.dispose()
        logger.info(f"[Database] 数据库引擎已关闭")
