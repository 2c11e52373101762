"""
测试全局 conftest.py

- 测试环境变量在导入任何业务模块之前设置
- 每个测试使用独立的内存 SQLite (StaticPool，单连接共享)
- FakeClock 替代 DeliveryLimiter 的时钟与 sleep，测试不真正等待
"""
import os
import sys
import asyncio
import tempfile
from pathlib import Path

# 确保项目根目录在 sys.path 最前面
_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

os.environ["APP_ENV"] = "testing"
os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("DB_PATH", str(Path(tempfile.gettempdir()) / "lesson_bot_test.db"))

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from core.config import Settings
from core.container import Container
from core.database import Database
from listeners.event_adapters import InboundCallback, InboundMessage
from repositories.media_repo import MediaRepository
from repositories.membership_repo import MembershipRepository
from services.delivery_limiter import DeliveryLimiter

BASE_TS = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def ts(seconds: int) -> datetime:
    """基准时间 + seconds 秒，便于构造有序的时间戳"""
    return BASE_TS + timedelta(seconds=seconds)


class FakeClock:
    """可注入 DeliveryLimiter 的假时钟：sleep 立即推进时间"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(engine=engine)
    await database.create_all()
    yield database
    await database.close()


@pytest.fixture
def media_repo(db):
    return MediaRepository(db)


@pytest.fixture
def membership_repo(db):
    return MembershipRepository(db)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def limiter(fake_clock):
    return DeliveryLimiter(global_gap=0.04, destination_gap=1.1, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, APP_ENV="testing", LOG_TO_FILE=False)


@pytest.fixture
def container(db, limiter, test_settings):
    return Container(db=db, limiter=limiter, settings=test_settings)


@pytest.fixture
def client():
    """Telethon 客户端替身"""
    mock = MagicMock()
    mock.send_message = AsyncMock()
    mock.forward_messages = AsyncMock()
    mock.edit_message = AsyncMock()
    return mock


def make_message(**overrides) -> InboundMessage:
    data = dict(
        original_event=MagicMock(),
        chat_id="-1001",
        chat_title="Algebra Group",
        is_group=True,
        is_private=False,
        sender_id="42",
        sender_is_bot=False,
        message_id=10,
    )
    data.update(overrides)
    return InboundMessage(**data)


def make_private_message(**overrides) -> InboundMessage:
    data = dict(chat_id="42", chat_title=None, is_group=False, is_private=True)
    data.update(overrides)
    return make_message(**data)


def make_callback(data: bytes, **overrides) -> InboundCallback:
    event = MagicMock()
    event.answer = AsyncMock()
    fields = dict(
        original_event=event,
        query_id="q-1",
        data=data,
        chat_id="-1001",
        sender_id="42",
        message_id=77,
        is_private=False,
    )
    fields.update(overrides)
    return InboundCallback(**fields)
