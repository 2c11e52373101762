from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone
from typing import Optional

Base = declarative_base()


def utc_now_iso(ts: Optional[datetime] = None) -> str:
    """统一的时间戳格式 (UTC ISO8601，含微秒)，字符串排序即时间排序

    未带时区的 datetime 视为 UTC。
    """
    if ts is None:
        ts = datetime.now(timezone.utc)
    elif ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")
