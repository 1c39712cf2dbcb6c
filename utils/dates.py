from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from config.settings import settings


def local_now() -> datetime:
    """학교 기준 시간대(TIMEZONE)의 현재 시각"""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def local_today() -> date:
    return local_now().date()


def to_utc_naive(value: datetime) -> datetime:
    # DB DateTime 컬럼은 naive UTC 로 저장
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
