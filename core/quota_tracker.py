"""
QuotaTracker：每位 admin 每日可開始的投票場次

「開始投票場次」= 建立房間 或 重設房間投票。

純計算邏輯，不寫資料庫：
- 只讀 profile 的 daily_vote_count / last_quota_timestamp
- 回傳新的計數，由呼叫者在同一個 transaction 內寫回
  （連同 last_quota_timestamp = now）

換日規則：
    last_quota_timestamp 不在今天 → 有效計數視為 0
    不需要在午夜主動歸零，下次消耗時才寫回
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from core.exceptions import QuotaExceeded
from database import get_settings


def _calendar_day(moment: datetime):
    """換算成設定時區的日期（naive datetime 視為 UTC）"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(get_settings().quota_timezone)).date()


def _resolve_limit(limit: Optional[int]) -> int:
    return get_settings().vote_start_limit if limit is None else limit


def current_count(profile, now: datetime) -> int:
    """
    取得今日有效的已使用次數

    參數：
        profile: 具有 daily_vote_count / last_quota_timestamp 的物件
        now: 目前時間

    返回：
        今天已使用的次數；上次使用不是今天則為 0
    """
    last = profile.last_quota_timestamp
    if last is None or _calendar_day(last) != _calendar_day(now):
        return 0
    return profile.daily_vote_count or 0


def remaining(profile, now: datetime, limit: Optional[int] = None) -> int:
    """今天還剩幾次"""
    return max(_resolve_limit(limit) - current_count(profile, now), 0)


def consume(profile, now: datetime, limit: Optional[int] = None) -> int:
    """
    嘗試消耗一次配額

    參數：
        profile: 使用者資料
        now: 目前時間
        limit: 每日上限（預設使用 settings.vote_start_limit）

    返回：
        消耗後的新計數（呼叫者負責寫回）

    異常：
        QuotaExceeded: 有效計數已達上限（不做任何變更）

    範例（limit=3）：
        有效計數 0, 1, 2 → 回傳 1, 2, 3
        有效計數 3 → QuotaExceeded
    """
    limit = _resolve_limit(limit)
    count = current_count(profile, now)
    if count >= limit:
        raise QuotaExceeded(limit)
    return count + 1


def grant(profile) -> int:
    """補充配額（模擬付款）：計數歸零，呼叫者負責寫回"""
    return 0
