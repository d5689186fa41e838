"""
Profile Manager：使用者資料與配額補充

身分驗證由外部系統負責，這裡只處理：
1. 第一次登入時建立使用者資料（預設 joinee）
2. 查詢今日配額使用狀況
3. 補充配額（模擬付款）
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
import logging

from models import UserProfile, UserRole, utcnow
from core import quota_tracker
from core.exceptions import ProfileNotFound
from core.locks import with_profile_lock
from database import transactional

logger = logging.getLogger(__name__)


class ProfileManager:

    @staticmethod
    @transactional
    def ensure_profile(
        db: Session,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        role: UserRole = UserRole.JOINEE,
        now: Optional[datetime] = None,
    ) -> UserProfile:
        """
        取得使用者資料，不存在就建立

        已存在的資料不會被覆寫（避免重新登入把 admin 變回 joinee）
        """
        profile = db.get(UserProfile, user_id)
        if profile:
            return profile

        profile = UserProfile(
            id=user_id,
            username=username or "Guest User",
            email=email,
            role=role,
            daily_vote_count=0,
            last_quota_timestamp=now or utcnow(),
        )
        db.add(profile)
        db.flush()

        logger.info(f"Created profile {user_id} with role {role.value}")
        return profile

    @staticmethod
    def get_profile(db: Session, user_id: str) -> UserProfile:
        profile = db.get(UserProfile, user_id)
        if not profile:
            raise ProfileNotFound(user_id)
        return profile

    @staticmethod
    @transactional
    def grant_quota(db: Session, user_id: str) -> UserProfile:
        """補充配額：今日計數歸零"""
        profile = with_profile_lock(user_id, db).first()
        if not profile:
            raise ProfileNotFound(user_id)

        profile.daily_vote_count = quota_tracker.grant(profile)

        logger.info(f"Granted vote starts to {user_id}")
        return profile
