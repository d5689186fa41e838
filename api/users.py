"""
User API Endpoints

職責：
1. 建立 / 取得使用者資料
2. 補充每日配額（模擬付款）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import UserProfile, utcnow
from schemas import ProfileCreate, ProfileResponse
from core import quota_tracker
from core.profile_manager import ProfileManager
from core.exceptions import ClassVoteException
from api.errors import as_http_exception

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


def _profile_response(profile: UserProfile) -> ProfileResponse:
    now = utcnow()
    return ProfileResponse(
        id=profile.id,
        username=profile.username,
        email=profile.email,
        role=profile.role,
        daily_vote_count=quota_tracker.current_count(profile, now),
        remaining_vote_starts=quota_tracker.remaining(profile, now),
    )


@router.post("", response_model=ProfileResponse)
def ensure_profile(data: ProfileCreate, db: Session = Depends(get_db)):
    """
    建立使用者資料（已存在則直接返回）

    登入後由前端呼叫一次；角色預設 joinee
    """
    try:
        profile = ProfileManager.ensure_profile(
            db, data.user_id, username=data.username, email=data.email, role=data.role
        )
        return _profile_response(profile)

    except Exception as e:
        logger.error(f"Failed to create profile: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    """
    取得使用者資料

    返回：
        - daily_vote_count: 今日有效的已使用次數（換日後為 0）
        - remaining_vote_starts: 今日剩餘次數
    """
    try:
        profile = ProfileManager.get_profile(db, user_id)
        return _profile_response(profile)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get profile: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{user_id}/quota/grant", response_model=ProfileResponse)
def grant_quota(user_id: str, db: Session = Depends(get_db)):
    """補充配額（模擬付款成功）"""
    try:
        profile = ProfileManager.grant_quota(db, user_id)
        return _profile_response(profile)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to grant quota: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
