"""
Vote API Endpoints

職責：
1. 參與者投票
2. 查詢自己的票
3. admin 移除參與者的票
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import VoteSubmit, VoteResponse, StatusResponse
from core.vote_ledger import VoteLedger
from core.exceptions import ClassVoteException, VoteNotFound
from api.errors import as_http_exception

router = APIRouter(prefix="/api/rooms", tags=["votes"])
logger = logging.getLogger(__name__)


@router.post("/{room_id}/votes", response_model=VoteResponse)
def cast_vote(room_id: str, vote_data: VoteSubmit, db: Session = Depends(get_db)):
    """
    投票

    前置條件：
    - 房間開放投票（否則 403 not_allowed）
    - 此人還沒投過（否則 409 already_acted）
    - 選項是房間的選項之一（否則 400 invalid_input）

    重複送出同一個請求不會產生第二票，第二次會得到 409
    """
    try:
        vote = VoteLedger.record_vote(db, room_id, vote_data.voter_id, vote_data.vote_option)
        return VoteResponse.model_validate(vote)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to cast vote: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/votes/{voter_id}", response_model=VoteResponse)
def get_vote(room_id: str, voter_id: str, db: Session = Depends(get_db)):
    """取得某位參與者在此房間的票（沒投過 → 404）"""
    try:
        vote = VoteLedger.get_vote(db, room_id, voter_id)
        if not vote:
            raise VoteNotFound(room_id, voter_id)
        return VoteResponse.model_validate(vote)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get vote: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{room_id}/votes/{voter_id}", response_model=StatusResponse)
def remove_vote(
    room_id: str,
    voter_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db)
):
    """
    移除參與者的票（admin endpoint）

    參數：
        user_id: 呼叫者（必須是房間的 admin）
    """
    try:
        VoteLedger.remove_vote(db, room_id, voter_id, user_id)
        return StatusResponse(status="ok")

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to remove vote: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
