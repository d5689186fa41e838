"""
Room API Endpoints

職責：
1. admin 建立 / 列出 / 刪除房間
2. 參與者透過代碼加入房間
3. 開關投票、修改主題、重設投票、公布結果
4. 房間即時狀態（票數統計 + 累積曲線），前端收到變更通知或輪詢時重新取得
5. 預測：產生給模型的摘要、正規化模型回傳的機率
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    RoomCreate,
    RoomAction,
    RoomDetailsUpdate,
    RoomResponse,
    RoomStateResponse,
    ResetResponse,
    SeriesPointResponse,
    StatusResponse,
    ForecastNormalizeRequest,
    ForecastResponse,
    ForecastSummaryResponse,
    OutcomePrediction,
)
from core.room_manager import RoomManager
from core.vote_ledger import VoteLedger
from core.winner_resolver import WinnerResolver
from core.exceptions import ClassVoteException
from services.forecast_service import build_voting_summary, normalize
from api.errors import as_http_exception

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


@router.post("", response_model=RoomResponse)
def create_room(data: RoomCreate, db: Session = Depends(get_db)):
    """
    建立房間（admin endpoint）

    消耗一次每日配額；已達上限 → 429 limit_reached
    """
    try:
        room = RoomManager.create_room(db, data.owner_id)
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=List[RoomResponse])
def list_rooms(owner_id: str = Query(...), db: Session = Depends(get_db)):
    """列出 admin 擁有的房間"""
    try:
        rooms = RoomManager.list_rooms_for_owner(db, owner_id)
        return [RoomResponse.model_validate(room) for room in rooms]

    except Exception as e:
        logger.error(f"Failed to list rooms: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/code/{code}", response_model=RoomResponse)
def get_room_by_code(code: str, db: Session = Depends(get_db)):
    """透過代碼找房間（參與者加入用，不分大小寫）"""
    try:
        room = RoomManager.get_room_by_code(db, code)
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to find room by code: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: str, db: Session = Depends(get_db)):
    try:
        room = RoomManager.get_room_by_id(db, room_id)
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/state", response_model=RoomStateResponse)
def get_room_state(room_id: str, db: Session = Depends(get_db)):
    """
    取得房間即時狀態

    返回：
        - room: 房間資訊（是否開放、是否已公布結果）
        - tally: 各選項票數（沒人投的選項為 0）
        - total_votes: 總票數
        - series: 累積票數曲線（每一票一個點）
    """
    try:
        room = RoomManager.get_room_by_id(db, room_id)
        votes = VoteLedger.list_votes(db, room_id)
        tally = VoteLedger.tally(votes, room.options)
        series = VoteLedger.cumulative_series(votes, room.options)

        return RoomStateResponse(
            room=RoomResponse.model_validate(room),
            tally=tally,
            total_votes=sum(tally.values()),
            series=[SeriesPointResponse(time=p.time, counts=p.counts) for p in series],
        )

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get room state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/toggle", response_model=RoomResponse)
def toggle_voting(room_id: str, data: RoomAction, db: Session = Depends(get_db)):
    """
    開啟 / 關閉投票（admin endpoint）

    效果：
    - is_voting_open 反轉
    - 已公布的結果一律清除
    """
    try:
        room = RoomManager.toggle_voting(db, room_id, data.user_id)
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to toggle voting: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{room_id}", response_model=RoomResponse)
def update_room_details(room_id: str, data: RoomDetailsUpdate, db: Session = Depends(get_db)):
    """修改主題 / 上課時間（admin endpoint）"""
    try:
        room = RoomManager.update_details(
            db, room_id, data.user_id, topic=data.topic, lecture_time=data.lecture_time
        )
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to update room details: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/reset", response_model=ResetResponse)
def reset_session(room_id: str, data: RoomAction, db: Session = Depends(get_db)):
    """
    重設投票（admin endpoint）

    效果：
    - 所有投票封存後清除
    - 消耗一次每日配額（沒有票也一樣）

    返回：
        - archived_count: 封存的票數
        - remaining_vote_starts: 今日剩餘次數
    """
    try:
        result = RoomManager.reset_session(db, room_id, data.user_id)
        return ResetResponse(
            room=RoomResponse.model_validate(result.room),
            archived_count=result.archived_count,
            remaining_vote_starts=result.remaining_starts,
        )

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to reset voting: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/announce", response_model=RoomResponse)
def announce_winner(room_id: str, data: RoomAction, db: Session = Depends(get_db)):
    """
    公布結果（admin endpoint）

    沒有任何投票 → 400 not_allowed
    平手時設定順序在前的選項勝出
    """
    try:
        room = WinnerResolver.announce(db, room_id, data.user_id)
        return RoomResponse.model_validate(room)

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to announce result: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{room_id}", response_model=StatusResponse)
def delete_room(room_id: str, user_id: str = Query(...), db: Session = Depends(get_db)):
    """刪除房間與所有投票（admin endpoint）"""
    try:
        RoomManager.delete_room(db, room_id, user_id)
        return StatusResponse(status="ok")

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to delete room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/forecast/summary", response_model=ForecastSummaryResponse)
def get_forecast_summary(room_id: str, db: Session = Depends(get_db)):
    """目前票數的文字摘要，交給外部預測模型使用"""
    try:
        room = RoomManager.get_room_by_id(db, room_id)
        tally = VoteLedger.tally(VoteLedger.list_votes(db, room_id), room.options)
        return ForecastSummaryResponse(voting_data=build_voting_summary(tally))

    except ClassVoteException as e:
        raise as_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to build forecast summary: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/forecast/normalize", response_model=ForecastResponse)
def normalize_forecast(room_id: str, data: ForecastNormalizeRequest, db: Session = Depends(get_db)):
    """
    正規化模型回傳的機率

    返回：
        同樣順序、同樣選項，機率加總為 100
    """
    try:
        RoomManager.get_room_by_id(db, room_id)
        normalized = normalize([(p.option, p.probability) for p in data.predictions])
        return ForecastResponse(
            predictions=[
                OutcomePrediction(option=option, probability=probability)
                for option, probability in normalized
            ]
        )

    except ClassVoteException as e:
        raise as_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"reason": "invalid_input", "message": str(e)})
    except Exception as e:
        logger.error(f"Failed to normalize forecast: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
