"""
Room Manager：管理 Room 的完整生命週期

職責：
1. 建立 Room（消耗一次每日配額）
2. 開關投票
3. 修改主題 / 上課時間
4. 重設投票（封存 + 清除，消耗一次每日配額）
5. 刪除 Room（連同所有投票）
6. 查詢 Room 資訊

原則：
- 配額檢查一律透過 quota_tracker（純函式），寫回由這裡在同一個 transaction 內完成
- 「扣配額」與「建立房間 / 清除投票」必須一起成功或一起失敗
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session
import logging

from models import Room, UserProfile, UserRole, utcnow
from core import quota_tracker
from core.access import load_owned_room
from core.locks import with_profile_lock
from core.vote_ledger import VoteLedger
from core.exceptions import (
    PermissionDenied,
    ProfileNotFound,
    QuotaExceeded,
    RoomCodeExhausted,
    RoomNotFound,
)
from services.naming_service import generate_room_code, normalize_room_code
from database import get_settings, transactional

logger = logging.getLogger(__name__)


@dataclass
class ResetResult:
    room: Room
    archived_count: int
    remaining_starts: int


def _load_admin_profile(db: Session, user_id: str) -> UserProfile:
    """取得並鎖定 admin 的使用者資料（配額計數在這筆資料上）"""
    profile = with_profile_lock(user_id, db).first()
    if not profile:
        raise ProfileNotFound(user_id)
    if profile.role != UserRole.ADMIN:
        raise PermissionDenied("Only admins can start a voting session.")
    return profile


def _spend_vote_start(profile: UserProfile, now: datetime) -> int:
    """消耗一次配額並寫回 profile（尚未 commit）"""
    try:
        new_count = quota_tracker.consume(profile, now)
    except QuotaExceeded as e:
        logger.warning(f"Vote start rejected for {profile.id}: daily limit {e.limit} reached")
        raise
    profile.daily_vote_count = new_count
    profile.last_quota_timestamp = now
    return new_count


class RoomManager:
    """Room 生命週期管理器"""

    @staticmethod
    def _unique_room_code(db: Session) -> str:
        """
        生成未被使用的房間代碼

        碰撞機率極低（34^6），但仍會檢查唯一性並重試，
        超過 settings.room_code_max_attempts 次就放棄
        """
        attempts = get_settings().room_code_max_attempts
        for _ in range(attempts):
            code = generate_room_code()
            if not db.query(Room).filter(Room.code == code).first():
                return code
            logger.warning(f"Room code collision detected, regenerating: {code}")
        raise RoomCodeExhausted(attempts)

    @staticmethod
    @transactional
    def create_room(db: Session, owner_id: str, now: Optional[datetime] = None) -> Room:
        """
        建立新房間

        流程：
        1. 取得並鎖定 admin 的使用者資料
        2. 消耗一次每日配額（超過上限 → QuotaExceeded）
        3. 生成唯一的房間代碼
        4. 建立 Room（開放投票、尚未公布結果、預設主題）

        參數：
            db: SQLAlchemy Session
            owner_id: admin 的使用者 ID
            now: 目前時間（測試用，預設 utcnow()）

        返回：
            新建立的 Room

        異常：
            ProfileNotFound / PermissionDenied / QuotaExceeded / RoomCodeExhausted

        注意：
            - 使用 @transactional：配額與房間一起 commit，任何一步失敗都 rollback
        """
        now = now or utcnow()

        # 1-2. 配額
        profile = _load_admin_profile(db, owner_id)
        new_count = _spend_vote_start(profile, now)

        # 3. 房間代碼
        code = RoomManager._unique_room_code(db)

        # 4. 建立 Room
        room = Room(
            code=code,
            owner_id=owner_id,
            is_voting_open=True,
            winner_announced=False,
            created_at=now,
        )
        db.add(room)
        db.flush()  # 取得 room.id

        logger.info(
            f"Created room {room.id} with code {code} for {owner_id} "
            f"({new_count}/{get_settings().vote_start_limit} vote starts used today)"
        )
        return room

    @staticmethod
    @transactional
    def toggle_voting(db: Session, room_id: str, requester_id: str) -> Room:
        """
        開啟 / 關閉投票

        不論開或關，之前公布的結果都會失效：
            winner_announced = False, winner_option = None
        """
        room = load_owned_room(db, room_id, requester_id)

        room.is_voting_open = not room.is_voting_open
        room.winner_announced = False
        room.winner_option = None

        logger.info(
            f"Voting {'opened' if room.is_voting_open else 'closed'} for room {room_id}"
        )
        return room

    @staticmethod
    @transactional
    def update_details(
        db: Session,
        room_id: str,
        requester_id: str,
        topic: Optional[str] = None,
        lecture_time: Optional[str] = None,
    ) -> Room:
        """修改主題 / 上課時間（不扣配額、不影響投票狀態）"""
        room = load_owned_room(db, room_id, requester_id)

        if topic is not None:
            room.topic = topic
        if lecture_time is not None:
            room.lecture_time = lecture_time

        logger.info(f"Updated details for room {room_id}: topic={room.topic!r}, lecture_time={room.lecture_time!r}")
        return room

    @staticmethod
    @transactional
    def reset_session(
        db: Session, room_id: str, requester_id: str, now: Optional[datetime] = None
    ) -> ResetResult:
        """
        重設投票：開始新的一場

        流程：
        1. 鎖定 Room 並確認權限
        2. 消耗一次每日配額（沒有票也照樣消耗）
        3. 封存並清除所有投票
        4. 清除已公布的結果，session_number + 1

        返回：
            ResetResult（封存票數、今日剩餘次數）

        異常：
            RoomNotFound / PermissionDenied / QuotaExceeded

        注意：
            - 配額、封存、清除在同一個 transaction：要嘛全部完成，要嘛完全沒動
            - 權限檢查已先讀過 profile，配額用的是鎖定後重新讀到的計數
        """
        now = now or utcnow()

        # 1. Room
        room = load_owned_room(db, room_id, requester_id, lock=True)

        # 2. 配額
        profile = _load_admin_profile(db, requester_id)
        _spend_vote_start(profile, now)

        # 3. 封存 + 清除
        archived = VoteLedger.archive_and_clear(db, room)

        # 4. 新的一場
        room.winner_announced = False
        room.winner_option = None
        room.session_number += 1

        remaining = quota_tracker.remaining(profile, now)
        logger.info(
            f"Reset room {room_id}: archived {len(archived)} votes, "
            f"{remaining} vote starts left today for {requester_id}"
        )
        return ResetResult(room=room, archived_count=len(archived), remaining_starts=remaining)

    @staticmethod
    @transactional
    def delete_room(db: Session, room_id: str, requester_id: str) -> None:
        """刪除房間（cascade 刪除所有有效與封存的投票）"""
        room = load_owned_room(db, room_id, requester_id)
        db.delete(room)
        logger.info(f"Deleted room {room_id}")

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """
        透過房間代碼取得 Room（參與者加入房間用）

        參數：
            db: SQLAlchemy Session
            code: 6 位房間代碼（不分大小寫，前後空白會去掉）

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.code == normalize_room_code(code)).first()
        if not room:
            raise RoomNotFound(f"with code {code}")
        return room

    @staticmethod
    def get_room_by_id(db: Session, room_id: str) -> Room:
        """
        透過 ID 取得 Room

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)
        return room

    @staticmethod
    def list_rooms_for_owner(db: Session, owner_id: str) -> List[Room]:
        """admin 擁有的所有房間，新的在前"""
        return (
            db.query(Room)
            .filter(Room.owner_id == owner_id)
            .order_by(Room.created_at.desc())
            .all()
        )
