"""
Vote Ledger：投票紀錄

職責：
1. 投票（每人每房一票）
2. 統計各選項票數
3. 產生累積票數曲線（給即時折線圖用）
4. 刪除單一投票（admin 管理）
5. 重設時封存並清除所有投票

一票的主鍵是 (room_id, voter_id)：
- 重複送出同一個請求只會撞到同一筆資料，不會變成兩票
- 不同投票者的寫入永遠不會互相衝突
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from models import ArchivedVote, Room, Vote, utcnow
from core.exceptions import (
    AlreadyVoted,
    InvalidOption,
    RoomNotFound,
    VoteNotFound,
    VotingClosed,
)
from core.access import load_owned_room
from database import transactional

logger = logging.getLogger(__name__)


@dataclass
class SeriesPoint:
    """累積曲線上的一個點：某一票進來之後，各選項的累積票數"""
    time: datetime
    counts: Dict[str, int] = field(default_factory=dict)


class VoteLedger:
    """投票紀錄管理器"""

    @staticmethod
    def cast(
        room: Room,
        voter_id: str,
        option: str,
        existing_vote: Optional[Vote],
        now: datetime,
    ) -> Vote:
        """
        檢查並建立一張新票（不寫資料庫）

        檢查順序：
        1. 房間必須開放投票 → 否則 VotingClosed
        2. 此人在此房間還沒投過 → 否則 AlreadyVoted
        3. 選項必須是房間設定的選項之一 → 否則 InvalidOption

        返回：
            尚未加入 session 的 Vote（timestamp = now）
        """
        if not room.is_voting_open:
            raise VotingClosed(room.id)

        if existing_vote is not None:
            raise AlreadyVoted(room.id, voter_id)

        if option not in room.options:
            raise InvalidOption(option, room.options)

        return Vote(
            room_id=room.id,
            voter_id=voter_id,
            vote_option=option,
            timestamp=now,
        )

    @staticmethod
    @transactional
    def record_vote(
        db: Session,
        room_id: str,
        voter_id: str,
        option: str,
        now: Optional[datetime] = None,
    ) -> Vote:
        """
        投票（寫入資料庫）

        異常：
            RoomNotFound / VotingClosed / AlreadyVoted / InvalidOption

        注意：
            - 兩個相同投票者的請求同時進來時，後到的那個會在 insert 時撞到主鍵，
              同樣回報 AlreadyVoted
        """
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)

        existing = db.get(Vote, (room_id, voter_id))
        vote = VoteLedger.cast(room, voter_id, option, existing, now or utcnow())

        db.add(vote)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise AlreadyVoted(room_id, voter_id)

        logger.info(f"Voter {voter_id} voted '{option}' in room {room_id}")
        return vote

    @staticmethod
    def get_vote(db: Session, room_id: str, voter_id: str) -> Optional[Vote]:
        """取得某人在某房間的票（沒投過則為 None）"""
        return db.get(Vote, (room_id, voter_id))

    @staticmethod
    def list_votes(db: Session, room_id: str) -> List[Vote]:
        """房間內所有有效投票，依時間排序"""
        return (
            db.query(Vote)
            .filter(Vote.room_id == room_id)
            .order_by(Vote.timestamp, Vote.voter_id)
            .all()
        )

    @staticmethod
    def tally(votes: Sequence[Vote], options: Sequence[str]) -> Dict[str, int]:
        """
        統計各選項票數

        每個設定的選項都會出現在結果中（沒人投就是 0），
        順序與設定一致；不在設定內的選項不計入
        """
        counts = {option: 0 for option in options}
        for vote in votes:
            if vote.vote_option in counts:
                counts[vote.vote_option] += 1
        return counts

    @staticmethod
    def cumulative_series(
        votes: Sequence[Vote], options: Sequence[str]
    ) -> List[SeriesPoint]:
        """
        累積票數曲線

        規則：
        - 依 timestamp 排序（sorted 是穩定排序，同時間保持原順序）
        - 每一票產生一個點，記錄到這一票為止各選項的累積票數
        - 每個選項的累積數只增不減

        範例：
            A(10:00), B(10:01), A(10:02)
            → [10:00 {A:1, B:0}], [10:01 {A:1, B:1}], [10:02 {A:2, B:1}]
        """
        running = {option: 0 for option in options}
        series: List[SeriesPoint] = []

        for vote in sorted(votes, key=lambda v: v.timestamp):
            if vote.vote_option in running:
                running[vote.vote_option] += 1
            series.append(SeriesPoint(time=vote.timestamp, counts=dict(running)))

        return series

    @staticmethod
    @transactional
    def remove_vote(db: Session, room_id: str, voter_id: str, requester_id: str) -> None:
        """
        刪除一張票（admin 移除參與者）

        異常：
            RoomNotFound: 房間不存在
            PermissionDenied: 不是房間的 admin
            VoteNotFound: 這個人沒有投票
        """
        load_owned_room(db, room_id, requester_id)

        vote = db.get(Vote, (room_id, voter_id))
        if not vote:
            raise VoteNotFound(room_id, voter_id)

        db.delete(vote)
        logger.info(f"Removed vote of {voter_id} from room {room_id}")

    @staticmethod
    def archive_and_clear(db: Session, room: Room) -> List[ArchivedVote]:
        """
        封存並清除房間內所有投票

        流程：
        1. 每一票原封不動複製到 archived_votes（標上目前的 session_number）
        2. 刪除所有有效投票

        注意：
            - 只 flush 不 commit，必須在外層 transaction 內呼叫
              （要嘛全部封存且清除，要嘛完全沒動）
            - 沒有任何投票時什麼都不做，回傳空 list
        """
        votes = VoteLedger.list_votes(db, room.id)

        archived = []
        for vote in votes:
            copy = ArchivedVote(
                room_id=vote.room_id,
                session_number=room.session_number,
                id=vote.id,
                voter_id=vote.voter_id,
                vote_option=vote.vote_option,
                timestamp=vote.timestamp,
            )
            db.add(copy)
            db.delete(vote)
            archived.append(copy)

        db.flush()
        return archived
