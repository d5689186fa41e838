"""
Winner Resolver：計算並公布勝出選項

平手規則：
    設定順序中排在前面的選項勝出（依序掃描，只有「嚴格大於」才換人）
    例：{Attend Class: 2, Bunk Class: 2}，順序 [Attend, Bunk] → Attend Class
    不是字母順序，也不是看誰最後一票
"""
from typing import Mapping, Sequence

from sqlalchemy.orm import Session
import logging

from models import Room
from core.access import load_owned_room
from core.exceptions import NoVotesCast
from core.vote_ledger import VoteLedger
from database import transactional

logger = logging.getLogger(__name__)


def resolve_winner(tally: Mapping[str, int], options: Sequence[str]) -> str:
    """
    從統計結果選出勝出選項

    參數：
        tally: 選項 → 票數
        options: 房間設定的選項（決定平手順序）

    返回：
        勝出的選項名稱

    異常：
        NoVotesCast: 所有票數加總為 0
    """
    if sum(tally.values()) <= 0:
        raise NoVotesCast()

    winner = options[0]
    for option in options[1:]:
        if tally.get(option, 0) > tally.get(winner, 0):
            winner = option
    return winner


class WinnerResolver:
    """公布結果"""

    @staticmethod
    @transactional
    def announce(db: Session, room_id: str, requester_id: str) -> Room:
        """
        公布房間的勝出選項

        前置條件：
        1. Room 必須存在
        2. 呼叫者必須是房間擁有者
        3. 至少有一票

        效果：
            winner_announced = True, winner_option = 勝出選項
            重複呼叫（票數沒變）結果相同

        異常：
            RoomNotFound / PermissionDenied / NoVotesCast（不做任何變更）
        """
        room = load_owned_room(db, room_id, requester_id)

        votes = VoteLedger.list_votes(db, room_id)
        tally = VoteLedger.tally(votes, room.options)
        winner = resolve_winner(tally, room.options)

        room.winner_announced = True
        room.winner_option = winner

        logger.info(f"Room {room_id} announced winner '{winner}' with tally {tally}")
        return room
