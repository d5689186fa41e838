"""
權限檢查：只有房間擁有者（且角色是 admin）可以管理房間
"""
from sqlalchemy.orm import Session

from models import Room, UserProfile, UserRole
from core.exceptions import PermissionDenied, RoomNotFound
from core.locks import with_room_lock


def load_owned_room(db: Session, room_id: str, requester_id: str, lock: bool = False) -> Room:
    """
    取得房間並確認呼叫者是它的 admin

    參數：
        db: SQLAlchemy Session
        room_id: Room ID
        requester_id: 呼叫者的使用者 ID
        lock: 是否加行級鎖（需在 transaction 內）

    異常：
        RoomNotFound: Room 不存在
        PermissionDenied: 不是擁有者，或角色不是 admin
    """
    query = with_room_lock(room_id, db) if lock else db.query(Room).filter(Room.id == room_id)
    room = query.first()
    if not room:
        raise RoomNotFound(room_id)

    if room.owner_id != requester_id:
        raise PermissionDenied()

    owner = db.get(UserProfile, requester_id)
    if not owner or owner.role != UserRole.ADMIN:
        raise PermissionDenied()

    return room
