"""
並發控制工具

提供 Database-level 的鎖定機制，防止競態條件（Race Condition）

主要使用 PostgreSQL 的 SELECT ... FOR UPDATE 來實現悲觀鎖（Pessimistic Locking）
SQLite 不支援 FOR UPDATE，SQLAlchemy 會直接省略（SQLite 本身寫入即序列化）
"""
from sqlalchemy.orm import Session, Query

from models import Room, UserProfile


def with_room_lock(room_id: str, db: Session) -> Query:
    """
    鎖定一個 Room（行級鎖）

    使用場景：
    - 重設投票時（封存 + 清除期間不讓其他請求改動房間）

    範例：
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

    注意：
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
        - populate_existing：identity map 裡已有的物件也會用鎖定後讀到的資料覆寫
    """
    return db.query(Room).filter(
        Room.id == room_id
    ).with_for_update(nowait=False).populate_existing()


def with_profile_lock(user_id: str, db: Session) -> Query:
    """
    鎖定一位使用者的資料（行級鎖）

    使用場景：
    - 消耗配額時：同一位 admin 在兩個分頁同時建立房間，
      第二個請求會等第一個 commit 後才讀到新的計數

    返回：
        Query object（需要呼叫 .first() 取得結果）

    注意：
        - 同一個 session 先前未鎖定就讀過這筆資料時（例如權限檢查），
          populate_existing 會強制用鎖定後的最新計數覆寫，避免用到舊值
    """
    return db.query(UserProfile).filter(
        UserProfile.id == user_id
    ).with_for_update(nowait=False).populate_existing()
