"""
資料模型（SQLAlchemy ORM）

- UserProfile：使用者資料（身分由外部系統管理，這裡只讀寫配額欄位）
- Room：一場投票（一個房間、一組代碼、一位 admin）
- Vote：以 (room_id, voter_id) 為主鍵，每人每房最多一票
- ArchivedVote：重設投票時封存的投票副本，只供稽核
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from database import Base


# 房間固定的兩個選項；順序即為平手時的優先順序
VOTING_OPTIONS = ("Attend Class", "Bunk Class")

DEFAULT_TOPIC = "Undecided"
DEFAULT_LECTURE_TIME = "Not set"


def utcnow() -> datetime:
    """目前時間（naive UTC，與 SQLite 取回的值一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    JOINEE = "joinee"
    DEVELOPER = "developer"


class UserProfile(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    username = Column(String, nullable=False, default="Guest User")
    email = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.JOINEE)
    daily_vote_count = Column(Integer, nullable=False, default=0)
    last_quota_timestamp = Column(DateTime, nullable=True)

    rooms = relationship("Room", back_populates="owner")


class Room(Base):
    __tablename__ = "voting_rooms"

    id = Column(String, primary_key=True, default=new_id)
    code = Column(String(6), nullable=False, unique=True, index=True)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False, default="New Voting Room")
    description = Column(String, nullable=False, default="Vote on the next topic.")
    is_voting_open = Column(Boolean, nullable=False, default=True)
    topic = Column(String, nullable=False, default=DEFAULT_TOPIC)
    lecture_time = Column(String, nullable=False, default=DEFAULT_LECTURE_TIME)
    winner_announced = Column(Boolean, nullable=False, default=False)
    winner_option = Column(String, nullable=True)
    # 每次重設 +1，封存的投票以此區分是哪一場
    session_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    owner = relationship("UserProfile", back_populates="rooms")
    votes = relationship(
        "Vote",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Vote.timestamp",
    )
    archived_votes = relationship(
        "ArchivedVote",
        back_populates="room",
        cascade="all, delete-orphan",
    )

    @property
    def options(self) -> list:
        return list(VOTING_OPTIONS)


class Vote(Base):
    __tablename__ = "votes"

    room_id = Column(String, ForeignKey("voting_rooms.id"), primary_key=True)
    voter_id = Column(String, primary_key=True)
    vote_option = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    room = relationship("Room", back_populates="votes")

    @property
    def id(self) -> str:
        # 投票的識別碼就是投票者 ID
        return self.voter_id


class ArchivedVote(Base):
    __tablename__ = "archived_votes"

    room_id = Column(String, ForeignKey("voting_rooms.id"), primary_key=True)
    session_number = Column(Integer, primary_key=True)
    id = Column(String, primary_key=True)
    voter_id = Column(String, nullable=False)
    vote_option = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    archived_at = Column(DateTime, nullable=False, default=utcnow)

    room = relationship("Room", back_populates="archived_votes")
