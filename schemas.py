"""
API Request / Response Schemas
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import UserRole


# ============ User ============

class ProfileCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    username: Optional[str] = None
    email: Optional[str] = None
    role: UserRole = UserRole.JOINEE


class ProfileResponse(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    role: UserRole
    daily_vote_count: int
    remaining_vote_starts: int


# ============ Room ============

class RoomCreate(BaseModel):
    owner_id: str = Field(..., min_length=1)


class RoomAction(BaseModel):
    """admin 對房間的操作（開關、重設、公布、刪除）"""
    user_id: str = Field(..., min_length=1)


class RoomDetailsUpdate(BaseModel):
    user_id: str = Field(..., min_length=1)
    topic: Optional[str] = Field(None, min_length=1)
    lecture_time: Optional[str] = Field(None, min_length=1)


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    owner_id: str
    name: str
    description: str
    is_voting_open: bool
    topic: str
    lecture_time: str
    winner_announced: bool
    winner_option: Optional[str] = None
    session_number: int
    created_at: datetime
    options: List[str]


class ResetResponse(BaseModel):
    room: RoomResponse
    archived_count: int
    remaining_vote_starts: int


class SeriesPointResponse(BaseModel):
    time: datetime
    counts: Dict[str, int]


class RoomStateResponse(BaseModel):
    """房間即時狀態：前端每次收到變更通知或輪詢時重新取得"""
    room: RoomResponse
    tally: Dict[str, int]
    total_votes: int
    series: List[SeriesPointResponse]


# ============ Vote ============

class VoteSubmit(BaseModel):
    voter_id: str = Field(..., min_length=1)
    vote_option: str


class VoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    room_id: str
    voter_id: str
    vote_option: str
    timestamp: datetime


# ============ Forecast ============

class OutcomePrediction(BaseModel):
    option: str
    probability: float = Field(..., ge=0)


class ForecastNormalizeRequest(BaseModel):
    predictions: List[OutcomePrediction]


class ForecastResponse(BaseModel):
    predictions: List[OutcomePrediction]


class ForecastSummaryResponse(BaseModel):
    voting_data: str


# ============ Common ============

class StatusResponse(BaseModel):
    status: str
