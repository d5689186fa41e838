"""
業務異常 → HTTP 錯誤

detail 固定是 {"reason": ..., "message": ...}：
- reason 讓前端決定要顯示哪一種提示（已經做過 / 目前不允許 / 已達上限）
- message 可以直接顯示給使用者
"""
from fastapi import HTTPException

from core.exceptions import (
    AlreadyVoted,
    ClassVoteException,
    InvalidOption,
    NoVotesCast,
    PermissionDenied,
    ProfileNotFound,
    QuotaExceeded,
    RoomCodeExhausted,
    RoomNotFound,
    VoteNotFound,
    VotingClosed,
)

STATUS_CODES = {
    QuotaExceeded: 429,
    AlreadyVoted: 409,
    VotingClosed: 403,
    PermissionDenied: 403,
    InvalidOption: 400,
    NoVotesCast: 400,
    RoomNotFound: 404,
    VoteNotFound: 404,
    ProfileNotFound: 404,
    RoomCodeExhausted: 503,
}


def as_http_exception(e: ClassVoteException) -> HTTPException:
    return HTTPException(
        status_code=STATUS_CODES.get(type(e), 400),
        detail={"reason": e.reason, "message": str(e)},
    )
