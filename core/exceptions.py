"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

每個異常都帶有：
- message：給使用者看的說明文字
- reason：分類，讓前端不必解析錯誤碼就能顯示不同訊息
    - already_acted：你已經做過了（例如重複投票）
    - not_allowed：目前不允許這個操作（投票已關閉、沒有權限）
    - limit_reached：已達每日上限
    - invalid_input / not_found / unavailable
"""


class ClassVoteException(Exception):
    """所有投票引擎異常的基類"""
    reason = "error"


# ============ 配額相關異常 ============

class QuotaExceeded(ClassVoteException):
    """今日可開始的投票場次已用完"""
    reason = "limit_reached"

    def __init__(self, limit):
        self.limit = limit
        super().__init__(
            f"You have used all {limit} vote starts for today. "
            f"Wait until tomorrow or get more vote starts."
        )


# ============ 投票相關異常 ============

class AlreadyVoted(ClassVoteException):
    """同一位參與者在同一房間只能投一次"""
    reason = "already_acted"

    def __init__(self, room_id, voter_id):
        self.room_id = room_id
        self.voter_id = voter_id
        super().__init__("You have already voted in this session.")


class VotingClosed(ClassVoteException):
    """房間目前不開放投票"""
    reason = "not_allowed"

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__("The admin has closed voting for this room.")


class InvalidOption(ClassVoteException):
    """投票選項不在房間設定的選項內"""
    reason = "invalid_input"

    def __init__(self, option, options):
        self.option = option
        self.options = list(options)
        super().__init__(
            f"'{option}' is not a voting option. Choose one of: {', '.join(self.options)}."
        )


class VoteNotFound(ClassVoteException):
    """投票不存在"""
    reason = "not_found"

    def __init__(self, room_id, voter_id):
        self.room_id = room_id
        self.voter_id = voter_id
        super().__init__(f"No vote from {voter_id} in room {room_id}")


# ============ 結果相關異常 ============

class NoVotesCast(ClassVoteException):
    """沒有任何投票，無法公布結果"""
    reason = "not_allowed"

    def __init__(self):
        super().__init__("Cannot announce a result with zero votes.")


# ============ Room 相關異常 ============

class RoomNotFound(ClassVoteException):
    """房間不存在"""
    reason = "not_found"

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class RoomCodeExhausted(ClassVoteException):
    """多次重試仍產生不出未使用的房間代碼"""
    reason = "unavailable"

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(
            f"Could not generate a unique room code after {attempts} attempts. Please try again."
        )


# ============ 使用者相關異常 ============

class ProfileNotFound(ClassVoteException):
    """使用者資料不存在"""
    reason = "not_found"

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User profile {user_id} not found")


class PermissionDenied(ClassVoteException):
    """不是房間擁有者，或不是 admin"""
    reason = "not_allowed"

    def __init__(self, message="Only the room's admin can do that."):
        super().__init__(message)
