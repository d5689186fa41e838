"""
命名服務：生成 Room Code

純計算邏輯，不涉及狀態轉換
"""
import random

# 大寫字母去掉 O、數字去掉 0，避免視覺上混淆
ROOM_CODE_ALPHABET = "ABCDEFGHIJKLMNPQRSTUVWXYZ123456789"
ROOM_CODE_LENGTH = 6


def generate_room_code() -> str:
    """
    生成隨機的 6 位房間代碼

    範例：K7PQ2A, ZZ91MB

    注意：
    - 不檢查唯一性（由呼叫者負責）
    - 每一位獨立均勻抽取，34^6 ≈ 15 億種可能
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))


def normalize_room_code(code: str) -> str:
    """使用者輸入的代碼：去空白、轉大寫"""
    return code.strip().upper()
