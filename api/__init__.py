"""
API 層

FastAPI routers：users、rooms、votes
業務異常在這裡轉成 HTTP 錯誤（見 api.errors）
"""
