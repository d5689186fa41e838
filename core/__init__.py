"""
核心業務邏輯層（投票房間引擎）

這個 package 包含所有核心業務邏輯，包括：
- QuotaTracker：每位 admin 每日開始投票場次的上限
- VoteLedger：每人每房一票、統計與累積曲線
- RoomManager：管理 Room 的生命週期（建立、開關投票、重設）
- WinnerResolver：計算並公布勝出選項
- Locks：並發控制工具
"""
