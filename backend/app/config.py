"""应用配置文件 - 统一管理所有配置常量"""
import os
from typing import List

# Mock用户配置
MOCK_USER_ID = os.environ.get("MOCK_USER_ID", "11111111-1111-1111-1111-111111111111")
MOCK_USER_EMAIL = os.environ.get("MOCK_USER_EMAIL", "mock@example.com")
MOCK_USER_PASSWORD = os.environ.get("MOCK_USER_PASSWORD", "mockpassword123")
MOCK_USER_NAME = "Mock User"

# Demo用户配置
DEMO_USER_EMAIL = "sarah.chen@example.com"
DEMO_USER_PASSWORD = "demo_sarah_2025"
DEMO_USER_NAME = "Sarah Chen"

# Supabase配置
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")

# 表名
DIARY_TABLE = os.environ.get("DIARY_TABLE", "diary_entries")
PROFILE_TABLE = os.environ.get("PROFILE_TABLE", "profiles")

# 应用配置
APP_NAME = "Diary Calendar API"
APP_VERSION = "0.1.0"
APP_ENV = os.environ.get("APP_ENV", "development")
DEBUG_MODE = os.environ.get("DEBUG_MODE", "true").lower() == "true"

# API配置
API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"
CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173", "http://localhost:8000"]

# 存储调用配置
STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "10"))

# 日期配置 (timestamp 类型的日期按此时区换算为日历日)
DIARY_TIMEZONE = os.environ.get("DIARY_TIMEZONE", "UTC")
DISPLAY_DATE_FORMAT = "%Y年%m月%d日"
UNKNOWN_DATE_LABEL = "日付不明"
DEFAULT_USERNAME = "未設定"

# 日记字段取值
WEATHER_OPTIONS = ["sunny", "cloudy", "rainy"]
EDITOR_WEATHER_OPTIONS = [*WEATHER_OPTIONS, "partlyCloudy", "snowy"]
MOOD_OPTIONS = ["good", "neutral", "bad"]
WEATHER_LABELS = {
    "sunny": "晴れ",
    "cloudy": "曇り",
    "rainy": "雨",
    "partlyCloudy": "曇り",
    "snowy": "雪",
}
MOOD_ICONS = {"good": "😊", "neutral": "😐", "bad": "😔"}
MOOD_LABELS = {"good": "良い", "neutral": "普通", "bad": "悪い"}

# 用户可见的错误提示
FETCH_ERROR_MESSAGE = "日記の取得中にエラーが発生しました"
SAVE_ERROR_MESSAGE = "日記の保存に失敗しました。もう一度お試しください"

# 功能开关
ENABLE_MOCK_MODE = os.environ.get("ENABLE_MOCK_MODE", "false").lower() == "true"
