"""Demo 用户种子脚本: 创建 Sarah Chen + 一周的日记"""
import asyncio
import logging
import sys
import os

# logging 必须在所有 app import 之前配置
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s", force=True)
logger = logging.getLogger(__name__)

sys.path.insert(0, os.path.dirname(__file__))

from dotenv import load_dotenv
load_dotenv()

from app.config import DEMO_USER_EMAIL, DEMO_USER_PASSWORD, DEMO_USER_NAME
from app.core.db import get_identity, get_repository
from app.core.errors import AuthError

# ── 日记数据 ──────────────────────────────────────────────
DIARIES = [
    {
        "date": "2025-02-03",
        "weather": "cloudy",
        "mood": "neutral",
        "tags": ["work", "ramen"],
        "content": (
            "First sync with Jake, the new PM. He showed up with spreadsheets and wants every "
            "design decision mapped to a metric. Grabbed ramen alone after work, which was "
            "exactly what I needed."
        ),
    },
    {
        "date": "2025-02-06",
        "weather": "rainy",
        "mood": "bad",
        "tags": ["work", "presentation"],
        "content": (
            "Presentation was going great until Morrison asked about my rollback plan and I "
            "completely froze. Came home to Thai food and a baking show."
        ),
    },
    {
        "date": "2025-02-08",
        "weather": "sunny",
        "mood": "good",
        "tags": ["park", "family"],
        "isPublic": True,
        "content": (
            "Sat on the hill at Dolores Park with coffee just watching people. Called Mom and "
            "told her about the presentation. Came home feeling lighter."
        ),
    },
    {
        "date": "2025-02-11",
        "weather": "partlyCloudy",
        "mood": "good",
        "tags": ["work", "friends"],
        "content": (
            "Ran through the deck with Jake twice. Yuki dropped by with boba unprompted. "
            "Tonight I'm going to bed early, the deck is done and I'm ready."
        ),
    },
]


# ── 核心逻辑 ──────────────────────────────────────────────
def create_demo_user() -> str:
    """注册 Demo 用户，已存在时直接登录，返回 user id"""
    identity = get_identity()
    try:
        session = identity.sign_up(DEMO_USER_EMAIL, DEMO_USER_PASSWORD, full_name=DEMO_USER_NAME)
        logger.info(f"创建 Demo 用户成功: {session.user.uid}")
    except AuthError as e:
        logger.info(f"Demo 用户可能已存在 ({e.message})，尝试登录")
        session = identity.sign_in_with_password(DEMO_USER_EMAIL, DEMO_USER_PASSWORD)
    return session.user.uid


async def seed_diaries(user_id: str):
    repository = get_repository()
    for i, entry in enumerate(DIARIES, 1):
        logger.info(f"[{i}/{len(DIARIES)}] 处理日记: {entry['date']}")

        # 幂等：同一天已有日记时跳过
        existing = await repository.get_by_date(user_id, entry["date"])
        if existing.ok and existing.value:
            logger.info(f"  日记已存在: {existing.value.id}，跳过插入")
            continue

        result = await repository.create_entry(user_id, {**entry, "images": [], "isLiked": False})
        if result.ok:
            logger.info(f"  日记写入成功: {result.value}")
        else:
            logger.warning(f"  日记写入失败: {result.error}")


async def main():
    logger.info("开始 Demo 种子数据填充...")

    user_id = create_demo_user()
    logger.info(f"Demo User ID: {user_id}")

    await seed_diaries(user_id)

    logger.info("种子数据填充完成!")
    logger.info(f"登录信息: email={DEMO_USER_EMAIL}, password={DEMO_USER_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(main())
