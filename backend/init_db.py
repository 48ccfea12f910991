"""
存储初始化脚本
---------------------------------
功能：
- STORE_BACKEND=json：创建数据目录与 users.json / payments.json / progress.json
- STORE_BACKEND=sql：创建 collections 表

使用：
python backend/init_db.py
"""

import asyncio

from app.config.settings import STORE_BACKEND, DATA_DIR, DATABASE_URL
from app.services.store import get_store
from app.utils.logger import log


async def init_database():
    """初始化存储"""
    log.info(f"正在初始化存储（{STORE_BACKEND}）...")
    log.info(f"位置：{DATA_DIR if STORE_BACKEND == 'json' else DATABASE_URL}")

    store = get_store()
    await store.init()
    await store.close()

    log.info("✅ 存储初始化成功！")


if __name__ == "__main__":
    asyncio.run(init_database())
