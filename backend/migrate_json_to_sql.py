"""
存储迁移脚本：JSON 文件 -> SQL
---------------------------------
功能：
- 读取 DATA_DIR 下的 users.json / payments.json / progress.json
- 写入 DATABASE_URL 指向的数据库 collections 表（已存在的集合会被覆盖）

运行：
python backend/migrate_json_to_sql.py
"""

import asyncio

from app.config.database import get_engine
from app.config.settings import DATA_DIR, DATABASE_URL
from app.services.store import COLLECTION_DEFAULTS, JsonFileStore, SqlCollectionStore
from app.utils.logger import log


async def migrate():
    """执行迁移"""
    source = JsonFileStore(DATA_DIR)
    target = SqlCollectionStore(get_engine())
    await target.init()

    changes = {}
    for name in COLLECTION_DEFAULTS:
        changes[name] = await source.get(name)
        log.info(f"读取集合 {name}：{len(changes[name])} 条")

    async with target.lock(*changes):
        await target.commit(changes)
    await target.close()

    log.info(f"✅ 迁移完成：{DATA_DIR} -> {DATABASE_URL}")


if __name__ == "__main__":
    asyncio.run(migrate())
