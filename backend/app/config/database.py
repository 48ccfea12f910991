"""
数据库连接配置
---------------------------------
功能：
- 配置 SQL 存储后端使用的异步数据库引擎（MySQL 用 aiomysql，SQLite 用 aiosqlite）
- 提供异步会话工厂

使用：
- STORE_BACKEND=sql 时由 store.SqlCollectionStore 使用
- 测试或脚本可调用 create_session_factory(url) 指向其他数据库
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine
from sqlalchemy.orm import sessionmaker

from .settings import DATABASE_URL


def create_engine_for(url: str) -> AsyncEngine:
    """根据 URL 创建异步引擎，SQLite 不使用连接池参数"""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False, future=True)
    return create_async_engine(
        url,
        echo=False,  # 生产环境设为 False
        future=True,
        pool_pre_ping=True,  # 连接池预检测
        pool_recycle=3600,   # 连接回收时间（秒）
    )


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    """创建异步会话工厂"""
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False
    )


_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """获取默认引擎（惰性创建，未使用 SQL 存储时不连接数据库）"""
    global _engine
    if _engine is None:
        _engine = create_engine_for(DATABASE_URL)
    return _engine
