"""
集合存储服务
---------------------------------
功能：
- 以“命名集合”为单位读写数据：users（列表）、payments（列表）、progress（按 userId 的字典）
- 提供三种实现：
  - MemoryStore：内存存储（测试用）
  - JsonFileStore：每个集合一个 JSON 文件（默认）
  - SqlCollectionStore：collections 表，每个集合一行 JSON
- 每个存储自带按集合划分的锁，业务层在“读-改-写”期间持有相关集合的锁
- commit() 一次提交多个集合：要么全部写入，要么全部不生效

使用：
    async with store.lock("payments", "users"):
        payments = await store.get("payments")
        users = await store.get("users")
        ...
        await store.commit({"payments": payments, "users": users})
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
import asyncio
import copy
import json
import logging
import os

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from ..config.database import create_session_factory, get_engine
from ..config.settings import STORE_BACKEND, DATA_DIR
from ..models.base import Base
from ..models.collection import CollectionRecord
from ..utils.time_utils import utc_now
from .errors import StoreError

logger = logging.getLogger(__name__)

USERS = "users"
PAYMENTS = "payments"
PROGRESS = "progress"

# 集合名 -> 空集合构造函数
COLLECTION_DEFAULTS = {
    USERS: list,
    PAYMENTS: list,
    PROGRESS: dict,
}


def _check_name(name: str) -> None:
    if name not in COLLECTION_DEFAULTS:
        raise ValueError(f"Unknown collection: {name}")


class CollectionLocks:
    """按集合名划分的异步锁"""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, *names: str) -> AsyncIterator[None]:
        """
        同时持有多个集合的锁

        按名称排序加锁，避免两个操作交叉加锁造成死锁。
        """
        ordered = sorted(set(names))
        for name in ordered:
            _check_name(name)
        acquired: list[asyncio.Lock] = []
        try:
            for name in ordered:
                lock = self._locks.setdefault(name, asyncio.Lock())
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class CollectionStore:
    """集合存储基类"""

    def __init__(self):
        self.locks = CollectionLocks()

    def lock(self, *names: str):
        return self.locks.hold(*names)

    async def init(self) -> None:
        """初始化存储（建文件/建表），重复调用无副作用"""

    async def close(self) -> None:
        """释放资源"""

    async def get(self, name: str) -> Any:
        """读取整个集合，不存在时返回空集合"""
        _check_name(name)
        data = await self._read(name)
        if data is None:
            return COLLECTION_DEFAULTS[name]()
        return data

    async def put(self, name: str, data: Any) -> None:
        """写入整个集合"""
        await self.commit({name: data})

    async def commit(self, changes: dict[str, Any]) -> None:
        """原子地写入多个集合"""
        raise NotImplementedError

    async def _read(self, name: str) -> Any:
        raise NotImplementedError

    @staticmethod
    def _serialize(changes: dict[str, Any]) -> dict[str, str]:
        # 写入前先全部序列化，序列化失败时不会写入任何集合
        payloads = {}
        for name, data in changes.items():
            _check_name(name)
            try:
                payloads[name] = json.dumps(data, ensure_ascii=False, indent=2)
            except (TypeError, ValueError) as e:
                raise StoreError(f"集合 {name} 无法序列化: {e}") from e
        return payloads


class MemoryStore(CollectionStore):
    """内存存储，读写均为深拷贝"""

    def __init__(self, initial: dict[str, Any] | None = None):
        super().__init__()
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def _read(self, name: str) -> Any:
        if name not in self._data:
            return None
        return copy.deepcopy(self._data[name])

    async def commit(self, changes: dict[str, Any]) -> None:
        self._serialize(changes)
        snapshot = {name: copy.deepcopy(data) for name, data in changes.items()}
        self._data.update(snapshot)


class JsonFileStore(CollectionStore):
    """JSON 文件存储：<data_dir>/<name>.json"""

    def __init__(self, data_dir: Path):
        super().__init__()
        self.data_dir = Path(data_dir)

    def _path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    async def init(self) -> None:
        await asyncio.to_thread(self._init_files)

    def _init_files(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for name, default in COLLECTION_DEFAULTS.items():
                path = self._path(name)
                if not path.exists():
                    self._write_file(path, json.dumps(default()))
        except OSError as e:
            raise StoreError(f"初始化数据目录失败: {self.data_dir}: {e}") from e
        logger.info(f"数据目录已初始化: {self.data_dir}")

    async def _read(self, name: str) -> Any:
        return await asyncio.to_thread(self._read_file, self._path(name))

    @staticmethod
    def _read_file(path: Path) -> Any:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"读取集合失败: {path}: {e}") from e
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreError(f"集合文件已损坏: {path}") from e

    @staticmethod
    def _write_file(path: Path, payload: str) -> None:
        # 先写临时文件再替换，避免写到一半的文件被读取
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, path)

    async def commit(self, changes: dict[str, Any]) -> None:
        payloads = self._serialize(changes)
        await asyncio.to_thread(self._commit_files, payloads)

    def _commit_files(self, payloads: dict[str, str]) -> None:
        snapshots: dict[str, bytes | None] = {}
        written: list[str] = []
        try:
            for name, payload in payloads.items():
                path = self._path(name)
                snapshots[name] = path.read_bytes() if path.exists() else None
                self._write_file(path, payload)
                written.append(name)
        except OSError as e:
            for name in reversed(written):
                self._restore(name, snapshots[name])
            raise StoreError(f"写入集合失败: {e}") from e

    def _restore(self, name: str, content: bytes | None) -> None:
        path = self._path(name)
        try:
            if content is None:
                path.unlink(missing_ok=True)
            else:
                path.write_bytes(content)
        except OSError:
            logger.exception(f"回滚集合失败: {path}")


class SqlCollectionStore(CollectionStore):
    """SQL 存储：collections 表，一个集合一行"""

    def __init__(self, engine: AsyncEngine):
        super().__init__()
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def init(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError(f"初始化数据库失败: {e}") from e
        logger.info("collections 表已就绪")

    async def close(self) -> None:
        await self.engine.dispose()

    async def _read(self, name: str) -> Any:
        try:
            async with self.session_factory() as session:
                record = await session.get(CollectionRecord, name)
        except SQLAlchemyError as e:
            raise StoreError(f"读取集合失败: {name}: {e}") from e

        if record is None:
            return None
        try:
            return json.loads(record.payload)
        except json.JSONDecodeError as e:
            raise StoreError(f"集合内容已损坏: {name}") from e

    async def commit(self, changes: dict[str, Any]) -> None:
        payloads = self._serialize(changes)
        now = utc_now()
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    for name, payload in payloads.items():
                        await session.merge(CollectionRecord(name=name, payload=payload, updated_at=now))
        except SQLAlchemyError as e:
            raise StoreError(f"写入集合失败: {e}") from e


# 全局单例
_store: CollectionStore | None = None


def get_store() -> CollectionStore:
    """
    获取配置的存储单例（STORE_BACKEND=json|sql）

    Returns:
        CollectionStore 实例
    """
    global _store
    if _store is None:
        if STORE_BACKEND == "sql":
            _store = SqlCollectionStore(get_engine())
        elif STORE_BACKEND == "json":
            _store = JsonFileStore(DATA_DIR)
        else:
            raise ValueError(f"Unknown STORE_BACKEND: {STORE_BACKEND}")
    return _store
