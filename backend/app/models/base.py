"""
SQLAlchemy 声明式基类
---------------------------------
所有 ORM 模型继承此 Base，init_db.py 通过 Base.metadata 建表。
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
