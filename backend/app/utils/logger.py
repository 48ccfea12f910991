"""
日志工具
---------------------------------
功能：
- 统一日志格式与级别（LOG_LEVEL）
- 提供全局 `log` 对象供路由、脚本直接使用

使用：
- from ..utils.logger import log
- log.info("...")
"""

import logging

from ..config.settings import LOG_LEVEL


def setup_logging(level: str = "INFO") -> logging.Logger:
    """配置根日志并返回应用日志对象"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    return logging.getLogger("polyglotquest")


log = setup_logging(LOG_LEVEL)
