"""
后端基础配置（.env 自动加载）
---------------------------------
功能：
- 定义数据目录（JSON 集合文件）与上传目录（支付凭证），并在模块加载时确保目录存在。
- 定义存储后端：`json`（默认，每个集合一个文件）或 `sql`（SQLAlchemy 异步引擎）。
- 定义 JWT、注册赠送次数、管理员密钥、邮件（SMTP）等配置。

使用说明：
- 所有配置均可通过环境变量覆盖（`.env` 或系统环境变量）。
- 生产环境务必设置 `JWT_SECRET_KEY` 与 `ADMIN_API_KEY`。
"""

from pathlib import Path
import os
from dotenv import find_dotenv, load_dotenv


# settings.py 位于 project_root/backend/app/config/
PROJECT_ROOT = Path(__file__).resolve().parents[3]
BACKEND_DIR = PROJECT_ROOT / "backend"

# 自动加载项目根目录 .env（若存在），已存在的环境变量不被覆盖
_found = find_dotenv(filename=".env", usecwd=True)
if _found:
    load_dotenv(_found, override=False)
else:
    load_dotenv(str(PROJECT_ROOT / ".env"), override=False)

# --- 存储配置 ---
# json: 使用 DATA_DIR 下的 users.json / payments.json / progress.json
# sql: 使用 DATABASE_URL 指向的数据库（一张 collections 表）
STORE_BACKEND = os.getenv("STORE_BACKEND", "json").strip().lower()
DATA_DIR = Path(os.getenv("DATA_DIR", BACKEND_DIR / "database")).expanduser().resolve()
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{DATA_DIR / 'polyglotquest.db'}")

# --- 上传目录 ---
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", BACKEND_DIR / "uploads")).expanduser().resolve()
PROOF_UPLOAD_DIR = UPLOAD_DIR / "proofs"

# 确保目录存在
DATA_DIR.mkdir(parents=True, exist_ok=True)
PROOF_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

# --- JWT 认证配置 ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-please-change-in-production")
JWT_ALGORITHM = "HS256"
# Token 过期时间（分钟），默认 30 天
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", 60 * 24 * 30))

# --- 账户配置 ---
FREE_TRIALS_ON_REGISTER = int(os.getenv("FREE_TRIALS_ON_REGISTER", 5))
PASSWORD_MIN_LENGTH = 8

# 管理员接口密钥：为空时不校验（仅限本地开发）
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

# --- 邮件配置 ---
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
EMAIL_USER = os.getenv("EMAIL_USER", "")
EMAIL_PASS = os.getenv("EMAIL_PASS", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", f'"PolyglotQuest" <{EMAIL_USER or "noreply@polyglotquest.com"}>')
# 接收注册/支付通知的管理员邮箱
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")

# 前端地址（邮件中的链接）
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "http://localhost:3001")

# --- 日志 ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
