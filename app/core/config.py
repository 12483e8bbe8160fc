# app/core/config.py

import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "false").lower() == "true"

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./mep_quotations.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning(
        "Running in production with relaxed SSL verification "
        "(Supabase asyncpg compatibility mode)"
    )

# =====================================================
# SUPABASE AUTH
# =====================================================
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
if not SUPABASE_JWT_SECRET:
    raise ValueError("SUPABASE_JWT_SECRET must be set")

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# =====================================================
# APPROVAL WORKFLOW (n8n webhook)
# =====================================================
APPROVAL_WEBHOOK_URL = os.getenv("APPROVAL_WEBHOOK_URL")
if not APPROVAL_WEBHOOK_URL:
    raise ValueError("APPROVAL_WEBHOOK_URL must be set")

# Document generation + email sending can take minutes
APPROVAL_WEBHOOK_TIMEOUT_SECONDS = float(
    os.getenv("APPROVAL_WEBHOOK_TIMEOUT_SECONDS", 180)
)
APPROVAL_MAX_RETRY_ATTEMPTS = int(
    os.getenv("APPROVAL_MAX_RETRY_ATTEMPTS", 3)
)
APPROVAL_RETRY_BASE_DELAY_SECONDS = float(
    os.getenv("APPROVAL_RETRY_BASE_DELAY_SECONDS", 1)
)

if APPROVAL_MAX_RETRY_ATTEMPTS < 1:
    raise ValueError("APPROVAL_MAX_RETRY_ATTEMPTS must be at least 1")
