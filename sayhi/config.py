# sayhi/config.py
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sayhi.db")

# dev / prod：prod 下 500 错误不回显细节
SAYHI_ENV = os.getenv("SAYHI_ENV", "dev")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# token 有效期（毫秒），默认一周
TOKEN_EXPIRE_MS = int(os.getenv("TOKEN_EXPIRE_MS", str(1000 * 60 * 60 * 24 * 7)))

TABLE_PREFIX = "sayhi_"

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
