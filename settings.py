import os
import secrets
from dotenv import load_dotenv

# load env
load_dotenv()


def _int_env(name: str, default):
    v = os.getenv(name)
    if not v:
        return default
    try:
        n = int(v)
        if n < 0:
            n = default
    except ValueError:
        n = default
    return n


DB_PATH = os.getenv("DATABASE_PATH")
if not DB_PATH:
    # default to ./pastes/pastes.db
    DB_PATH = os.path.abspath(os.path.join(os.getcwd(), "pastes", "pastes.db"))

DB_URL = os.getenv("DB_URL", f"sqlite+aiosqlite:///{DB_PATH}")

# Token signing secret; a random one means tokens die with the process
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_urlsafe(32)

TOKEN_TTL_MINUTES = _int_env("TOKEN_TTL_MINUTES", 180) or 180
MAX_BODY_BYTES = _int_env("MAX_BODY_BYTES", 10240) or 10240
ID_MAX_ATTEMPTS = _int_env("ID_MAX_ATTEMPTS", 5) or 5
# None lets bcrypt pick its own default cost
PASSWORD_HASH_ROUNDS = _int_env("PASSWORD_HASH_ROUNDS", None)
PURGE_INTERVAL_SECONDS = _int_env("PURGE_INTERVAL_SECONDS", 300)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
