import os
import tempfile

# Configure before any project module reads the environment
_tmp = tempfile.mkdtemp(prefix="pastebin-test-")
os.environ["DATABASE_PATH"] = os.path.join(_tmp, "api.db")
os.environ.pop("DB_URL", None)
os.environ["SECRET_KEY"] = "5TEdWbDmxZ2ASXcMinBYwGi66vHiU9rq"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["PURGE_INTERVAL_SECONDS"] = "0"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from databases import Database  # noqa: E402

from db_sqlalchemy import init_db  # noqa: E402
from store import PasteStore, UserStore  # noqa: E402


class FakeClock:
    """A clock tests can move forward by hand."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class ScriptedRng:
    """Stands in for a random generator, handing out ids from a sequence."""

    def __init__(self, values):
        self._values = iter(values)

    def getrandbits(self, k):
        return next(self._values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def db(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    await init_db(url)
    database = Database(url)
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture
def paste_store(db):
    return PasteStore(db)


@pytest.fixture
def user_store(db):
    return UserStore(db)
