import os
from sqlalchemy import (MetaData, Table, Column, BigInteger, Integer, String, Text, DateTime, Boolean,
                        ForeignKey, Index)
from sqlalchemy.ext.asyncio import create_async_engine
from databases import Database

from settings import DB_PATH, DB_URL

if DB_URL.startswith("sqlite") and DB_PATH in DB_URL:
    # ensure folder exists before any DB IO
    os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("created_at", DateTime),
    Column("username", String, unique=True, nullable=False),
    Column("email", String, unique=True, nullable=False),
    Column("password_hash", String, nullable=False),
)

pastes = Table(
    "pastes",
    metadata,
    Column("id", BigInteger, primary_key=True, autoincrement=False),
    Column("title", Text, nullable=False, default=""),
    Column("body", Text, nullable=False, default=""),
    Column("created", DateTime, nullable=False),
    # NULL means the paste never expires
    Column("expires", DateTime, index=True, nullable=True),
    Column("delete_after_read", Boolean, nullable=False, default=False),
    Column("privacy", String, nullable=False),
    Column("password_hash", String, nullable=False, default=""),
    Column("syntax", String, nullable=False, default=""),
    Column("owner_id", Integer, ForeignKey("users.id"), nullable=True),
    Index("owner_created", "owner_id", "created"),
)

# Use 'databases' for async query execution
database = Database(DB_URL)


async def init_db(url: str = DB_URL):
    """Create tables using SQLAlchemy async engine. Call this at application startup."""
    async_engine = create_async_engine(url, echo=False)
    async with async_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    await async_engine.dispose()
