import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import db_sqlalchemy
import settings
from errors import PasteError
from handlers import (
    create_paste_handler, get_paste_handler, delete_paste_handler, list_pastes_handler,
    register_handler, login_handler, logout_handler, health_handler, paste_error_handler,
    get_paste_service,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def purge_loop(interval: int):
    """Periodically remove expired pastes; reads already hide them."""
    while True:
        await asyncio.sleep(interval)
        try:
            await get_paste_service().purge_expired()
        except Exception:
            # keep sweeping; the next round may succeed
            logger.exception("expired paste sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await db_sqlalchemy.init_db()
    await db_sqlalchemy.database.connect()
    sweeper = None
    if settings.PURGE_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(purge_loop(settings.PURGE_INTERVAL_SECONDS))
    logger.info("paste service started")
    yield
    # shutdown
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await db_sqlalchemy.database.disconnect()


# Create FastAPI app
app = FastAPI(title="Pastebin", lifespan=lifespan)
app.add_exception_handler(PasteError, paste_error_handler)

# CORS - allow all origins in dev, configure in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.post("/paste")(create_paste_handler)
app.put("/paste")(create_paste_handler)
app.get("/paste/{code}")(get_paste_handler)
app.delete("/paste/{code}")(delete_paste_handler)
app.get("/pastes")(list_pastes_handler)
app.post("/register")(register_handler)
app.post("/login")(login_handler)
app.post("/logout")(logout_handler)
app.get("/health")(health_handler)
