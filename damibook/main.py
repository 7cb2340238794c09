"""
Main Application Entry Point

This module sets up the FastAPI application with:
- Logging configuration
- Database initialization on startup
- Static file serving
- Exception handlers mapping application errors to redirects and error pages
- Route registration
- Homepage with the post feed

Run with `damibook` (see run()) or `uvicorn damibook.main:app`.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Depends
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from damibook import database
from damibook.config import settings
from damibook.database import get_db
from damibook.dependencies import get_current_user
from damibook.errors import LoginRequired, StoreError
from damibook.limiter import limiter
from damibook.models import User
from damibook.routes import auth, chat, feed
from damibook.services.feed import list_feed
from damibook.templating import templates

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - runs on startup and shutdown.

    Startup tasks:
    - Create database tables if they don't exist

    A store that is down at startup is logged, not fatal: the process keeps
    serving and store-backed requests fail with the error page until it
    comes back.
    """
    try:
        await database.init_models()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Database unavailable at startup: %s", exc)

    yield


# Create FastAPI application instance
app = FastAPI(title="Damibook", lifespan=lifespan)

# slowapi looks the limiter up on app.state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Mount static files (CSS) at /static URL
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Register route modules
app.include_router(auth.router)
app.include_router(feed.router)
app.include_router(chat.router)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    """Anonymous access to a protected route: send the client to the login page."""
    return RedirectResponse(url="/login", status_code=303)


@app.exception_handler(StoreError)
@app.exception_handler(SQLAlchemyError)
@app.exception_handler(RedisError)
async def store_error_handler(request: Request, exc: Exception):
    """
    The database, the session store or the rate limit storage failed.

    Nothing is retried; the user gets a generic error page and the details
    go to the log.
    """
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return templates.TemplateResponse(request, "error.html", {}, status_code=500)


@app.get("/")
async def root(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Homepage route - displays the feed.

    Shows every post (newest first) with its comments (oldest first), and
    links to open a conversation with each other user.
    """
    context = await list_feed(db, user)
    return templates.TemplateResponse(request, "home.html", context)


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logger.info("Damibook listening on http://%s:%s", settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
