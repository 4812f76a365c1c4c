"""
Vidnest - FastAPI Backend
Application entry point: lifespan, middleware and router wiring.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    videos,
    comments,
    reactions,
    users,
    playlists,
    tweets,
    search,
)

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    print("🚀 Starting Vidnest API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except SQLAlchemyError as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    yield
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Vidnest API",
    description="Video sharing backend: channels, comments, reactions, playlists and watch history",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(videos.router, prefix="/videos", tags=["Videos"])
app.include_router(comments.router, prefix="/comments", tags=["Comments"])
app.include_router(reactions.router, prefix="/reactions", tags=["Reactions"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(playlists.router, prefix="/playlists", tags=["Playlists"])
app.include_router(tweets.router, prefix="/tweets", tags=["Tweets"])
app.include_router(search.router, prefix="/search", tags=["Search"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Vidnest API",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
