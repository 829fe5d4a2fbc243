# src/router/routers.py

from fastapi import FastAPI
from src.modules.conversations.conversations_controller import router as conversations_router
from src.modules.media.media_controller import router as media_router

def include_routers(app: FastAPI) -> None:
    """Include all API routers in the FastAPI application."""
    app.include_router(conversations_router)
    app.include_router(media_router)
