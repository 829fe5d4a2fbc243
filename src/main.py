# src/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.common.database.database import connect_to_db, close_db_connection
from src.common.config import settings
from src.common.utils.logger import configure_logging
from src.router.routers import include_routers

configure_logging()

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_db()
    yield
    await close_db_connection()

# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title="Clinic Admin API",
    description="Admin dashboard API for the WhatsApp clinic booking assistant",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers from a separate file
include_routers(app)

# Root endpoint
@app.get("/")
async def root():
    return {
        "service": "Clinic Admin API",
        "version": app.version,
        "docs": "/docs",
    }
