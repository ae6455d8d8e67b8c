import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portflow.core.config import settings
from portflow.core.database import AsyncSessionLocal, init_db
from portflow.services.intake_service import IntakeService
from portflow.api.v1.chat.router import router as chat_router
from portflow.api.v1.session.router import router as session_router
from portflow.api.v1.bookings.router import router as bookings_router

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    await init_db()

    # Turns cut short by a restart would otherwise keep their conversation busy
    async with AsyncSessionLocal() as db:
        await IntakeService(db).recover_interrupted_turns()
    yield


app = FastAPI(
    title="PortFlow Ops",
    description="Conversational freight booking intake and Ops Center jobsheets",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat_router, prefix="/api/v1", tags=["Chat"])
app.include_router(session_router, prefix="/api/v1", tags=["Session"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
