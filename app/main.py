# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints import assist, monitor
from .config import get_settings
from .services.log_shipping import HttpLogSink
from .services.session_runtime import SessionRegistry

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sink = HttpLogSink(settings.LOG_SINK_URL, timeout=settings.LOG_SINK_TIMEOUT) if settings.LOG_SINK_URL else None
    if sink is None:
        logger.warning("LOG_SINK_URL not set - keystroke logs will stay buffered")

    app.state.registry = SessionRegistry(
        sink=sink,
        decision_interval=settings.DECISION_TICK_SECONDS,
        flush_interval=settings.FLUSH_INTERVAL_SECONDS,
    )
    try:
        yield
    finally:
        # Teardown every live session so buffered logs get a final flush
        await app.state.registry.close_all()


app = FastAPI(title="Writing Monitor Backend", version="1.0.0", lifespan=lifespan)

# CORS for the editor frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(monitor.router)
app.include_router(assist.router)

@app.get("/")
async def root():
    return {"message": "Writing Monitor Backend API", "version": "1.0.0"}

@app.get("/health")
async def health():
    return {"status": "healthy", "service": "writing-monitor"}
