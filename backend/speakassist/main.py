import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from speakassist.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.completion_configured:
        logger.warning(
            "%s completion backend is not configured, every suggestion will fall back",
            settings.completion_backend,
        )
    logger.info("ready")
    yield


app = FastAPI(
    title="SpeakAssist",
    description="real-time speaking suggestions from a live transcript",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from speakassist.routers import assist, suggest  # noqa: E402

app.include_router(assist.router, prefix="/api/assist", tags=["assist"])
app.include_router(suggest.router, prefix="/api/suggest", tags=["suggest"])


@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "completion_backend": settings.completion_backend,
        "completion_mode": settings.completion_mode,
        "completion_configured": settings.completion_configured,
    }
