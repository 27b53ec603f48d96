"""
Bolão GFT backend — FastAPI application entry‑point.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bolao.config import settings
from bolao.database import Base, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    # Import models so Base.metadata knows about them
    import bolao.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set — AI features will use local fallbacks")
    if not settings.ADMIN_EMAILS:
        logger.warning("ADMIN_EMAILS is empty — admin endpoints will reject every caller")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Bolão GFT",
    description="Corporate lottery pools, quotas, polls and bank-statement reconciliation",
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


@app.get("/")
async def root():
    return {"service": "Bolão GFT", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ── Register API routers ─────────────────────────────────────────────────
from bolao.routers.pools import router as pools_router  # noqa: E402
from bolao.routers.imports import router as imports_router  # noqa: E402
from bolao.routers.comments import router as comments_router  # noqa: E402
from bolao.routers.access import router as access_router  # noqa: E402
from bolao.routers.agents import router as agents_router  # noqa: E402
from bolao.routers.polls import router as polls_router  # noqa: E402

app.include_router(pools_router, prefix="/api", tags=["Bolões"])
app.include_router(imports_router, prefix="/api", tags=["Importação de Extratos"])
app.include_router(comments_router, prefix="/api", tags=["Comentários"])
app.include_router(access_router, prefix="/api", tags=["Acesso"])
app.include_router(agents_router, prefix="/api", tags=["Agentes de IA"])
app.include_router(polls_router, prefix="/api", tags=["Enquetes"])
