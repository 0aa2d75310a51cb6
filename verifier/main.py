"""
Receipt Verifier — FastAPI application entry-point.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from verifier import __version__
from verifier.config import settings
from verifier.database import Base, engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    # Import models so Base.metadata knows about them
    import verifier.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)
    logger.info("Receiver validation policy: %s", settings.RECEIVER_POLICY)
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Receipt Verifier",
    description="Payment receipt → extraction → receiver check → callback → ledger",
    version=__version__,
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
    return {"service": "Receipt Verifier", "version": __version__, "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ── Register API routers ─────────────────────────────────────────────────
from verifier.routers.verification import router as verification_router  # noqa: E402
from verifier.routers.verify import router as verify_router  # noqa: E402
from verifier.routers.receiver_accounts import router as receiver_accounts_router  # noqa: E402
from verifier.routers.payments import router as payments_router  # noqa: E402

app.include_router(verification_router, prefix="/api", tags=["Receipt Verification"])
app.include_router(verify_router, prefix="/api", tags=["Direct Lookup"])
app.include_router(receiver_accounts_router, prefix="/api", tags=["Receiver Accounts"])
app.include_router(payments_router, prefix="/api", tags=["Verified Payments"])
