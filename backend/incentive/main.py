"""
Production Incentive API
FastAPI backend for production-norm incentives, flat allowances, general
incentives and the payroll report, with async PostgreSQL persistence.
"""
import time
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# .env is read before settings are resolved (no-op when the file is absent)
load_dotenv()

from incentive.api.deps import get_config  # noqa: E402
from incentive.services.logging_config import setup_logging  # noqa: E402
from incentive.services.monitoring import RequestTimingMiddleware, tracker  # noqa: E402

config = get_config()
setup_logging(level=config.log_level, json_output=config.json_logs)
logger = logging.getLogger("incentive-api")

_PROCESS_START = time.monotonic()

if config.dev_mode:
    logger.warning("MISSING env var: DATABASE_URL — running in dev mode, records are not persisted")
if not config.master_data_token:
    logger.info("MASTER_DATA_TOKEN not set; caller bearer tokens are forwarded to master data")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from incentive.db import engine, init_db
    await init_db()
    logger.info(f"API ready (master data: {config.master_data_base_url})")
    yield
    await engine.dispose()


app = FastAPI(
    title="Production Incentive API",
    version="1.0.0",
    description="Norm-based production incentives, allowances and payroll for manufacturing sites",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)

from incentive.api.incentive_routes import router as incentive_router  # noqa: E402
from incentive.api.compensation_routes import router as compensation_router  # noqa: E402
from incentive.api.payroll_routes import router as payroll_router  # noqa: E402

app.include_router(incentive_router)
app.include_router(compensation_router)
app.include_router(payroll_router)


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "mode": "dev" if config.dev_mode else "db",
        "uptime_s": round(time.monotonic() - _PROCESS_START, 1),
    }


@app.get("/metrics")
async def metrics():
    """Submission counters since process start."""
    return tracker.get_metrics()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("incentive.main:app", host="0.0.0.0", port=8000)
