"""
FastAPI entrypoint for the blessing video batch generator.

Serves the batch routes and the rendered videos; the lifespan owns the
expiry sweeper thread.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from blessings.api.routes_batch import get_batch_service
from blessings.api.routes_batch import router as batches_router
from blessings.core.config import settings
from blessings.core.logging_config import get_logger, setup_logging
from blessings.services.expiry_sweeper import ExpirySweeper

# Setup logging
setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info("=" * 60)

    settings.ensure_directories()
    service = get_batch_service()
    sweeper = ExpirySweeper(settings, logger, service.job_store, service.processor.voice_provider)
    sweeper.start()
    app.state.sweeper = sweeper
    yield
    logger.info("Shutting down application")
    sweeper.stop()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Batch generator for personalized festival blessing videos",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(batches_router)
app.mount("/output", StaticFiles(directory=settings.output_dir, check_dir=False), name="output")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "preview": "/batches/preview",
            "render": "/batches/render",
            "confirm": "/batches/{batch_id}/confirm",
            "status": "/batches/{batch_id}",
            "download": "/batches/{batch_id}/download",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check with batch store and sweeper state."""
    sweeper = getattr(app.state, "sweeper", None)
    return {
        "status": "healthy",
        "batches": len(get_batch_service().job_store),
        "sweeper_running": bool(sweeper and sweeper.is_running),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blessings.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
