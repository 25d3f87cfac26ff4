import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.api.router import api_router
from app.config import settings
from app.database.mongo import ensure_indexes
from app.errors import ProviderError, StoreUnavailableError
from app.services import background
from app.services.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Food Recall Aggregator")


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Recall store unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Recall store unavailable"})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error(f"Provider failure during {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": f"{exc.provider} feed unavailable"})


@app.on_event("startup")
async def startup_event():
    try:
        await ensure_indexes()
    except StoreUnavailableError as exc:
        logger.error(f"Could not create recall indexes at startup: {exc}")

    if settings.SCHEDULER_ENABLED:
        start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    stop_scheduler()
    await background.drain(timeout=5.0)


app.include_router(api_router)

@app.get("/")
def root():
    return {"status": "running", "message": "Food Recall Aggregator"}
