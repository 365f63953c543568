import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from outagewatch.config import settings
from outagewatch.database import is_ready
from outagewatch.errors import OutageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    from outagewatch.tasks.scheduler import start_scheduler, stop_scheduler
    # Connects in the background so the API serves while the store is down
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="Outage-Watch",
    description="Community reporting and analytics for electricity, water, internet and transport outages",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OutageError)
async def outage_error_handler(request: Request, exc: OutageError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


from outagewatch.routers import outage  # noqa: E402

app.include_router(outage.router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok", "database": "ready" if is_ready() else "connecting"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
