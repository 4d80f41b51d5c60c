import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cutdapper.core.config import get_settings
from cutdapper.core.exceptions import FilterValidationError, StorageError
from cutdapper.core.logging_config import configure_logging
from cutdapper.routers.search import router as search_router

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cut Dapper Catalog API")

# Mount routers
app.include_router(search_router, prefix="/api/v1")

@app.exception_handler(FilterValidationError)
async def filter_validation_handler(request: Request, exc: FilterValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": [{"loc": [exc.field], "msg": exc.message, "type": "value_error"}]},
    )

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("search failed: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "search backend unavailable"})

# Simple health for E2E bring-up
@app.get("/healthz")
def healthz():
    return {"status": "ok"}
