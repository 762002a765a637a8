# src/apps/backend/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from apps.backend.api.combined import router as combined_router
from apps.backend.api.demographics import router as demographics_router
from apps.backend.api.equipment import router as equipment_router
from apps.backend.api.financial import router as financial_router
from apps.backend.api.forecast import router as forecast_router
from apps.backend.api.inventory import router as inventory_router
from repositories.base import PersistenceError
from repositories.factory import DATA_BACKEND, get_planning_repository
from vaccine_core.errors import MissingPrerequisiteError, NotFoundError, ReentrancyError
from vaccine_core.policy import default_policy

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Vaccine Supply Planning API starting up (backend=%s)", DATA_BACKEND)
    app.state.repo = get_planning_repository()
    app.state.policy = default_policy()
    try:
        yield
    finally:
        close = getattr(app.state.repo.store, "close", None)
        if close is not None:
            close()
        logger.info("Vaccine Supply Planning API shutting down...")


app = FastAPI(
    title="Vaccine Supply Planning API",
    description="Forecasting, equipment, budget and shipment planning for immunization programs",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(demographics_router, prefix="/countries", tags=["demographics"])
app.include_router(forecast_router, prefix="/forecasts", tags=["forecasts"])
app.include_router(combined_router, prefix="/combined", tags=["combined"])
app.include_router(equipment_router, prefix="/equipment", tags=["equipment"])
app.include_router(financial_router, prefix="/financial", tags=["financial"])
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])


# --------------------------------------------------
# Error mapping
# --------------------------------------------------

@app.exception_handler(MissingPrerequisiteError)
async def missing_prerequisite(request: Request, exc: MissingPrerequisiteError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "prerequisite": exc.prerequisite},
    )


@app.exception_handler(ReentrancyError)
async def reentrancy(request: Request, exc: ReentrancyError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def invalid_input(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_failed(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s/%s: %s", exc.collection, exc.doc_id, exc.cause)
    return JSONResponse(
        status_code=503,
        content={
            "detail": str(exc),
            "collection": exc.collection,
            "unsaved_document": jsonable_encoder(exc.document),
        },
    )


@app.get("/")
def root():
    return {
        "status": "ok",
        "service": "Vaccine Supply Planning API",
        "version": VERSION,
    }
