#!/usr/bin/env python3
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from api.endpoint import router
from api.automations import router as automations_router, faq_router
from models.common import ErrorResponse
from services.database import RecordStoreError, RecordNotFoundError, get_database

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Helpdesk Automation Service",
    description="Keyword-triggered automations for newly created support tickets",
    version="1.0.0"
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(automations_router, prefix="/automations", tags=["Automations"])
app.include_router(faq_router, prefix="/faq", tags=["FAQ"])


def _error_response(request: Request, error_code: str, message: str) -> JSONResponse:
    error = ErrorResponse(error_code=error_code, message=message, path=request.url.path)
    return JSONResponse(status_code=error.get_http_status_code(), content=error.to_dict())


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return _error_response(request, "NOT_FOUND", str(exc))


@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request: Request, exc: RecordStoreError):
    logger.error(f"Record store failure on {request.url.path}: {exc}")
    return _error_response(request, "DATABASE_ERROR", "The record store could not complete the operation")


@app.exception_handler(ValueError)
async def validation_error_handler(request: Request, exc: ValueError):
    return _error_response(request, "VALIDATION_ERROR", str(exc) or "Invalid input")


@app.on_event("startup")
async def startup_event():
    print(" Helpdesk automation service starting...")
    database = get_database()
    database.create_schema()
    print(" Record store ready")
    print("API available at: http://localhost:8000")
    print("API docs at: http://localhost:8000/docs")


@app.get("/")
async def root():
    """API information."""
    return {
        "service": "Helpdesk Automation Service",
        "version": "1.0.0",
        "endpoints": ["POST /tickets", "GET /automations", "PUT /automations"]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
