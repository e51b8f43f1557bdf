"""
LoanGuard API endpoints.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr
from starlette.exceptions import HTTPException as StarletteHTTPException

from loanguard.config import settings
from loanguard.domain import LoanAdmissionError
from loanguard.factory import AdmissionService, create_admission_service
from loanguard.health import create_health_endpoints
from loanguard.logging import get_logger

logger = get_logger(__name__)

# Global service instance
admission_service: Optional[AdmissionService] = None


class CreateLoanRequest(BaseModel):
    """Request to admit a loan."""
    amount: Union[StrictInt, StrictFloat] = Field(description="Amount in cents")
    jurisdiction: StrictStr = Field(description="Jurisdiction code, any case")


class LoanResponse(BaseModel):
    """Admitted loan."""
    id: str
    amount: int
    jurisdiction: str
    created_at: datetime


class ErrorResponse(BaseModel):
    """Error body for every non-2xx response."""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage service lifecycle."""
    global admission_service

    # Startup
    logger.info("Starting LoanGuard API...")
    admission_service = create_admission_service(settings)

    yield

    # Shutdown
    logger.info("Stopping LoanGuard API...")
    if admission_service:
        await admission_service.close()
    admission_service = None


# Create FastAPI app
app = FastAPI(
    title="LoanGuard",
    description="Loan admission with jurisdiction concentration limits",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(LoanAdmissionError)
async def loan_admission_error_handler(request: Request, exc: LoanAdmissionError):
    """Business errors carry their own status code and body."""
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Keep framework errors in the same body shape as business errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": HTTPStatus(exc.status_code).phrase, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Request body does not have the expected shape."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "Unprocessable Entity",
            "message": "Invalid request body",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Infrastructure failures are logged and reported generically."""
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": "An unexpected error occurred"},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "LoanGuard",
        "version": "1.0.0",
        "status": "active",
        "description": "Loan admission with jurisdiction concentration limits",
    }


@app.post(
    settings.api.prefix,
    status_code=201,
    response_model=LoanResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid amount or jurisdiction"},
        422: {"model": ErrorResponse, "description": "Concentration limit exceeded or malformed body"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
    tags=["Loans"],
)
async def create_loan(request: CreateLoanRequest):
    """Admit a loan, checked against the jurisdiction concentration limit."""
    if not admission_service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    record = await admission_service.orchestrator.admit(request.amount, request.jurisdiction)
    return record.to_projection()


create_health_endpoints(app, lambda: admission_service.health_checker if admission_service else None)
