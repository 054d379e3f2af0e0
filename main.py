from fastapi import FastAPI, HTTPException, Request, Depends, Body, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from typing import Annotated, List
import structlog
import time
from contextlib import asynccontextmanager

from config import get_settings
from errors import (
    InvalidAmount,
    InvalidTransactionType,
    PaymentEngineError,
    TransactionNotFound,
)
from logging_setup import configure_logging
from models import AccountStatus, AnyTransaction, ErrorResponse, HealthResponse, ProcessResponse
from services import PaymentEngine, get_payment_engine

settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger()

# Rate limiting
limiter = Limiter(key_func=get_remote_address)

# One engine per process; transactions are applied in arrival order
_engine = get_payment_engine()


def get_engine() -> PaymentEngine:
    return _engine


def reset_engine() -> None:
    """Replace the engine with an empty one (for testing only)."""
    global _engine
    _engine = get_payment_engine()


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Transactions API", version=settings.app_version)
    yield
    # Shutdown
    logger.info("Shutting down Transactions API")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Applies deposits, withdrawals and dispute operations to client accounts",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        client_ip=request.client.host if request.client else None
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time=round(process_time, 4)
    )

    return response


def error_status_code(exc: PaymentEngineError) -> int:
    if isinstance(exc, (InvalidAmount, InvalidTransactionType)):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, TransactionNotFound):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_409_CONFLICT


# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check API health and get ledger statistics"
)
async def health_check(engine: PaymentEngine = Depends(get_engine)):
    return HealthResponse(
        status="healthy",
        accounts_count=engine.account_repo.count(),
        transactions_stored=engine.transaction_repo.count()
    )

# Main transaction endpoint
@app.post(
    "/transactions",
    response_model=ProcessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Process Transaction",
    description="Apply a deposit, withdrawal, dispute, resolve or chargeback",
    responses={
        201: {"description": "Transaction applied"},
        404: {"model": ErrorResponse, "description": "Disputed transaction not found"},
        409: {"model": ErrorResponse, "description": "Transaction conflicts with the account state"},
        422: {"description": "Validation error or invalid amount"},
        429: {"description": "Rate limit exceeded"},
    }
)
@limiter.limit(settings.rate_limit)
async def create_transaction(
    request: Request,
    transaction: Annotated[AnyTransaction, Body(discriminator="type")],
    engine: PaymentEngine = Depends(get_engine)
):
    logger.info(
        "Transaction request received",
        transaction_id=transaction.tx,
        client_id=transaction.client,
        type=transaction.type
    )

    try:
        account = engine.process(transaction)
    except PaymentEngineError as e:
        log = logger.info if e.business_outcome else logger.warning
        log(
            "Transaction rejected",
            transaction_id=transaction.tx,
            client_id=transaction.client,
            error_code=e.code,
            error=str(e)
        )
        raise

    return ProcessResponse(
        tx=transaction.tx,
        type=transaction.type,
        status="processed",
        account=account
    )

# Account snapshot endpoints
@app.get(
    "/accounts",
    response_model=List[AccountStatus],
    summary="List Accounts",
    description="Current state of every client account, ordered by client id"
)
async def list_accounts(engine: PaymentEngine = Depends(get_engine)):
    return engine.snapshot(sort=True)


@app.get(
    "/accounts/{client}",
    response_model=AccountStatus,
    summary="Get Account",
    responses={404: {"model": ErrorResponse, "description": "Unknown client"}}
)
async def get_account(client: int, engine: PaymentEngine = Depends(get_engine)):
    account = engine.get_account(client)
    if account is None:
        raise HTTPException(
            status_code=404,
            detail="Account not found"
        )
    return account

# Exception handlers
@app.exception_handler(PaymentEngineError)
async def payment_engine_exception_handler(request: Request, exc: PaymentEngineError):
    return JSONResponse(
        status_code=error_status_code(exc),
        content=ErrorResponse(
            detail=str(exc),
            error_code=exc.code
        ).model_dump(mode="json")
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            detail=exc.detail,
            error_code=f"HTTP_{exc.status_code}"
        ).model_dump(mode="json")
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        error=str(exc),
        url=str(request.url),
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            detail="Internal server error",
            error_code="INTERNAL_ERROR"
        ).model_dump(mode="json")
    )

# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    return {"message": settings.app_name, "docs": "/docs"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
