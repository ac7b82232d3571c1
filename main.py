"""Main FastAPI application for the personal finance tracker API."""
import time
import datetime as dt
import logging
from typing import Optional

from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import SQLModel, create_engine, Session

from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import OperationalError

import services
from auth import decode_access_token
from config import get_settings
from errors import AppError, ErrorKind, unauthorized
from logging_config import setup_logging
from models import TransactionType
from repository import Repository
from schemas import (
    MAX_PAGE_SIZE,
    AuthResponse,
    FinancialHealthRead,
    SummaryRead,
    TokenData,
    TransactionCreate,
    TransactionPage,
    TransactionRead,
    TransactionUpdate,
    UserCreate,
    UserList,
    UserLogin,
    UserRead,
    UserUpdate,
)

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker", version=settings.app_version)
Instrumentator().instrument(app).expose(app)
bearer_scheme = HTTPBearer(auto_error=False)

if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    connect_args = {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=False,
)


# ERROR HANDLING
# One handler maps every AppError kind to its status code.

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.kind is ErrorKind.UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "status_code": exc.status_code},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every failing field, not just the first one."""
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid input data", "errors": errors, "status_code": 400},
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "status_code": 500},
    )


# DEPENDENCIES

def get_session():
    """Provide a database session per request."""
    with Session(engine) as session:
        yield session


def get_repository(session: Session = Depends(get_session)) -> Repository:
    return Repository(session)


def get_token_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    repo: Repository = Depends(get_repository),
) -> TokenData:
    """Resolve the caller from the bearer token.

    The token must still name an existing account with the same email.
    """
    if credentials is None or not credentials.credentials:
        raise unauthorized("Access token required")
    token = decode_access_token(credentials.credentials)

    user = repo.find_user_by_id(token.user_id)
    if user is None or user.email != token.email:
        logger.warning("token for user %s no longer matches an account", token.user_id)
        raise unauthorized("Invalid or expired token")
    return token


@app.on_event("startup")
def on_startup() -> None:
    """
    Run once when the app starts:
    - Configure logging
    - Wait for the database to be ready
    - Create tables
    """
    setup_logging(settings.log_level)

    retries = settings.db_connect_retries
    delay = settings.db_connect_delay
    last_exc: Exception | None = None

    for attempt in range(1, retries + 1):
        try:
            SQLModel.metadata.create_all(engine)
            logger.info("database ready, tables created")
            return
        except OperationalError as exc:
            last_exc = exc
            logger.warning(
                "database not ready yet (attempt %s/%s); waiting %ss", attempt, retries, delay
            )
            time.sleep(delay)

    logger.error("giving up connecting to the database")
    if last_exc:
        raise last_exc
    raise RuntimeError("Database not reachable on startup.")


@app.get("/")
def root():
    return {"message": "Finance Tracker API is running. See /health for status."}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
        "app": settings.app_name,
        "version": settings.app_version,
    }


# AUTH ENDPOINTS

@app.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(payload: UserCreate, repo: Repository = Depends(get_repository)):
    """Register a new user if the email is free and log them in."""
    user, token = services.register(repo, payload)
    return {"user": user, "access_token": token, "token_type": "bearer"}


@app.post("/auth/login", response_model=AuthResponse)
def login(payload: UserLogin, repo: Repository = Depends(get_repository)):
    """Authenticate a user and return a bearer token."""
    user, token = services.login(repo, payload)
    return {"user": user, "access_token": token, "token_type": "bearer"}


@app.get("/auth/profile", response_model=UserRead)
def read_profile(
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    """Return the authenticated user's profile."""
    return services.get_profile(repo, token.user_id)


@app.get("/auth/verify", response_model=TokenData)
def verify_token(token: TokenData = Depends(get_token_data)):
    """Echo the claims of a valid token."""
    return token


# USER ENDPOINTS

@app.get("/users", response_model=UserList)
def list_users(
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    users = services.list_users(repo)
    return {"users": users, "total": len(users)}


@app.post("/users", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    return services.create_user(repo, payload)


@app.get("/users/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    return services.get_own_user(repo, token.user_id, user_id)


@app.put("/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    """Change only the profile fields present in the payload."""
    return services.update_user(repo, token.user_id, user_id, payload)


@app.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    services.delete_user(repo, token.user_id, user_id)
    return None


# TRANSACTION ENDPOINTS
# Static paths are registered before /transactions/{transaction_id}.

@app.post("/transactions", response_model=TransactionRead, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    return services.create_transaction(repo, token.user_id, payload)


@app.get("/transactions", response_model=TransactionPage)
def list_transactions(
    start_date: Optional[dt.datetime] = Query(default=None),
    end_date: Optional[dt.datetime] = Query(default=None),
    type: Optional[TransactionType] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    """List the caller's transactions, newest first, one page at a time."""
    return services.list_transactions(
        repo,
        token.user_id,
        start=start_date,
        end=end_date,
        tx_type=type,
        page=page,
        limit=limit,
    )


@app.get("/transactions/range", response_model=list[TransactionRead])
def list_transactions_in_range(
    start_date: dt.datetime = Query(),
    end_date: dt.datetime = Query(),
    type: Optional[TransactionType] = Query(default=None),
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    return services.list_transactions_in_range(
        repo, token.user_id, start=start_date, end=end_date, tx_type=type
    )


@app.get("/transactions/summary", response_model=SummaryRead)
def get_summary(
    start_date: Optional[dt.datetime] = Query(default=None),
    end_date: Optional[dt.datetime] = Query(default=None),
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    """Totals, balance, last 50 transactions and monthly averages."""
    summary = services.get_summary(repo, token.user_id, start=start_date, end=end_date)
    return SummaryRead.from_summary(summary)


@app.get("/transactions/financial-health", response_model=FinancialHealthRead)
def get_financial_health(
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    health = services.get_financial_health(repo, token.user_id)
    return FinancialHealthRead.from_health(health)


@app.get("/transactions/{transaction_id}", response_model=TransactionRead)
def get_transaction(
    transaction_id: int,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    return services.get_transaction(repo, token.user_id, transaction_id)


@app.put("/transactions/{transaction_id}", response_model=TransactionRead)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    """Patch description, amount or type; other fields stay as they are."""
    return services.update_transaction(repo, token.user_id, transaction_id, payload)


@app.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    token: TokenData = Depends(get_token_data),
    repo: Repository = Depends(get_repository),
):
    services.delete_transaction(repo, token.user_id, transaction_id)
    return None
