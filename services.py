"""Application services: ownership checks and orchestration between the
repository, the credential/token helpers and the aggregation engine.

All functions are stateless and take the request's ``Repository`` first.
"""
import datetime as dt
import logging
import math
from typing import Optional

from aggregation import FinancialHealth, Summary, classify_financial_health, compute_summary
from auth import create_access_token, get_password_hash, verify_password
from errors import conflict, not_found, unauthorized
from models import Transaction, TransactionType, User
from repository import Repository
from schemas import (
    TransactionCreate,
    TransactionUpdate,
    UserCreate,
    UserLogin,
    UserUpdate,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
USER_NOT_FOUND = "User not found"
TRANSACTION_NOT_FOUND = "Transaction not found"


# AUTH

def register(repo: Repository, payload: UserCreate) -> tuple[User, str]:
    """Create an account and return it with a fresh access token."""
    user = create_user(repo, payload)
    return user, create_access_token(user.id, user.email)


def login(repo: Repository, payload: UserLogin) -> tuple[User, str]:
    """Check credentials; unknown email and wrong password fail identically."""
    user = repo.find_user_by_email(payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.warning("failed login attempt")
        raise unauthorized(INVALID_CREDENTIALS)

    logger.info("user %s logged in", user.id)
    return user, create_access_token(user.id, user.email)


def get_profile(repo: Repository, user_id: int) -> User:
    user = repo.find_user_by_id(user_id)
    if not user:
        raise not_found(USER_NOT_FOUND)
    return user


# USERS

def create_user(repo: Repository, payload: UserCreate) -> User:
    if repo.find_user_by_email(payload.email):
        raise conflict("Email already in use")

    user = repo.create_user(
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
    )
    logger.info("user %s created", user.id)
    return user


def list_users(repo: Repository) -> list[User]:
    return repo.list_users()


def get_own_user(repo: Repository, current_user_id: int, user_id: int) -> User:
    """Fetch a profile only if it belongs to the caller.

    Someone else's id gets the same not-found answer as a missing one.
    """
    if user_id != current_user_id:
        raise not_found(USER_NOT_FOUND)
    return get_profile(repo, user_id)


def update_user(
    repo: Repository, current_user_id: int, user_id: int, payload: UserUpdate
) -> User:
    user = get_own_user(repo, current_user_id, user_id)
    changes = payload.model_dump(exclude_unset=True)

    new_email = changes.get("email")
    if new_email and new_email != user.email and repo.find_user_by_email(new_email):
        raise conflict("Email already in use")

    if "password" in changes:
        changes["hashed_password"] = get_password_hash(changes.pop("password"))

    user = repo.update_user(user, changes)
    logger.info("user %s updated fields %s", user.id, sorted(changes))
    return user


def delete_user(repo: Repository, current_user_id: int, user_id: int) -> None:
    user = get_own_user(repo, current_user_id, user_id)
    repo.delete_user(user)
    logger.info("user %s deleted", user_id)


# TRANSACTIONS

def create_transaction(repo: Repository, user_id: int, payload: TransactionCreate) -> Transaction:
    if not repo.find_user_by_id(user_id):
        raise not_found(USER_NOT_FOUND)

    transaction = repo.create_transaction(
        user_id=user_id,
        description=payload.description,
        amount=payload.amount,
        tx_type=payload.type,
        created_at=payload.created_at,
    )
    logger.info("transaction %s created for user %s", transaction.id, user_id)
    return transaction


def get_transaction(repo: Repository, user_id: int, transaction_id: int) -> Transaction:
    transaction = repo.find_transaction_by_id_and_owner(transaction_id, user_id)
    if not transaction:
        raise not_found(TRANSACTION_NOT_FOUND)
    return transaction


def list_transactions(
    repo: Repository,
    user_id: int,
    start: Optional[dt.datetime] = None,
    end: Optional[dt.datetime] = None,
    tx_type: Optional[TransactionType] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    rows, total = repo.list_transactions_filtered(
        user_id, start=start, end=end, tx_type=tx_type, page=page, limit=limit
    )
    return {
        "items": rows,
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit),
    }


def list_transactions_in_range(
    repo: Repository,
    user_id: int,
    start: dt.datetime,
    end: dt.datetime,
    tx_type: Optional[TransactionType] = None,
) -> list[Transaction]:
    return repo.list_transactions_for_user(user_id, start=start, end=end, tx_type=tx_type)


def update_transaction(
    repo: Repository, user_id: int, transaction_id: int, payload: TransactionUpdate
) -> Transaction:
    transaction = get_transaction(repo, user_id, transaction_id)
    changes = payload.model_dump(exclude_unset=True)
    transaction = repo.update_transaction(transaction, changes)
    logger.info("transaction %s updated fields %s", transaction_id, sorted(changes))
    return transaction


def delete_transaction(repo: Repository, user_id: int, transaction_id: int) -> None:
    transaction = get_transaction(repo, user_id, transaction_id)
    repo.delete_transaction(transaction)
    logger.info("transaction %s deleted", transaction_id)


# REPORTS

def get_summary(
    repo: Repository,
    user_id: int,
    start: Optional[dt.datetime] = None,
    end: Optional[dt.datetime] = None,
) -> Summary:
    transactions = repo.list_transactions_for_user(user_id, start=start, end=end)
    return compute_summary(transactions, start_date=start, end_date=end)


def get_financial_health(repo: Repository, user_id: int) -> FinancialHealth:
    """All-time health; the two totals are summed in the database."""
    income = repo.sum_amount_by_type(user_id, TransactionType.INCOME)
    expenses = repo.sum_amount_by_type(user_id, TransactionType.EXPENSE)
    return classify_financial_health(income, expenses)
