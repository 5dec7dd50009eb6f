"""Shared pytest fixtures for ledgerbook tests."""

import tempfile
import os
from datetime import date, datetime, UTC
from decimal import Decimal
from pathlib import Path
import pytest

from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import (
    ExpenseStatus,
    Transaction,
    TransactionKind,
    UserRole,
)
from ledgerbook.domain.transaction import TransactionService
from ledgerbook.domain.user import UserService

FIXED_NOW = datetime(2024, 1, 20, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_service(temp_db):
    """Create a UserService with a temporary database."""
    return UserService(temp_db)


@pytest.fixture
def admin_user(user_service):
    """The first user, who is always an admin."""
    user_id = user_service.create_user("Admin")
    return user_service.get_user(user_id)


@pytest.fixture
def viewer_user(user_service, admin_user):
    """A user without write permissions."""
    user_id = user_service.create_user("Viewer", role=UserRole.VIEWER, acting_user=admin_user)
    return user_service.get_user(user_id)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def clock():
    """Fixed source of "now" for executed_at stamps."""
    return lambda: FIXED_NOW


@pytest.fixture
def transaction_service(temp_db, clock):
    """Create a TransactionService with a fixed clock."""
    return TransactionService(temp_db, clock=clock)


@pytest.fixture
def sample_account(account_service, admin_user):
    """Create a sample account for testing."""
    account_id = account_service.create_account(name="Caixa", acting_user=admin_user)
    return account_service.get_account(account_id)


@pytest.fixture
def second_account(account_service, admin_user):
    """Create a second account for testing."""
    account_id = account_service.create_account(name="Banco", acting_user=admin_user)
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service, admin_user):
    """Create one income and two expense categories; returns name -> ID."""
    return {
        "Ofertas": category_service.create_category(
            "Ofertas", TransactionKind.INCOME, acting_user=admin_user
        ),
        "Energia": category_service.create_category(
            "Energia", TransactionKind.EXPENSE, acting_user=admin_user
        ),
        "Aluguel": category_service.create_category(
            "Aluguel", TransactionKind.EXPENSE, acting_user=admin_user
        ),
    }


@pytest.fixture
def make_transaction():
    """Build in-memory transactions for pure calculation tests."""
    counter = {"id": 0}

    def _make(
        txn_date,
        kind=TransactionKind.EXPENSE,
        amount="10.00",
        status=ExpenseStatus.EXECUTED,
        account_id=1,
        category_id=1,
        description="Entry",
        payment_method=None,
    ):
        counter["id"] += 1
        if isinstance(txn_date, str):
            txn_date = date.fromisoformat(txn_date)
        is_expense = kind == TransactionKind.EXPENSE
        return Transaction(
            id=counter["id"],
            date=txn_date,
            kind=kind,
            description=description,
            amount=Decimal(amount),
            payment_method=payment_method,
            category_id=category_id,
            account_id=account_id,
            created_by=None,
            expense_status=status if is_expense else None,
            executed_at=FIXED_NOW if is_expense and status == ExpenseStatus.EXECUTED else None,
            expense_doc_no="001" if is_expense else None,
            created_at=FIXED_NOW,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
